import uuid

import django.db.models.deletion
from django.db import migrations, models

import apps.workflow.models.company


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Company",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=200)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("phone", models.CharField(blank=True, default="", max_length=50)),
                ("address", models.TextField(blank=True, default="")),
                (
                    "logo_url",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Blob storage key for the company logo",
                        max_length=500,
                    ),
                ),
                (
                    "signature",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Base64 signature image printed on issued documents",
                    ),
                ),
                (
                    "reference_prefix",
                    models.CharField(
                        default=apps.workflow.models.company.default_reference_prefix,
                        help_text="Prefix for job references, e.g. TF gives TF-2025-0042",
                        max_length=10,
                    ),
                ),
                ("vat_number", models.CharField(blank=True, default="", max_length=50)),
                (
                    "gas_safe_registration",
                    models.CharField(blank=True, default="", max_length=50),
                ),
                (
                    "payment_info",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Bank details shown on invoices",
                    ),
                ),
                (
                    "settings",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="UI preferences. Never used for reference counters.",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Company",
                "verbose_name_plural": "Companies",
                "db_table": "workflow_company",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="SequenceCounter",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "name",
                    models.CharField(
                        choices=[
                            ("job", "Job reference"),
                            ("quote", "Quote number"),
                            ("invoice", "Invoice number"),
                            ("certificate", "Gas safety certificate number"),
                        ],
                        max_length=20,
                    ),
                ),
                ("next_value", models.PositiveBigIntegerField()),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sequence_counters",
                        to="workflow.company",
                    ),
                ),
            ],
            options={
                "db_table": "workflow_sequence_counter",
            },
        ),
        migrations.AddConstraint(
            model_name="sequencecounter",
            constraint=models.UniqueConstraint(
                fields=("company", "name"), name="unique_counter_per_company"
            ),
        ),
    ]
