import uuid
from typing import Any, Dict

from django.conf import settings
from django.db import models
from simple_history.models import HistoricalRecords


def default_reference_prefix() -> str:
    return settings.DEFAULT_REFERENCE_PREFIX


class Company(models.Model):
    """
    A tenant. Every job, customer, document and staff member belongs to one.

    Reference counters are deliberately not stored here; they live in
    SequenceCounter and are only touched by the SequenceAllocator.
    """

    # Fields copied by value into locked document payloads.
    COMPANY_SNAPSHOT_FIELDS = [
        "name",
        "email",
        "phone",
        "address",
        "logo_url",
        "signature",
        "vat_number",
        "gas_safe_registration",
        "payment_info",
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")
    logo_url = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Blob storage key for the company logo",
    )
    signature = models.TextField(
        blank=True,
        default="",
        help_text="Base64 signature image printed on issued documents",
    )
    reference_prefix = models.CharField(
        max_length=10,
        default=default_reference_prefix,
        help_text="Prefix for job references, e.g. TF gives TF-2025-0042",
    )
    vat_number = models.CharField(max_length=50, blank=True, default="")
    gas_safe_registration = models.CharField(max_length=50, blank=True, default="")
    payment_info = models.TextField(
        blank=True,
        default="",
        help_text="Bank details shown on invoices",
    )
    settings = models.JSONField(
        default=dict,
        blank=True,
        help_text="UI preferences. Never used for reference counters.",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    history: HistoricalRecords = HistoricalRecords()

    class Meta:
        db_table = "workflow_company"
        ordering = ["name"]
        verbose_name = "Company"
        verbose_name_plural = "Companies"

    def __str__(self) -> str:
        return self.name

    def snapshot(self) -> Dict[str, Any]:
        """Return a value copy of the fields printed on documents."""
        return {field: getattr(self, field) for field in self.COMPANY_SNAPSHOT_FIELDS}
