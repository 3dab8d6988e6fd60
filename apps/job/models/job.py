import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from django.db import models
from django.db.models import Index

from apps.job.enums import JobStatus, PaymentStatus
from apps.workflow.exceptions import ImmutableRecordError

logger = logging.getLogger(__name__)


class Job(models.Model):
    # CHECKLIST - when adding a new field or property to Job, check these locations:
    #   1. JOB_DIRECT_FIELDS below (if it's a model field)
    #   2. JobSerializer.Meta.fields in apps/job/serializers/job_serializer.py
    #   3. JobService.create_job() in apps/job/services/job_service.py
    #   4. JobStatusService._edge_side_effects() if set by a transition
    #
    # Direct scalar model fields (not related objects, not properties).
    JOB_DIRECT_FIELDS = [
        "reference",
        "sequence_number",
        "title",
        "customer_snapshot",
        "status",
        "scheduled_date",
        "estimated_duration",
        "price",
        "photos",
        "signature",
        "notes",
        "payment_status",
        "completed_at",
    ]

    STATUS_TOOLTIPS = {
        JobStatus.PENDING: "Booked but work has not started",
        JobStatus.IN_PROGRESS: "An engineer is on site",
        JobStatus.COMPLETE: "Work finished and signed off by the customer",
        JobStatus.PAID: "Payment received",
        JobStatus.CANCELLED: "Job called off. Replaces deletion",
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "workflow.Company", on_delete=models.PROTECT, related_name="jobs"
    )
    reference = models.CharField(
        max_length=40,
        editable=False,
        help_text="Display reference, e.g. TF-2025-0042. Set once at creation.",
    )
    sequence_number = models.PositiveBigIntegerField(editable=False)
    title = models.CharField(max_length=200)
    customer = models.ForeignKey(
        "client.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="jobs",
        help_text="Traceability only. Display uses customer_snapshot.",
    )
    customer_snapshot = models.JSONField(default=dict, blank=True)
    assigned_to = models.ManyToManyField(
        "accounts.Staff", blank=True, related_name="assigned_jobs"
    )
    status: str = models.CharField(
        max_length=20, choices=JobStatus.choices, default=JobStatus.PENDING
    )  # type: ignore
    scheduled_date = models.DateTimeField(null=True, blank=True)
    estimated_duration = models.DurationField(null=True, blank=True)
    price: Optional[Decimal] = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    photos: List[str] = models.JSONField(
        default=list, blank=True, help_text="Blob storage keys"
    )
    signature = models.TextField(
        blank=True,
        default="",
        help_text="Customer signature (base64 image) captured at completion",
    )
    notes = models.TextField(blank=True, default="")
    payment_status = models.CharField(
        max_length=10, choices=PaymentStatus.choices, default=PaymentStatus.UNPAID
    )
    completed_at: Optional[datetime] = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        "accounts.Staff",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_jobs",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Job"
        verbose_name_plural = "Jobs"
        ordering = ["-created_at"]
        db_table = "job_job"
        constraints = [
            models.UniqueConstraint(
                fields=["company", "sequence_number"],
                name="unique_job_number_per_company",
            ),
            models.UniqueConstraint(
                fields=["company", "reference"],
                name="unique_job_reference_per_company",
            ),
        ]
        indexes = [
            Index(fields=["company", "status"], name="job_company_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.reference} - {self.title}"

    @property
    def customer_name(self) -> str:
        return (self.customer_snapshot or {}).get("name", "")

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.PAID, JobStatus.CANCELLED)

    def is_assigned(self, staff_id) -> bool:
        return self.assigned_to.filter(id=staff_id).exists()

    def save(self, *args, **kwargs):
        if not self._state.adding:
            stored = (
                Job.objects.filter(pk=self.pk)
                .values_list("reference", flat=True)
                .first()
            )
            if stored is not None and stored != self.reference:
                logger.error(
                    f"Refused to change reference of job {self.pk} "
                    f"from {stored} to {self.reference}"
                )
                raise ImmutableRecordError(
                    f"Job reference {stored} cannot be changed"
                )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError(
            f"Job {self.reference} cannot be deleted. Cancel it instead."
        )
