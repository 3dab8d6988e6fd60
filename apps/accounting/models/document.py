import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, Optional

from django.db import models
from django.utils import timezone

from apps.accounting.enums import DocumentStatus, DocumentType
from apps.workflow.exceptions import ImmutableRecordError

logger = logging.getLogger(__name__)


class Document(models.Model):
    """
    A quote, invoice or gas safety record.

    Drafts are edited through the working fields (customer_snapshot, items,
    discount_percent, notes). Issuing writes ``locked_payload`` once; after
    that every read of the document comes from the payload alone.
    """

    # CHECKLIST - when adding a new field to Document, check these locations:
    #   1. DocumentSerializer in apps/accounting/serializers.py
    #   2. DocumentService.render_data() for drafts
    #   3. SnapshotLocker if the field must be printed on issued documents
    DRAFT_FIELDS = ["customer_snapshot", "items", "discount_percent", "notes"]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "workflow.Company", on_delete=models.PROTECT, related_name="documents"
    )
    document_type = models.CharField(max_length=20, choices=DocumentType.choices)
    number = models.PositiveBigIntegerField()
    reference = models.CharField(max_length=40)
    status = models.CharField(
        max_length=20, choices=DocumentStatus.choices, default=DocumentStatus.DRAFT
    )
    date = models.DateField(default=timezone.localdate)
    expiry_date = models.DateField(null=True, blank=True)
    job = models.ForeignKey(
        "job.Job",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="documents",
        help_text="Traceability only. Never used to rebuild document content.",
    )
    customer = models.ForeignKey(
        "client.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="documents",
        help_text="Traceability only. Display uses the snapshot or payload.",
    )
    customer_snapshot = models.JSONField(default=dict, blank=True)
    items = models.JSONField(default=list, blank=True)
    discount_percent = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0")
    )
    notes = models.TextField(blank=True, default="")

    # Cached from the Totals Engine for list views; the payload is authoritative
    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    total_vat = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0")
    )
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))

    locked_payload = models.JSONField(null=True, blank=True, editable=False)
    locked_at = models.DateTimeField(null=True, blank=True, editable=False)

    created_by = models.ForeignKey(
        "accounts.Staff",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_documents",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "accounting_document"
        ordering = ["-date", "-number"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(document_type__in=DocumentType.values),
                name="document_type_valid",
            ),
            models.UniqueConstraint(
                fields=["company", "reference"], name="unique_document_reference"
            ),
        ]
        indexes = [
            models.Index(
                fields=["company", "document_type", "status"],
                name="document_company_type_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.reference} ({self.get_status_display()})"

    @property
    def is_locked(self) -> bool:
        return self.locked_payload is not None

    @property
    def payload_kind(self) -> Optional[str]:
        return (self.locked_payload or {}).get("kind")

    def get_payload(self):
        """Typed locked payload, or None for a draft."""
        # Import here to keep models free of service-layer imports at load time
        from apps.accounting.payloads import load_payload

        if self.locked_payload is None:
            return None
        return load_payload(self.locked_payload)

    def save(self, *args, **kwargs):
        if not self._state.adding:
            stored = (
                Document.objects.filter(pk=self.pk)
                .values("locked_payload", "reference")
                .first()
            )
            if stored is not None:
                self._check_locked_fields(stored)
        super().save(*args, **kwargs)

    def _check_locked_fields(self, stored: Dict[str, Any]) -> None:
        if stored["locked_payload"] is not None:
            if self.locked_payload != stored["locked_payload"]:
                logger.error(f"Refused to change locked payload of {self.reference}")
                raise ImmutableRecordError(
                    f"Document {stored['reference']} is locked and cannot be changed"
                )
            if self.reference != stored["reference"]:
                raise ImmutableRecordError(
                    f"Document {stored['reference']} is locked; its reference is fixed"
                )
