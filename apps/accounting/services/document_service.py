"""
Document Service Layer

Draft quotes and invoices, issuing them (which locks their content) and the
display data consumed by the PDF renderer.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict

from django.core.exceptions import PermissionDenied
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone

from apps.accounting.enums import (
    DOCUMENT_COUNTERS,
    ISSUED_STATUS,
    DocumentStatus,
    DocumentType,
)
from apps.accounting.models import Document
from apps.accounting.services.snapshot_locker import (
    PricedDocumentSource,
    SnapshotLocker,
    render_locked,
)
from apps.accounting.services.totals import (
    DocumentTotals,
    compute_totals,
    parse_items,
    to_decimal,
)
from apps.accounts.models import Staff
from apps.client.models import Customer
from apps.job.models import Job
from apps.workflow.exceptions import AlreadyLoggedException, LifecycleError
from apps.workflow.services.error_persistence import persist_and_raise
from apps.workflow.services.sequence_allocator import (
    SequenceAllocator,
    format_document_reference,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _cached(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class DocumentService:
    """
    Service layer for quotes and invoices.
    Gas safety records are created already locked by SnapshotLocker.
    """

    @staticmethod
    def create_draft(data: Dict[str, Any], user: Staff) -> Document:
        """
        Create a numbered draft quote or invoice.

        Raises:
            ValueError: Invalid type, customer, job, or line items
            SequenceConflict: No number could be allocated
        """
        if not user.company_id:
            raise PermissionDenied("Your account is not attached to a company")

        document_type = data.get("document_type")
        if document_type not in (DocumentType.QUOTE, DocumentType.INVOICE):
            raise ValueError("document_type must be 'quote' or 'invoice'")

        company_id = user.company_id
        items = data.get("items") or []
        lines = parse_items(items)
        discount_percent = to_decimal(data.get("discount_percent"), "discount_percent")
        totals = compute_totals(lines, discount_percent)

        row: Dict[str, Any] = {
            "company_id": company_id,
            "document_type": document_type,
            "status": DocumentStatus.DRAFT,
            "items": [line.as_dict() for line in lines],
            "discount_percent": discount_percent,
            "notes": data.get("notes") or "",
            "created_by": user,
        }
        DocumentService._apply_totals(row, totals)

        if data.get("date"):
            row["date"] = data["date"]
        if data.get("expiry_date"):
            row["expiry_date"] = data["expiry_date"]

        if customer_id := data.get("customer_id"):
            try:
                customer = Customer.objects.get(id=customer_id, company_id=company_id)
            except Customer.DoesNotExist:
                raise ValueError(f"Customer {customer_id} not found")
            row["customer"] = customer
            row["customer_snapshot"] = customer.snapshot()
        else:
            row["customer_snapshot"] = dict(data.get("customer") or {})

        if job_id := data.get("job_id"):
            try:
                row["job"] = Job.objects.get(id=job_id, company_id=company_id)
            except Job.DoesNotExist:
                raise ValueError(f"Job {job_id} not found")

        try:
            with transaction.atomic():
                number = SequenceAllocator.allocate(
                    company_id, DOCUMENT_COUNTERS[document_type]
                )
                row["number"] = number
                row["reference"] = format_document_reference(document_type, number)
                document = Document.objects.create(**row)
        except (LifecycleError, AlreadyLoggedException):
            raise
        except Exception as exc:
            logger.exception(f"Draft {document_type} creation failed: {exc}")
            persist_and_raise(
                exc,
                company_id=str(company_id),
                user_id=str(user.id),
                additional_context={"operation": "create_draft"},
            )

        logger.info(f"Draft {document.reference} created by {user.email}")
        return document

    @staticmethod
    def issue(document_id: Any, user: Staff) -> Document:
        """
        Issue a draft: freeze company, customer and items into the locked
        payload and move the document out of Draft.

        Raises:
            IncompleteSnapshot: Customer name or line items missing; nothing written
            ValueError: The document is not an unissued draft quote or invoice
        """
        with transaction.atomic():
            document = get_object_or_404(
                Document.objects.select_for_update().select_related("company"),
                id=document_id,
                company_id=user.company_id,
            )

            if document.is_locked or document.status != DocumentStatus.DRAFT:
                raise ValueError(f"{document.reference} has already been issued")
            if document.document_type not in ISSUED_STATUS:
                raise ValueError(
                    f"{document.get_document_type_display()} documents cannot be issued"
                )

            source = PricedDocumentSource(
                document_type=document.document_type,
                company=document.company,
                customer=document.customer_snapshot,
                items=document.items,
                discount_percent=document.discount_percent,
                reference=document.reference,
                date=document.date,
                expiry_date=document.expiry_date,
                notes=document.notes,
            )
            payload = SnapshotLocker.lock(source)

            DocumentService._apply_totals_to(
                document, compute_totals(document.items, document.discount_percent)
            )
            document.locked_payload = payload.to_dict()
            document.locked_at = timezone.now()
            document.status = ISSUED_STATUS[document.document_type]
            document.save()

        logger.info(
            f"{document.reference} issued as {document.status} by {user.email}"
        )
        return document

    @staticmethod
    def render_data(document: Document) -> Dict[str, Any]:
        """
        Everything needed to display or print ``document``.

        Locked documents are rendered from their payload only; live company
        and customer rows are not read.
        """
        locked = render_locked(document)
        if locked is not None:
            locked["locked"] = True
            locked["status"] = document.status
            return locked

        totals = compute_totals(document.items, document.discount_percent)
        return {
            "kind": "draft",
            "locked": False,
            "document_type": document.document_type,
            "reference": document.reference,
            "status": document.status,
            "company": document.company.snapshot(),
            "customer": document.customer_snapshot,
            "items": document.items,
            "discount_percent": str(document.discount_percent),
            "totals": totals.as_dict(),
            "date": str(document.date) if document.date else "",
            "expiry_date": str(document.expiry_date) if document.expiry_date else "",
            "notes": document.notes,
        }

    @staticmethod
    def _apply_totals(row: Dict[str, Any], totals: DocumentTotals) -> None:
        row["subtotal"] = _cached(totals.subtotal)
        row["total_vat"] = _cached(totals.apportioned_vat)
        row["total"] = _cached(totals.grand_total)

    @staticmethod
    def _apply_totals_to(document: Document, totals: DocumentTotals) -> None:
        document.subtotal = _cached(totals.subtotal)
        document.total_vat = _cached(totals.apportioned_vat)
        document.total = _cached(totals.grand_total)
