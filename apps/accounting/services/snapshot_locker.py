"""
Snapshot Locker - freezes live company, customer and inspection data into an
immutable payload at the moment a document is issued.

Required fields are checked before anything is written, so an incomplete
document never reaches the database. A certificate insert rejected by the
document_type check constraint is retried once with the fallback tag and the
identical payload; readers dispatch on the payload's ``kind``, not the tag.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.accounting.enums import (
    DOCUMENT_COUNTERS,
    FALLBACK_DOCUMENT_TYPE,
    DocumentStatus,
    DocumentType,
)
from apps.accounting.models import Document
from apps.accounting.payloads import (
    GasSafetyPayload,
    LockedPayload,
    PricedDocumentPayload,
)
from apps.accounting.services.totals import compute_totals, parse_items
from apps.workflow.exceptions import IncompleteSnapshot
from apps.workflow.services.sequence_allocator import (
    SequenceAllocator,
    format_document_reference,
)

logger = logging.getLogger(__name__)

DOCUMENT_TYPE_CONSTRAINT = "document_type_valid"


@dataclass
class GasSafetySource:
    """Live inputs for a CP12 gas safety record."""

    company: Any
    engineer: Any
    landlord: Mapping[str, Any]
    property_address: str
    appliances: Sequence[Mapping[str, Any]]
    customer_signature: str
    inspection_date: Any = None
    next_due_date: Any = None
    tenant: Mapping[str, Any] = field(default_factory=dict)
    final_checks: Mapping[str, Any] = field(default_factory=dict)
    certificate_reference: str = ""


@dataclass
class PricedDocumentSource:
    """Live inputs for a quote or invoice being issued."""

    document_type: str
    company: Any
    customer: Mapping[str, Any]
    items: Sequence[Any]
    discount_percent: Any = 0
    reference: str = ""
    date: Any = None
    expiry_date: Any = None
    notes: str = ""


def _company_snapshot(company: Any) -> Dict[str, Any]:
    if company is None:
        return {}
    if hasattr(company, "snapshot"):
        return company.snapshot()
    return dict(company)


def _engineer_snapshot(engineer: Any) -> Dict[str, Any]:
    if engineer is None:
        return {}
    if hasattr(engineer, "engineer_snapshot"):
        return engineer.engineer_snapshot()
    return dict(engineer)


def _iso(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class SnapshotLocker:
    @staticmethod
    def missing_fields(source) -> List[str]:
        """Names of required fields that are empty in ``source``."""
        missing = []
        if isinstance(source, GasSafetySource):
            if _blank(source.customer_signature):
                missing.append("customer_signature")
            if _blank(source.property_address):
                missing.append("property_address")
            if not source.appliances:
                missing.append("appliances")
            if _blank(_company_snapshot(source.company).get("name")):
                missing.append("company.name")
            if _blank(_engineer_snapshot(source.engineer).get("name")):
                missing.append("engineer.name")
        elif isinstance(source, PricedDocumentSource):
            if _blank((source.customer or {}).get("name")):
                missing.append("customer.name")
            if not source.items:
                missing.append("items")
        else:
            raise ValueError(f"Cannot lock a {type(source).__name__}")
        return missing

    @staticmethod
    def lock(source) -> LockedPayload:
        """
        Deep value copy of ``source`` as a frozen payload.

        Raises:
            IncompleteSnapshot: If a required field is missing
            ValueError: If line items or the discount are malformed
        """
        missing = SnapshotLocker.missing_fields(source)
        locked_at = timezone.now().isoformat()

        if isinstance(source, GasSafetySource):
            if missing:
                raise IncompleteSnapshot(DocumentType.CP12, missing)
            payload = GasSafetyPayload(
                certificate_reference=source.certificate_reference,
                locked_at=locked_at,
                company=_company_snapshot(source.company),
                engineer=_engineer_snapshot(source.engineer),
                landlord=source.landlord or {},
                tenant=source.tenant or {},
                property_address=source.property_address.strip(),
                appliances=source.appliances,
                final_checks=source.final_checks or {},
                inspection_date=_iso(source.inspection_date),
                next_due_date=_iso(source.next_due_date),
                customer_signature=source.customer_signature,
            )
        else:
            if missing:
                raise IncompleteSnapshot(source.document_type, missing)
            lines = parse_items(source.items)
            totals = compute_totals(lines, source.discount_percent)
            payload = PricedDocumentPayload(
                document_type=source.document_type,
                reference=source.reference,
                locked_at=locked_at,
                company=_company_snapshot(source.company),
                customer=source.customer,
                items=[line.as_dict() for line in lines],
                discount_percent=str(source.discount_percent or 0),
                totals=totals.as_dict(),
                date=_iso(source.date or timezone.localdate()),
                expiry_date=_iso(source.expiry_date),
                notes=source.notes or "",
            )

        logger.info(f"Locked {payload.kind} payload at {locked_at}")
        return payload

    @staticmethod
    def persist_certificate(
        source: GasSafetySource,
        *,
        company_id: Any,
        actor: Any = None,
        job: Any = None,
        customer: Any = None,
    ) -> Document:
        """
        Allocate a certificate number, lock the payload and insert the row,
        as one transaction.

        Raises:
            IncompleteSnapshot: Nothing is allocated or written
            SequenceConflict: No certificate number could be allocated
        """
        missing = SnapshotLocker.missing_fields(source)
        if missing:
            logger.info(f"Refused incomplete gas safety record: missing {missing}")
            raise IncompleteSnapshot(DocumentType.CP12, missing)

        with transaction.atomic():
            number = SequenceAllocator.allocate(
                company_id, DOCUMENT_COUNTERS[DocumentType.CP12]
            )
            reference = format_document_reference(DocumentType.CP12, number)
            if not source.certificate_reference:
                source = replace(source, certificate_reference=reference)

            payload = SnapshotLocker.lock(source)
            expiry = source.next_due_date or None
            document = SnapshotLocker.insert_locked(
                DocumentType.CP12,
                payload,
                company_id=company_id,
                number=number,
                reference=reference,
                status=DocumentStatus.SENT,
                expiry_date=expiry,
                job=job,
                customer=customer,
                customer_snapshot=dict(payload.landlord),
                created_by=actor,
            )

        logger.info(
            f"Gas safety record {document.reference} stored for company {company_id}"
        )
        return document

    @staticmethod
    def insert_locked(
        document_type: str, payload: LockedPayload, **row: Any
    ) -> Document:
        """
        Insert a document carrying ``payload``. If the type tag is refused by
        the document_type check constraint, retry once with the fallback tag.
        """
        row.update(
            locked_payload=payload.to_dict(),
            locked_at=timezone.now(),
        )
        try:
            with transaction.atomic():
                return Document.objects.create(document_type=document_type, **row)
        except IntegrityError as exc:
            if (
                DOCUMENT_TYPE_CONSTRAINT not in str(exc)
                or document_type == FALLBACK_DOCUMENT_TYPE
            ):
                raise
            logger.warning(
                f"Document type '{document_type}' rejected by the database; "
                f"storing {row.get('reference')} as '{FALLBACK_DOCUMENT_TYPE}' "
                f"with an unchanged {payload.kind} payload"
            )

        with transaction.atomic():
            return Document.objects.create(
                document_type=FALLBACK_DOCUMENT_TYPE, **row
            )


def render_locked(document: Document) -> Optional[Dict[str, Any]]:
    """Display data of a locked document, read only from its payload."""
    payload = document.get_payload()
    if payload is None:
        return None
    return payload.to_dict()
