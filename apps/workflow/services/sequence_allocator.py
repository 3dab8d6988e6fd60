"""
SequenceAllocator - hands out per-tenant reference numbers.

Every allocation is a single read-increment-write on one SequenceCounter row,
performed under SELECT ... FOR UPDATE inside a transaction (a savepoint when
the caller already holds one). Two concurrent callers for the same
(company, counter) are serialised by the row lock, so neither can observe a
half-applied increment and no number is handed out twice.

When called inside the caller's transaction, the allocation commits or rolls
back together with the entity that uses the number.
"""

import logging
import time
from typing import Any

from django.conf import settings
from django.db import IntegrityError, OperationalError, transaction

from apps.workflow.exceptions import SequenceConflict
from apps.workflow.models import CounterName, SequenceCounter

logger = logging.getLogger(__name__)

DOCUMENT_REFERENCE_PREFIXES = {
    "invoice": "INV",
    "quote": "QTE",
    "cp12": "CP12",
}


class SequenceAllocator:
    """Atomic allocation of tenant-scoped sequence numbers."""

    @classmethod
    def allocate(cls, company_id: Any, counter_name: str) -> int:
        """
        Allocate the next number for ``counter_name`` within a company.

        Args:
            company_id: Tenant primary key
            counter_name: One of CounterName

        Returns:
            int: The allocated number. The stored counter is left at
            ``number + 1``.

        Raises:
            ValueError: If the counter name is unknown
            SequenceConflict: If the increment could not be committed after
                SEQUENCE_ALLOCATION_MAX_ATTEMPTS attempts
        """
        if counter_name not in CounterName.values:
            raise ValueError(f"Unknown sequence counter '{counter_name}'")

        max_attempts = settings.SEQUENCE_ALLOCATION_MAX_ATTEMPTS
        backoff = settings.SEQUENCE_ALLOCATION_BACKOFF_SECONDS

        for attempt in range(1, max_attempts + 1):
            try:
                with transaction.atomic():
                    number = cls._increment(company_id, counter_name)
            except (OperationalError, IntegrityError) as exc:
                # Lock timeout, deadlock, or a racing first-use insert.
                # The savepoint is gone, so the next attempt re-reads the row.
                logger.warning(
                    f"Sequence allocation conflict for company {company_id} "
                    f"counter '{counter_name}' (attempt {attempt}/{max_attempts}): "
                    f"{exc}"
                )
                if attempt < max_attempts and backoff:
                    time.sleep(backoff * attempt)
                continue

            logger.info(
                f"Allocated {counter_name} number {number} for company {company_id}"
            )
            return number

        logger.error(
            f"Giving up allocating '{counter_name}' for company {company_id} "
            f"after {max_attempts} attempts"
        )
        raise SequenceConflict(company_id, counter_name, max_attempts)

    @classmethod
    def advance_to(cls, company_id: Any, counter_name: str, minimum: int) -> int:
        """
        Raise the counter so the next allocation is at least ``minimum``.

        A counter already at or above ``minimum`` is left alone; counters
        never move down. Uses the same row lock and retry loop as allocate().

        Returns:
            int: The stored ``next_value`` afterwards.

        Raises:
            ValueError: If the counter name is unknown
            SequenceConflict: If the row could not be updated in time
        """
        if counter_name not in CounterName.values:
            raise ValueError(f"Unknown sequence counter '{counter_name}'")

        max_attempts = settings.SEQUENCE_ALLOCATION_MAX_ATTEMPTS
        backoff = settings.SEQUENCE_ALLOCATION_BACKOFF_SECONDS

        for attempt in range(1, max_attempts + 1):
            try:
                with transaction.atomic():
                    next_value = cls._raise_floor(company_id, counter_name, minimum)
            except (OperationalError, IntegrityError) as exc:
                logger.warning(
                    f"Sequence repair conflict for company {company_id} "
                    f"counter '{counter_name}' (attempt {attempt}/{max_attempts}): "
                    f"{exc}"
                )
                if attempt < max_attempts and backoff:
                    time.sleep(backoff * attempt)
                continue

            logger.warning(
                f"Advanced {counter_name} counter for company {company_id}: "
                f"next_value now {next_value}"
            )
            return next_value

        logger.error(
            f"Giving up advancing '{counter_name}' for company {company_id} "
            f"after {max_attempts} attempts"
        )
        raise SequenceConflict(company_id, counter_name, max_attempts)

    @staticmethod
    def _raise_floor(company_id: Any, counter_name: str, minimum: int) -> int:
        counter = (
            SequenceCounter.objects.select_for_update()
            .filter(company_id=company_id, name=counter_name)
            .first()
        )
        if counter is None:
            counter = SequenceCounter.objects.create(
                company_id=company_id,
                name=counter_name,
                next_value=max(minimum, SequenceCounter.starting_value(counter_name)),
            )
            return counter.next_value

        if counter.next_value < minimum:
            counter.next_value = minimum
            counter.save(update_fields=["next_value", "updated_at"])
        return counter.next_value

    @staticmethod
    def _increment(company_id: Any, counter_name: str) -> int:
        counter = (
            SequenceCounter.objects.select_for_update()
            .filter(company_id=company_id, name=counter_name)
            .first()
        )
        if counter is None:
            # First use for this tenant. A concurrent first use hits the
            # unique constraint and is retried against the stored row.
            counter = SequenceCounter.objects.create(
                company_id=company_id,
                name=counter_name,
                next_value=SequenceCounter.starting_value(counter_name),
            )

        number = counter.next_value
        counter.next_value = number + 1
        counter.save(update_fields=["next_value", "updated_at"])
        return number

    @staticmethod
    def peek(company_id: Any, counter_name: str) -> int:
        """Return the number the next allocation would receive, without locking."""
        counter = SequenceCounter.objects.filter(
            company_id=company_id, name=counter_name
        ).first()
        if counter is None:
            return SequenceCounter.starting_value(counter_name)
        return counter.next_value


def format_job_reference(prefix: str, year: int, number: int) -> str:
    """Job display reference, e.g. ``TF-2025-0042``."""
    return f"{prefix}-{year:04d}-{number:04d}"


def format_document_reference(document_type: str, number: int) -> str:
    """Document display reference, e.g. ``INV-0042`` or ``QTE-1001``."""
    try:
        prefix = DOCUMENT_REFERENCE_PREFIXES[document_type]
    except KeyError:
        raise ValueError(f"No reference prefix for document type '{document_type}'")
    return f"{prefix}-{number:04d}"
