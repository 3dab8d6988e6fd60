"""Tests for per-tenant reference number allocation."""

from unittest.mock import patch

from django.db import OperationalError, transaction
from django.test import override_settings

from apps.testing import BaseTestCase
from apps.workflow.exceptions import SequenceConflict
from apps.workflow.models import CounterName, SequenceCounter
from apps.workflow.services.sequence_allocator import (
    SequenceAllocator,
    format_document_reference,
    format_job_reference,
)


class SequenceAllocatorTests(BaseTestCase):
    def setUp(self):
        self.company = self.make_company()
        self.other_company = self.make_company()

    def test_first_allocation_uses_starting_value(self):
        self.assertEqual(SequenceAllocator.allocate(self.company.id, CounterName.JOB), 1)
        self.assertEqual(
            SequenceAllocator.allocate(self.company.id, CounterName.QUOTE), 1001
        )
        self.assertEqual(
            SequenceAllocator.allocate(self.company.id, CounterName.INVOICE), 1001
        )
        self.assertEqual(
            SequenceAllocator.allocate(self.company.id, CounterName.CERTIFICATE), 1
        )

    def test_sequential_allocations_are_distinct_and_increasing(self):
        numbers = [
            SequenceAllocator.allocate(self.company.id, CounterName.JOB)
            for _ in range(25)
        ]
        self.assertEqual(numbers, list(range(1, 26)))

        counter = SequenceCounter.objects.get(
            company=self.company, name=CounterName.JOB
        )
        self.assertEqual(counter.next_value, 26)

    def test_counters_are_independent_per_tenant_and_name(self):
        SequenceAllocator.allocate(self.company.id, CounterName.JOB)
        SequenceAllocator.allocate(self.company.id, CounterName.JOB)

        self.assertEqual(
            SequenceAllocator.allocate(self.other_company.id, CounterName.JOB), 1
        )
        self.assertEqual(
            SequenceAllocator.allocate(self.company.id, CounterName.CERTIFICATE), 1
        )
        self.assertEqual(SequenceAllocator.peek(self.company.id, CounterName.JOB), 3)

    def test_peek_does_not_consume(self):
        self.assertEqual(SequenceAllocator.peek(self.company.id, CounterName.QUOTE), 1001)
        self.assertEqual(SequenceAllocator.peek(self.company.id, CounterName.QUOTE), 1001)
        self.assertFalse(SequenceCounter.objects.filter(company=self.company).exists())

    def test_unknown_counter_rejected(self):
        with self.assertRaises(ValueError):
            SequenceAllocator.allocate(self.company.id, "purchase_order")

    def test_rolled_back_caller_does_not_consume_number(self):
        SequenceAllocator.allocate(self.company.id, CounterName.JOB)

        with self.assertRaises(RuntimeError):
            with transaction.atomic():
                SequenceAllocator.allocate(self.company.id, CounterName.JOB)
                raise RuntimeError("entity insert failed")

        self.assertEqual(SequenceAllocator.allocate(self.company.id, CounterName.JOB), 2)

    def test_transient_conflict_is_retried(self):
        real_increment = SequenceAllocator._increment
        attempts = []

        def flaky(company_id, counter_name):
            attempts.append(counter_name)
            if len(attempts) == 1:
                raise OperationalError("database is locked")
            return real_increment(company_id, counter_name)

        with patch.object(SequenceAllocator, "_increment", side_effect=flaky):
            number = SequenceAllocator.allocate(self.company.id, CounterName.JOB)

        self.assertEqual(number, 1)
        self.assertEqual(len(attempts), 2)
        self.assertEqual(SequenceAllocator.peek(self.company.id, CounterName.JOB), 2)

    @override_settings(SEQUENCE_ALLOCATION_MAX_ATTEMPTS=3)
    def test_exhausted_retries_raise_sequence_conflict(self):
        with patch.object(
            SequenceAllocator,
            "_increment",
            side_effect=OperationalError("Lock wait timeout exceeded"),
        ) as increment:
            with self.assertRaises(SequenceConflict) as ctx:
                SequenceAllocator.allocate(self.company.id, CounterName.INVOICE)

        self.assertEqual(increment.call_count, 3)
        self.assertTrue(ctx.exception.retryable)
        self.assertEqual(ctx.exception.details()["attempts"], 3)
        # Nothing was handed out.
        self.assertEqual(
            SequenceAllocator.peek(self.company.id, CounterName.INVOICE), 1001
        )

    def test_advance_to_raises_lagging_counter(self):
        SequenceAllocator.allocate(self.company.id, CounterName.JOB)

        self.assertEqual(
            SequenceAllocator.advance_to(self.company.id, CounterName.JOB, 10), 10
        )
        self.assertEqual(SequenceAllocator.allocate(self.company.id, CounterName.JOB), 10)

    def test_advance_to_never_lowers(self):
        for _ in range(5):
            SequenceAllocator.allocate(self.company.id, CounterName.JOB)

        self.assertEqual(
            SequenceAllocator.advance_to(self.company.id, CounterName.JOB, 2), 6
        )
        self.assertEqual(SequenceAllocator.peek(self.company.id, CounterName.JOB), 6)

    def test_advance_to_creates_missing_counter_at_least_at_start(self):
        self.assertEqual(
            SequenceAllocator.advance_to(self.company.id, CounterName.QUOTE, 5), 1001
        )
        self.assertEqual(
            SequenceAllocator.advance_to(
                self.other_company.id, CounterName.CERTIFICATE, 40
            ),
            40,
        )

    @override_settings(SEQUENCE_ALLOCATION_MAX_ATTEMPTS=2)
    def test_advance_to_retries_then_raises(self):
        with patch.object(
            SequenceAllocator,
            "_raise_floor",
            side_effect=OperationalError("database is locked"),
        ) as raise_floor:
            with self.assertRaises(SequenceConflict):
                SequenceAllocator.advance_to(self.company.id, CounterName.JOB, 9)

        self.assertEqual(raise_floor.call_count, 2)


class ReferenceFormattingTests(BaseTestCase):
    def test_job_reference(self):
        self.assertEqual(format_job_reference("TF", 2025, 42), "TF-2025-0042")
        self.assertEqual(format_job_reference("ACME", 2026, 12345), "ACME-2026-12345")

    def test_document_references(self):
        self.assertEqual(format_document_reference("invoice", 42), "INV-0042")
        self.assertEqual(format_document_reference("quote", 1001), "QTE-1001")
        self.assertEqual(format_document_reference("cp12", 7), "CP12-0007")

    def test_unknown_document_type(self):
        with self.assertRaises(ValueError):
            format_document_reference("receipt", 1)
