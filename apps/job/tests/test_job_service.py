from decimal import Decimal
from unittest.mock import patch

from django.core.exceptions import PermissionDenied
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.job.enums import JobAction, JobStatus
from apps.job.models import Job, JobEvent
from apps.job.services.job_service import JobService
from apps.testing import BaseTestCase
from apps.workflow.exceptions import SequenceConflict
from apps.workflow.models import CounterName
from apps.workflow.services.sequence_allocator import SequenceAllocator


class JobCreationTests(BaseTestCase):
    def setUp(self):
        self.company = self.make_company(reference_prefix="TF")
        self.admin = self.make_admin(self.company)
        self.worker = self.make_worker(self.company)
        self.customer = self.make_customer(self.company)

    def test_create_allocates_reference_and_logs_creation(self):
        job = JobService.create_job(
            {
                "title": "Annual boiler service",
                "customer_id": self.customer.id,
                "assigned_to": [self.worker.id],
                "estimated_duration_minutes": 90,
                "price": "85.50",
            },
            self.admin,
        )

        year = timezone.localdate().year
        self.assertEqual(job.reference, f"TF-{year}-0001")
        self.assertEqual(job.sequence_number, 1)
        self.assertEqual(job.status, JobStatus.PENDING)
        self.assertEqual(job.price, Decimal("85.50"))
        self.assertEqual(job.estimated_duration.total_seconds(), 90 * 60)
        self.assertEqual(job.customer_snapshot["name"], "Jane Landlord")
        self.assertTrue(job.is_assigned(self.worker.id))

        event = JobEvent.objects.get(job=job)
        self.assertEqual(event.action, JobAction.CREATED)
        self.assertEqual(event.details["reference"], job.reference)

    def test_sequential_jobs_get_consecutive_numbers(self):
        first = JobService.create_job({"title": "One"}, self.admin)
        second = JobService.create_job({"title": "Two"}, self.admin)

        self.assertEqual(second.sequence_number, first.sequence_number + 1)
        self.assertNotEqual(first.reference, second.reference)

    def test_tenants_sharing_a_prefix_each_get_their_own_first_job(self):
        other_company = self.make_company(reference_prefix="TF")
        other_admin = self.make_admin(other_company)

        ours = JobService.create_job({"title": "Gas safety check"}, self.admin)
        theirs = JobService.create_job({"title": "Gas safety check"}, other_admin)
        ours_next = JobService.create_job({"title": "Radiator bleed"}, self.admin)

        year = timezone.localdate().year
        self.assertEqual(ours.reference, f"TF-{year}-0001")
        self.assertEqual(theirs.reference, f"TF-{year}-0001")
        self.assertEqual(ours_next.reference, f"TF-{year}-0002")
        for company in (self.company, other_company):
            references = list(
                Job.objects.filter(company=company).values_list("reference", flat=True)
            )
            self.assertEqual(len(references), len(set(references)))
        self.assertEqual(Job.objects.filter(company=other_company).count(), 1)

    def test_reference_is_unique_within_a_company(self):
        self.make_job(self.company, reference="TF-2025-0001")

        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                self.make_job(self.company, reference="TF-2025-0001")

        other_company = self.make_company()
        self.make_job(other_company, reference="TF-2025-0001")

    def test_inline_customer_snapshot(self):
        job = JobService.create_job(
            {"title": "Leak", "customer": {"name": "Walk-in", "phone": "0123"}},
            self.admin,
        )
        self.assertIsNone(job.customer)
        self.assertEqual(job.customer_name, "Walk-in")

    def test_workers_cannot_create_jobs(self):
        with self.assertRaises(PermissionDenied):
            JobService.create_job({"title": "Nope"}, self.worker)

    def test_validation_failures_do_not_consume_numbers(self):
        with self.assertRaises(ValueError):
            JobService.create_job({"title": "  "}, self.admin)
        with self.assertRaises(ValueError):
            JobService.create_job(
                {"title": "Bad", "assigned_to": [self.make_worker(self.make_company()).id]},
                self.admin,
            )

        self.assertEqual(SequenceAllocator.peek(self.company.id, CounterName.JOB), 1)
        self.assertFalse(Job.objects.exists())

    def test_allocation_failure_creates_nothing(self):
        with patch.object(
            SequenceAllocator,
            "allocate",
            side_effect=SequenceConflict(self.company.id, CounterName.JOB, 5),
        ):
            with self.assertRaises(SequenceConflict):
                JobService.create_job({"title": "Busy"}, self.admin)

        self.assertFalse(Job.objects.exists())
        self.assertFalse(JobEvent.objects.exists())


class JobAssignmentAndNotesTests(BaseTestCase):
    def setUp(self):
        self.company = self.make_company()
        self.admin = self.make_admin(self.company)
        self.worker = self.make_worker(self.company)
        self.job = self.make_job(self.company)

    def test_assign_workers(self):
        JobService.assign_workers(self.job.id, [self.worker.id], self.admin)

        self.assertTrue(self.job.is_assigned(self.worker.id))
        event = JobEvent.objects.get(job=self.job, action=JobAction.ASSIGNED)
        self.assertEqual(event.details["assigned_to"], [str(self.worker.id)])

    def test_cannot_assign_terminal_job(self):
        Job.objects.filter(id=self.job.id).update(status=JobStatus.PAID)
        with self.assertRaises(ValueError):
            JobService.assign_workers(self.job.id, [self.worker.id], self.admin)

    def test_only_assigned_workers_add_notes(self):
        with self.assertRaises(PermissionDenied):
            JobService.add_note(self.job.id, "Parts ordered", self.worker)

        self.job.assigned_to.add(self.worker)
        event = JobService.add_note(self.job.id, "  Parts ordered ", self.worker)
        self.assertEqual(event.description, "Parts ordered")
        self.assertEqual(event.action, JobAction.NOTE)

    def test_workers_only_list_their_jobs(self):
        mine = self.make_job(self.company, assigned=[self.worker])
        self.make_job(self.make_company())

        self.assertEqual(list(JobService.list_jobs(self.worker)), [mine])
        self.assertCountEqual(list(JobService.list_jobs(self.admin)), [self.job, mine])

        with self.assertRaises(ValueError):
            JobService.list_jobs(self.admin, status="archived")
