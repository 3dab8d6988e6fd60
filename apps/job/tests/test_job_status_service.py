"""Tests for the job lifecycle transition function."""

from unittest.mock import patch

from django.http import Http404

from apps.job.enums import TRANSITIONS, JobAction, JobStatus, PaymentStatus
from apps.job.models import Job, JobEvent
from apps.job.services.job_status_service import (
    JobStatusService,
    status_walk_is_valid,
)
from apps.testing import BaseTestCase
from apps.workflow.exceptions import (
    Forbidden,
    IncompleteTransition,
    InvalidTransition,
)


class JobStatusServiceTests(BaseTestCase):
    def setUp(self):
        self.company = self.make_company()
        self.admin = self.make_admin(self.company)
        self.worker = self.make_worker(self.company)
        self.other_worker = self.make_worker(self.company)
        self.job = self.make_job(self.company, assigned=[self.worker])

    def _status_events(self, job=None):
        return JobEvent.objects.filter(
            job=job or self.job, action=JobAction.STATUS_CHANGE
        )

    def _move(self, target, actor=None, **kwargs):
        actor = actor or self.admin
        return JobStatusService.transition(
            self.job.id, target, actor.id, actor.role, **kwargs
        )

    def test_full_lifecycle_writes_one_entry_per_change(self):
        self._move(JobStatus.IN_PROGRESS, self.worker)
        self._move(JobStatus.COMPLETE, self.worker, signature="data:image/png;base64,AAA")
        job = self._move(JobStatus.PAID)

        self.assertEqual(job.status, JobStatus.PAID)
        self.assertEqual(job.payment_status, PaymentStatus.PAID)
        self.assertIsNotNone(job.completed_at)
        self.assertEqual(job.signature, "data:image/png;base64,AAA")
        self.assertEqual(self._status_events().count(), 3)
        self.assertTrue(status_walk_is_valid(job))

    def test_entry_records_edge_and_actor(self):
        self._move(JobStatus.IN_PROGRESS, self.worker)

        event = self._status_events().get()
        self.assertEqual(
            event.details, {"from": JobStatus.PENDING, "to": JobStatus.IN_PROGRESS}
        )
        self.assertEqual(event.actor_id, self.worker.id)
        self.assertEqual(event.company_id, self.company.id)

    def test_illegal_edge_rejected_without_writes(self):
        with self.assertRaises(InvalidTransition) as ctx:
            self._move(JobStatus.PAID)

        self.assertEqual(ctx.exception.from_status, JobStatus.PENDING)
        self.assertEqual(ctx.exception.to_status, JobStatus.PAID)
        self.job.refresh_from_db()
        self.assertEqual(self.job.status, JobStatus.PENDING)
        self.assertFalse(self._status_events().exists())

    def test_terminal_statuses_have_no_exits(self):
        for target in JobStatus.values:
            self.assertNotIn((JobStatus.PAID, target), TRANSITIONS)
            self.assertNotIn((JobStatus.CANCELLED, target), TRANSITIONS)

        self._move(JobStatus.CANCELLED)
        with self.assertRaises(InvalidTransition):
            self._move(JobStatus.IN_PROGRESS)

    def test_worker_cannot_mark_paid(self):
        self._move(JobStatus.IN_PROGRESS, self.worker)
        self._move(JobStatus.COMPLETE, self.worker, sign_off=True)

        with self.assertRaises(Forbidden):
            self._move(JobStatus.PAID, self.worker)

        self.job.refresh_from_db()
        self.assertEqual(self.job.status, JobStatus.COMPLETE)
        self.assertEqual(self.job.payment_status, PaymentStatus.UNPAID)
        self.assertEqual(self._status_events().count(), 2)

    def test_worker_cannot_cancel(self):
        with self.assertRaises(Forbidden):
            self._move(JobStatus.CANCELLED, self.worker)

    def test_unassigned_worker_forbidden(self):
        with self.assertRaises(Forbidden):
            self._move(JobStatus.IN_PROGRESS, self.other_worker)
        self.assertFalse(self._status_events().exists())

    def test_unknown_role_forbidden(self):
        with self.assertRaises(Forbidden):
            JobStatusService.transition(
                self.job.id, JobStatus.IN_PROGRESS, self.admin.id, "guest"
            )

    def test_completion_requires_signature_or_sign_off(self):
        self._move(JobStatus.IN_PROGRESS, self.worker)

        with self.assertRaises(IncompleteTransition) as ctx:
            self._move(JobStatus.COMPLETE, self.worker)

        self.assertEqual(ctx.exception.missing, "signature")
        self.job.refresh_from_db()
        self.assertEqual(self.job.status, JobStatus.IN_PROGRESS)
        self.assertIsNone(self.job.completed_at)
        self.assertEqual(self._status_events().count(), 1)

        job = self._move(JobStatus.COMPLETE, self.worker, sign_off=True)
        self.assertEqual(job.status, JobStatus.COMPLETE)
        self.assertEqual(job.signature, "")

    def test_conditional_update_rejects_concurrent_change(self):
        real_filter = Job.objects.filter

        def move_first(*args, **kwargs):
            # Simulate the competing writer landing between read and write.
            if kwargs.get("status") == JobStatus.PENDING:
                real_filter(id=self.job.id).update(status=JobStatus.CANCELLED)
            return real_filter(*args, **kwargs)

        with patch.object(Job.objects, "filter", side_effect=move_first):
            with self.assertRaises(InvalidTransition) as ctx:
                self._move(JobStatus.IN_PROGRESS)

        self.assertEqual(ctx.exception.from_status, JobStatus.CANCELLED)
        self.job.refresh_from_db()
        self.assertEqual(self.job.status, JobStatus.CANCELLED)
        self.assertFalse(self._status_events().exists())

    def test_company_scope_hides_other_tenants_jobs(self):
        other_company = self.make_company()
        with self.assertRaises(Http404):
            JobStatusService.transition(
                self.job.id,
                JobStatus.IN_PROGRESS,
                self.admin.id,
                self.admin.role,
                company_id=other_company.id,
            )

    def test_advance_follows_sequence(self):
        job = JobStatusService.advance(self.job.id, self.worker.id, self.worker.role)
        self.assertEqual(job.status, JobStatus.IN_PROGRESS)

        with self.assertRaises(IncompleteTransition):
            JobStatusService.advance(self.job.id, self.worker.id, self.worker.role)

        job = JobStatusService.advance(
            self.job.id, self.worker.id, self.worker.role, signature="sig"
        )
        self.assertEqual(job.status, JobStatus.COMPLETE)

        job = JobStatusService.advance(self.job.id, self.admin.id, self.admin.role)
        self.assertEqual(job.status, JobStatus.PAID)

        with self.assertRaises(InvalidTransition):
            JobStatusService.advance(self.job.id, self.admin.id, self.admin.role)

    def test_allowed_transitions_depend_on_role_and_assignment(self):
        self.assertCountEqual(
            JobStatusService.allowed_transitions(self.job, self.admin.id, "admin"),
            [JobStatus.IN_PROGRESS, JobStatus.CANCELLED],
        )
        self.assertEqual(
            JobStatusService.allowed_transitions(self.job, self.worker.id, "worker"),
            [JobStatus.IN_PROGRESS],
        )
        self.assertEqual(
            JobStatusService.allowed_transitions(
                self.job, self.other_worker.id, "worker"
            ),
            [],
        )

    def test_status_walk_detects_gaps(self):
        self._move(JobStatus.IN_PROGRESS)
        # Status forced outside the state machine.
        Job.objects.filter(id=self.job.id).update(status=JobStatus.PAID)
        self.job.refresh_from_db()

        self.assertFalse(status_walk_is_valid(self.job))
