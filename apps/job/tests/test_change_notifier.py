"""Tests for change signals: local subscribers, commit hooks and the channel layer."""

from unittest.mock import patch

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

from apps.job.enums import JobStatus
from apps.job.services.change_notifier import (
    COMPANY_SCOPE,
    JOB_ACTIVITY_SCOPE,
    ChangeNotifier,
    ChangeSignal,
    company_group_name,
    notifier,
)
from apps.job.services.job_service import JobService
from apps.job.services.job_status_service import JobStatusService
from apps.testing import BaseTestCase
from apps.workflow.exceptions import InvalidTransition


class ChangeNotifierUnitTests(BaseTestCase):
    def setUp(self):
        self.notifier = ChangeNotifier(use_channel_layer=False)
        self.received = []

    def test_only_matching_tenant_is_signalled(self):
        self.notifier.subscribe("company-a", self.received.append)
        other = []
        self.notifier.subscribe("company-b", other.append)

        self.notifier.notify_company("company-a", "job_created")

        self.assertEqual(
            self.received, [ChangeSignal(COMPANY_SCOPE, "company-a", "job_created")]
        )
        self.assertEqual(other, [])

    def test_unsubscribe_is_idempotent(self):
        subscription = self.notifier.subscribe("company-a", self.received.append)
        subscription.unsubscribe()
        subscription.unsubscribe()

        self.notifier.notify_company("company-a")

        self.assertEqual(self.received, [])
        self.assertEqual(self.notifier.subscriber_count(COMPANY_SCOPE, "company-a"), 0)

    def test_coalesce_delivers_one_signal_per_key(self):
        self.notifier.subscribe("company-a", self.received.append)
        activity = []
        self.notifier.subscribe_job_activity("job-1", activity.append)

        with self.notifier.coalesce():
            self.notifier.notify_company("company-a", "job_created")
            with self.notifier.coalesce():
                self.notifier.notify_company("company-a", "job_updated")
            self.notifier.notify_job_activity("job-1", "note")
            self.assertEqual(self.received, [])

        self.assertEqual(len(self.received), 1)
        self.assertEqual(self.received[0].reason, "job_created")
        self.assertEqual(activity, [ChangeSignal(JOB_ACTIVITY_SCOPE, "job-1", "note")])

    def test_failing_subscriber_does_not_stop_others(self):
        def broken(signal):
            raise RuntimeError("socket closed")

        self.notifier.subscribe("company-a", broken)
        self.notifier.subscribe("company-a", self.received.append)

        with self.assertLogs("apps.job.services.change_notifier", level="ERROR"):
            self.notifier.notify_company("company-a")

        self.assertEqual(len(self.received), 1)


class CommitNotificationTests(BaseTestCase):
    """Signals are sent only once the writing transaction commits."""

    def setUp(self):
        self.company = self.make_company()
        self.other_company = self.make_company()
        self.admin = self.make_admin(self.company)
        self.worker = self.make_worker(self.company)
        self.received = []
        self.other_received = []
        self.subscriptions = [
            notifier.subscribe(self.company.id, self.received.append),
            notifier.subscribe(self.other_company.id, self.other_received.append),
        ]

    def tearDown(self):
        for subscription in self.subscriptions:
            subscription.unsubscribe()

    def test_job_creation_signals_own_tenant_only(self):
        with self.captureOnCommitCallbacks(execute=True):
            job = JobService.create_job({"title": "New boiler"}, self.admin)

        self.assertTrue(self.received)
        self.assertTrue(all(s.key == str(self.company.id) for s in self.received))
        self.assertEqual(self.other_received, [])
        self.assertIn("job_created", [s.reason for s in self.received])
        self.assertTrue(job.reference)

    def test_transition_signals_company_and_activity(self):
        job = self.make_job(self.company, assigned=[self.worker])
        activity = []
        self.subscriptions.append(
            notifier.subscribe_job_activity(job.id, activity.append)
        )

        with self.captureOnCommitCallbacks(execute=True):
            JobStatusService.transition(
                job.id, JobStatus.IN_PROGRESS, self.worker.id, self.worker.role
            )

        self.assertIn("job_status_change", [s.reason for s in self.received])
        self.assertEqual([s.key for s in activity], [str(job.id)])
        self.assertEqual(self.other_received, [])

    def test_rolled_back_write_sends_nothing(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            try:
                with transaction.atomic():
                    JobService.create_job({"title": "Doomed"}, self.admin)
                    raise RuntimeError("abort")
            except RuntimeError:
                pass

        self.assertEqual(callbacks, [])
        self.assertEqual(self.received, [])

    def test_rejected_transition_sends_nothing(self):
        job = self.make_job(self.company)
        self.received.clear()

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(InvalidTransition):
                JobStatusService.transition(
                    job.id, JobStatus.PAID, self.admin.id, self.admin.role
                )

        self.assertEqual(callbacks, [])
        self.assertEqual(self.received, [])


class ChannelLayerBroadcastTests(BaseTestCase):
    def test_signal_reaches_company_group(self):
        channel_layer = get_channel_layer()
        channel_name = async_to_sync(channel_layer.new_channel)()
        async_to_sync(channel_layer.group_add)(
            company_group_name("company-a"), channel_name
        )

        notifier.notify_company("company-a", "job_updated")

        message = async_to_sync(channel_layer.receive)(channel_name)
        self.assertEqual(message["type"], "job.changed")
        self.assertEqual(message["scope"], COMPANY_SCOPE)
        self.assertEqual(message["key"], "company-a")
        self.assertEqual(message["reason"], "job_updated")

    def test_channel_layer_failure_is_logged_not_raised(self):
        received = []
        local = ChangeNotifier()
        local.subscribe("company-a", received.append)

        with patch(
            "apps.job.services.change_notifier.get_channel_layer",
            return_value=_BrokenLayer(),
        ):
            with self.assertLogs("apps.job.services.change_notifier", level="WARNING"):
                local.notify_company("company-a")

        self.assertEqual(len(received), 1)


class _BrokenLayer:
    async def group_send(self, group, message):
        raise ConnectionError("redis unavailable")
