from apps.job.enums import JobAction
from apps.job.models import Job, JobEvent
from apps.testing import BaseTestCase
from apps.workflow.exceptions import ImmutableRecordError


class JobEventImmutabilityTests(BaseTestCase):
    def setUp(self):
        self.company = self.make_company()
        self.admin = self.make_admin(self.company)
        self.job = self.make_job(self.company)
        self.event = JobEvent.objects.create(
            job=self.job,
            company=self.company,
            actor=self.admin,
            action=JobAction.NOTE,
            description="Arrived on site",
        )

    def test_saved_entry_cannot_be_changed(self):
        self.event.description = "Rewritten history"
        with self.assertRaises(ImmutableRecordError):
            self.event.save()

        self.assertEqual(
            JobEvent.objects.get(id=self.event.id).description, "Arrived on site"
        )

    def test_entry_cannot_be_deleted(self):
        with self.assertRaises(ImmutableRecordError):
            self.event.delete()
        self.assertTrue(JobEvent.objects.filter(id=self.event.id).exists())

    def test_bulk_update_and_delete_refused(self):
        with self.assertRaises(ImmutableRecordError):
            JobEvent.objects.filter(job=self.job).update(description="x")
        with self.assertRaises(ImmutableRecordError):
            JobEvent.objects.filter(job=self.job).delete()
        self.assertEqual(JobEvent.objects.filter(job=self.job).count(), 1)


class JobReferenceImmutabilityTests(BaseTestCase):
    def test_reference_cannot_change(self):
        company = self.make_company()
        job = self.make_job(company)

        job.title = "Renamed"
        job.save()

        job.reference = "TF-1999-0001"
        with self.assertRaises(ImmutableRecordError):
            job.save()
        self.assertNotEqual(Job.objects.get(id=job.id).reference, "TF-1999-0001")

    def test_job_cannot_be_deleted(self):
        job = self.make_job(self.make_company())
        with self.assertRaises(ImmutableRecordError):
            job.delete()
