import uuid

from django.db import models
from django.utils.timezone import now

from apps.job.enums import JobAction
from apps.workflow.exceptions import ImmutableRecordError


class JobEventQuerySet(models.QuerySet):
    """Activity entries are append-only; bulk writes are refused."""

    def update(self, **kwargs):
        raise ImmutableRecordError("Job activity entries cannot be updated")

    def delete(self):
        raise ImmutableRecordError("Job activity entries cannot be deleted")


class JobEvent(models.Model):
    # CHECKLIST - when adding a new field or property to JobEvent, check these locations:
    #   1. JOBEVENT_API_FIELDS below (if it's exposed)
    #   2. JobEventSerializer in apps/job/serializers/job_serializer.py
    #   3. JobStatusService.transition() in apps/job/services/job_status_service.py
    #   4. JobService.create_job() in apps/job/services/job_service.py
    #
    # Database fields exposed via API serializers
    JOBEVENT_API_FIELDS = [
        "id",
        "action",
        "details",
        "description",
        "timestamp",
        "actor",
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    job = models.ForeignKey(
        "Job", on_delete=models.PROTECT, related_name="events"
    )
    company = models.ForeignKey(
        "workflow.Company", on_delete=models.PROTECT, related_name="job_events"
    )
    actor = models.ForeignKey(
        "accounts.Staff",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="job_events",
    )
    action = models.CharField(max_length=30, choices=JobAction.choices)
    details = models.JSONField(default=dict, blank=True)
    description = models.TextField(blank=True, default="")
    timestamp = models.DateTimeField(default=now)

    objects = JobEventQuerySet.as_manager()

    class Meta:
        db_table = "job_jobevent"
        ordering = ["-timestamp"]
        indexes = [
            models.Index(
                fields=["job", "-timestamp"], name="jobevent_job_timestamp_idx"
            ),
            models.Index(
                fields=["company", "-timestamp"], name="jobevent_company_time_idx"
            ),
            models.Index(
                fields=["action", "-timestamp"], name="jobevent_action_time_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.timestamp}: {self.action} for job {self.job_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError(f"Job activity entry {self.pk} is write-once")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError(f"Job activity entry {self.pk} cannot be deleted")
