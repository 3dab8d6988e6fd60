"""
Hooks that turn committed job writes into change signals.

Notifications are scheduled with transaction.on_commit so viewers are never
told about a change that is later rolled back.
"""

import logging
from functools import partial

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from apps.job.models import Job, JobEvent
from apps.job.services.change_notifier import notifier

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Job)
def job_saved(sender, instance: Job, created: bool, **kwargs) -> None:
    # Fixture loads are not user activity
    if kwargs.get("raw"):
        return

    reason = "job_created" if created else "job_updated"
    transaction.on_commit(
        partial(notifier.notify_company, instance.company_id, reason)
    )


@receiver(post_delete, sender=Job)
def job_deleted(sender, instance: Job, **kwargs) -> None:
    transaction.on_commit(
        partial(notifier.notify_company, instance.company_id, "job_deleted")
    )


@receiver(post_save, sender=JobEvent)
def job_event_saved(sender, instance: JobEvent, created: bool, **kwargs) -> None:
    if not created or kwargs.get("raw"):
        return

    # Status changes use a conditional UPDATE that fires no Job post_save,
    # so the company list is told through the activity entry instead.
    reason = f"job_{instance.action}"
    logger.debug(f"Scheduling change signals for job {instance.job_id} ({reason})")
    transaction.on_commit(
        partial(notifier.notify_job_activity, instance.job_id, instance.action)
    )
    transaction.on_commit(
        partial(notifier.notify_company, instance.company_id, reason)
    )
