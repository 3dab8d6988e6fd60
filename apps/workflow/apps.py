import logging

from django.apps import AppConfig
from django.conf import settings
from django.core.checks import Error, register

logger = logging.getLogger(__name__)


@register()
def check_sequence_allocation_settings(app_configs, **kwargs):
    """
    Verify the allocator retry bound is usable.

    A bound below one would make every allocation fail with SequenceConflict.
    """
    errors = []
    if settings.SEQUENCE_ALLOCATION_MAX_ATTEMPTS < 1:
        errors.append(
            Error(
                "SEQUENCE_ALLOCATION_MAX_ATTEMPTS must be at least 1",
                hint="Set SEQUENCE_ALLOCATION_MAX_ATTEMPTS in your .env file",
                id="workflow.E001",
            )
        )
    return errors


class WorkflowConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.workflow"
    verbose_name = "Workflow"
