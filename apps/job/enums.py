from typing import Dict, FrozenSet, List, Tuple

from django.db import models


class JobStatus(models.TextChoices):
    """
    Lifecycle of a job. ``paid`` and ``cancelled`` are terminal.
    """

    PENDING = "pending", "Pending"
    IN_PROGRESS = "in_progress", "In Progress"
    COMPLETE = "complete", "Complete"
    PAID = "paid", "Paid"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(models.TextChoices):
    UNPAID = "unpaid", "Unpaid"
    PAID = "paid", "Paid"


class JobAction(models.TextChoices):
    """Kinds of entries written to a job's activity log."""

    CREATED = "created", "Job created"
    STATUS_CHANGE = "status_change", "Status change"
    ASSIGNED = "assigned", "Workers assigned"
    NOTE = "note", "Note"


# Order used by the "move to next status" action.
STATUS_SEQUENCE: List[str] = [
    JobStatus.PENDING,
    JobStatus.IN_PROGRESS,
    JobStatus.COMPLETE,
    JobStatus.PAID,
]

TERMINAL_STATUSES: FrozenSet[str] = frozenset({JobStatus.PAID, JobStatus.CANCELLED})

# Assignment-restricted workers are checked separately against Job.assigned_to.
ADMIN = "admin"
ASSIGNED_WORKER = "assigned_worker"

# (from, to) -> actors allowed to take the edge. Nothing else is legal.
TRANSITIONS: Dict[Tuple[str, str], FrozenSet[str]] = {
    (JobStatus.PENDING, JobStatus.IN_PROGRESS): frozenset({ASSIGNED_WORKER, ADMIN}),
    (JobStatus.IN_PROGRESS, JobStatus.COMPLETE): frozenset({ASSIGNED_WORKER, ADMIN}),
    (JobStatus.COMPLETE, JobStatus.PAID): frozenset({ADMIN}),
    (JobStatus.PENDING, JobStatus.CANCELLED): frozenset({ADMIN}),
    (JobStatus.IN_PROGRESS, JobStatus.CANCELLED): frozenset({ADMIN}),
    (JobStatus.COMPLETE, JobStatus.CANCELLED): frozenset({ADMIN}),
}

# Edges that need a captured signature or explicit sign-off.
SIGNATURE_REQUIRED: FrozenSet[Tuple[str, str]] = frozenset(
    {(JobStatus.IN_PROGRESS, JobStatus.COMPLETE)}
)


def is_legal_edge(from_status: str, to_status: str) -> bool:
    return (from_status, to_status) in TRANSITIONS


def next_in_sequence(status: str) -> str | None:
    """The status after ``status`` in STATUS_SEQUENCE, or None at the end."""
    if status not in STATUS_SEQUENCE:
        return None
    index = STATUS_SEQUENCE.index(status)
    if index + 1 >= len(STATUS_SEQUENCE):
        return None
    return STATUS_SEQUENCE[index + 1]
