"""
Job State Machine.

Every status change goes through JobStatusService.transition(), which checks
the edge against TRANSITIONS, the actor's role and assignment, and any
required artifact, then writes the new status with a conditional update and
appends exactly one status_change activity entry in the same transaction.

Rejections are correctness signals for the user and are never retried.
"""

import logging
from typing import Any, List, Optional

from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone

from apps.accounts.enums import StaffRole
from apps.job.enums import (
    ADMIN,
    ASSIGNED_WORKER,
    SIGNATURE_REQUIRED,
    TRANSITIONS,
    JobAction,
    JobStatus,
    PaymentStatus,
    is_legal_edge,
    next_in_sequence,
)
from apps.job.models import Job, JobEvent
from apps.workflow.exceptions import (
    AlreadyLoggedException,
    Forbidden,
    IncompleteTransition,
    InvalidTransition,
    LifecycleError,
)
from apps.workflow.services.error_persistence import persist_and_raise

logger = logging.getLogger(__name__)


class JobStatusService:
    """Validating transition function for the job lifecycle."""

    @staticmethod
    def transition(
        job_id: Any,
        target_status: str,
        actor_id: Any,
        actor_role: str,
        *,
        signature: Optional[str] = None,
        sign_off: bool = False,
        company_id: Any = None,
    ) -> Job:
        """
        Move a job to ``target_status``.

        Args:
            job_id: Job UUID
            target_status: Requested JobStatus value
            actor_id: Staff UUID of the person acting
            actor_role: "admin" or "worker", as supplied by the identity provider
            signature: Customer signature captured with a completion
            sign_off: Explicit sign-off in place of a signature
            company_id: When given, the job must belong to this company

        Returns:
            Job: The job as stored after the change

        Raises:
            InvalidTransition: The edge is not in the transition table, or the
                job moved on before this write landed
            IncompleteTransition: A completion without signature or sign-off
            Forbidden: The actor may not take this edge
            Http404: No such job (within the company, if given)
        """
        lookup = {"id": job_id}
        if company_id is not None:
            lookup["company_id"] = company_id
        job = get_object_or_404(Job, **lookup)
        from_status = job.status

        # Guard clauses, in order: legality, permission, artifacts
        if not is_legal_edge(from_status, target_status):
            raise InvalidTransition(from_status, target_status)

        if not JobStatusService._actor_may_take_edge(
            job, from_status, target_status, actor_id, actor_role
        ):
            logger.warning(
                f"Forbidden transition {from_status} -> {target_status} on job "
                f"{job.reference} by {actor_role} {actor_id}"
            )
            raise Forbidden(actor_role, from_status, target_status)

        if (from_status, target_status) in SIGNATURE_REQUIRED and not (
            signature or sign_off
        ):
            raise IncompleteTransition(from_status, target_status, "signature")

        try:
            with transaction.atomic():
                updates = {"status": target_status, "updated_at": timezone.now()}
                updates.update(
                    JobStatusService._edge_side_effects(target_status, signature)
                )

                # Conditional write: only applies if nobody moved the job first
                updated = Job.objects.filter(id=job.id, status=from_status).update(
                    **updates
                )
                if updated == 0:
                    current = (
                        Job.objects.filter(id=job.id)
                        .values_list("status", flat=True)
                        .first()
                    )
                    logger.info(
                        f"Lost transition race on job {job.reference}: expected "
                        f"{from_status}, found {current}"
                    )
                    raise InvalidTransition(
                        current or from_status,
                        target_status,
                        reason="The job was changed by someone else. Refresh and try again.",
                    )

                JobEvent.objects.create(
                    job=job,
                    company_id=job.company_id,
                    actor_id=actor_id,
                    action=JobAction.STATUS_CHANGE,
                    details={"from": from_status, "to": target_status},
                    description=(
                        f"Status changed from '{JobStatus(from_status).label}' "
                        f"to '{JobStatus(target_status).label}'"
                    ),
                )
        except (LifecycleError, AlreadyLoggedException):
            raise
        except Exception as exc:
            logger.exception(
                f"Transition {from_status} -> {target_status} failed for job "
                f"{job.reference}: {exc}"
            )
            persist_and_raise(
                exc,
                company_id=str(job.company_id),
                job_id=str(job.id),
                user_id=str(actor_id) if actor_id else None,
                additional_context={
                    "operation": "job_transition",
                    "from": from_status,
                    "to": target_status,
                },
            )

        job.refresh_from_db()
        logger.info(
            f"Job {job.reference} moved {from_status} -> {target_status} "
            f"by {actor_role} {actor_id}"
        )
        return job

    @staticmethod
    def advance(
        job_id: Any,
        actor_id: Any,
        actor_role: str,
        *,
        signature: Optional[str] = None,
        sign_off: bool = False,
        company_id: Any = None,
    ) -> Job:
        """Move a job to the next status in the fixed sequence."""
        lookup = {"id": job_id}
        if company_id is not None:
            lookup["company_id"] = company_id
        job = get_object_or_404(Job, **lookup)

        target = next_in_sequence(job.status)
        if target is None:
            raise InvalidTransition(
                job.status, "next", reason="There is no next status."
            )

        return JobStatusService.transition(
            job.id,
            target,
            actor_id,
            actor_role,
            signature=signature,
            sign_off=sign_off,
            company_id=company_id,
        )

    @staticmethod
    def allowed_transitions(job: Job, actor_id: Any, actor_role: str) -> List[str]:
        """Target statuses this actor may request from the job's current status."""
        return [
            to_status
            for (from_status, to_status) in TRANSITIONS
            if from_status == job.status
            and JobStatusService._actor_may_take_edge(
                job, from_status, to_status, actor_id, actor_role
            )
        ]

    @staticmethod
    def _actor_may_take_edge(
        job: Job, from_status: str, to_status: str, actor_id: Any, actor_role: str
    ) -> bool:
        allowed = TRANSITIONS[(from_status, to_status)]
        if actor_role == StaffRole.ADMIN:
            return ADMIN in allowed
        if actor_role == StaffRole.WORKER:
            return ASSIGNED_WORKER in allowed and job.is_assigned(actor_id)
        return False

    @staticmethod
    def _edge_side_effects(target_status: str, signature: Optional[str]) -> dict:
        if target_status == JobStatus.COMPLETE:
            effects = {"completed_at": timezone.now()}
            if signature:
                effects["signature"] = signature
            return effects
        if target_status == JobStatus.PAID:
            return {"payment_status": PaymentStatus.PAID}
        return {}


def status_walk_is_valid(job: Job) -> bool:
    """True if the job's status_change entries form a walk of TRANSITIONS."""
    events = JobEvent.objects.filter(
        job=job, action=JobAction.STATUS_CHANGE
    ).order_by("timestamp")
    current = JobStatus.PENDING
    for event in events:
        edge = (event.details.get("from"), event.details.get("to"))
        if edge[0] != current or edge not in TRANSITIONS:
            return False
        current = edge[1]
    return current == job.status

