"""
Job creation and non-status edits.

Status changes live in JobStatusService; nothing here writes Job.status.
"""

import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from django.core.exceptions import PermissionDenied
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from apps.accounts.models import Staff
from apps.client.models import Customer
from apps.job.enums import JobAction, JobStatus
from apps.job.models import Job, JobEvent
from apps.workflow.exceptions import AlreadyLoggedException, LifecycleError
from apps.workflow.models import Company, CounterName
from apps.workflow.services.error_persistence import persist_and_raise
from apps.workflow.services.sequence_allocator import (
    SequenceAllocator,
    format_job_reference,
)

logger = logging.getLogger(__name__)


class JobService:
    """
    Service layer for Job creation and assignment.
    Implements the business rules for jobs outside the status lifecycle.
    """

    @staticmethod
    def create_job(data: Dict[str, Any], user: Staff) -> Job:
        """
        Creates a new Job with a freshly allocated reference.

        The counter allocation, the job row, its assignees and the "created"
        activity entry are one transaction: if any part fails the number is
        not consumed.

        Args:
            data: Creation data (title, customer_id or customer, assigned_to,
                scheduled_date, estimated_duration_minutes, price, notes)
            user: Admin creating the job

        Returns:
            Job: Created job instance

        Raises:
            ValueError: If required data is missing or invalid
            PermissionDenied: If the user is not an admin of a company
            SequenceConflict: If no reference number could be allocated
        """
        if not user.company_id or not user.is_admin:
            raise PermissionDenied("Only company admins can create jobs")

        # Guard clauses - early return for validations
        title = (data.get("title") or "").strip()
        if not title:
            raise ValueError("Job title is required")

        company = user.company
        customer, customer_snapshot = JobService._resolve_customer(company, data)
        workers = JobService._resolve_workers(company, data.get("assigned_to") or [])

        job_data: Dict[str, Any] = {
            "company": company,
            "title": title,
            "customer": customer,
            "customer_snapshot": customer_snapshot,
            "created_by": user,
            "notes": data.get("notes") or "",
        }

        if scheduled := data.get("scheduled_date"):
            job_data["scheduled_date"] = JobService._parse_datetime(scheduled)

        minutes = data.get("estimated_duration_minutes")
        if minutes is not None:
            try:
                job_data["estimated_duration"] = timedelta(minutes=int(minutes))
            except (TypeError, ValueError):
                raise ValueError("estimated_duration_minutes must be a whole number")

        if data.get("price") is not None:
            try:
                job_data["price"] = Decimal(str(data["price"]))
            except InvalidOperation:
                raise ValueError(f"Invalid price '{data['price']}'")

        try:
            with transaction.atomic():
                number = SequenceAllocator.allocate(company.id, CounterName.JOB)
                job_data["sequence_number"] = number
                job_data["reference"] = format_job_reference(
                    company.reference_prefix, timezone.localdate().year, number
                )

                job = Job.objects.create(**job_data)
                if workers:
                    job.assigned_to.set(workers)

                customer_name = customer_snapshot.get("name") or "no customer"
                JobEvent.objects.create(
                    job=job,
                    company=company,
                    actor=user,
                    action=JobAction.CREATED,
                    details={
                        "reference": job.reference,
                        "status": job.status,
                        "assigned_to": [str(w.id) for w in workers],
                    },
                    description=f"New job '{job.title}' created for {customer_name}",
                )
        except (LifecycleError, AlreadyLoggedException):
            raise
        except Exception as exc:
            logger.exception(f"Job creation failed for company {company.id}: {exc}")
            persist_and_raise(
                exc,
                company_id=str(company.id),
                user_id=str(user.id),
                additional_context={"operation": "create_job", "title": title},
            )

        logger.info(f"Job {job.reference} '{job.title}' created by {user.email}")
        return job

    @staticmethod
    def assign_workers(job_id: Any, worker_ids: Iterable[Any], user: Staff) -> Job:
        """Replace the job's assignees. Admin only."""
        if not user.is_admin:
            raise PermissionDenied("Only company admins can assign workers")

        job = get_object_or_404(Job, id=job_id, company_id=user.company_id)
        if job.is_terminal:
            raise ValueError(
                f"Cannot assign workers to a job that is {job.get_status_display()}"
            )

        workers = JobService._resolve_workers(job.company, worker_ids)

        with transaction.atomic():
            job.assigned_to.set(workers)
            JobEvent.objects.create(
                job=job,
                company_id=job.company_id,
                actor=user,
                action=JobAction.ASSIGNED,
                details={"assigned_to": [str(w.id) for w in workers]},
                description="Assigned to "
                + (", ".join(str(w) for w in workers) or "nobody"),
            )

        logger.info(
            f"Job {job.reference} assigned to {len(workers)} worker(s) by {user.email}"
        )
        return job

    @staticmethod
    def add_note(job_id: Any, text: str, user: Staff) -> JobEvent:
        """Append a free-text note to the job's activity log."""
        if not text or not text.strip():
            raise ValueError("Note text is required")

        job = get_object_or_404(Job, id=job_id, company_id=user.company_id)
        if user.is_worker and not job.is_assigned(user.id):
            raise PermissionDenied("Workers can only add notes to their own jobs")

        event = JobEvent.objects.create(
            job=job,
            company_id=job.company_id,
            actor=user,
            action=JobAction.NOTE,
            details={},
            description=text.strip(),
        )
        logger.info(f"Note {event.id} added to job {job.reference} by {user.email}")
        return event

    @staticmethod
    def list_jobs(user: Staff, status: Optional[str] = None):
        """Jobs visible to ``user``: all of the company's for admins, assigned ones for workers."""
        queryset = Job.objects.filter(company_id=user.company_id)
        if status:
            if status not in JobStatus.values:
                raise ValueError(f"Unknown status '{status}'")
            queryset = queryset.filter(status=status)
        if user.is_worker:
            queryset = queryset.filter(assigned_to=user)
        return queryset.prefetch_related("assigned_to").order_by("-created_at")

    @staticmethod
    def _resolve_customer(company: Company, data: Dict[str, Any]):
        if customer_id := data.get("customer_id"):
            try:
                customer = Customer.objects.get(id=customer_id, company=company)
            except Customer.DoesNotExist:
                raise ValueError(f"Customer {customer_id} not found")
            return customer, customer.snapshot()

        snapshot = data.get("customer") or {}
        if not isinstance(snapshot, dict):
            raise ValueError("customer must be an object")
        return None, dict(snapshot)

    @staticmethod
    def _resolve_workers(company: Company, worker_ids: Iterable[Any]) -> List[Staff]:
        ids = [str(worker_id) for worker_id in worker_ids]
        if not ids:
            return []
        workers = list(Staff.objects.for_company(company.id).filter(id__in=ids))
        if len(workers) != len(set(ids)):
            found = {str(w.id) for w in workers}
            missing = sorted(set(ids) - found)
            raise ValueError(f"Unknown staff for this company: {', '.join(missing)}")
        return workers

    @staticmethod
    def _parse_datetime(value: Any):
        if hasattr(value, "isoformat"):
            return value
        parsed = parse_datetime(str(value))
        if parsed is None:
            raise ValueError(f"Invalid date '{value}'")
        if timezone.is_naive(parsed):
            parsed = timezone.make_aware(parsed)
        return parsed
