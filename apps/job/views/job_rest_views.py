"""
Job REST Views

REST views for the Job module:
- Early return and guard clauses
- Delegation to the service layer
- Views as orchestrators only
"""

import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import OpenApiParameter, OpenApiTypes, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts.permissions import IsCompanyAdmin, IsTenantMember
from apps.job.enums import STATUS_SEQUENCE, TRANSITIONS, JobStatus
from apps.job.models import Job, JobEvent
from apps.job.serializers.job_serializer import (
    JobAdvanceRequestSerializer,
    JobAssignRequestSerializer,
    JobCreateRequestSerializer,
    JobEventSerializer,
    JobEventsResponseSerializer,
    JobNoteRequestSerializer,
    JobRestErrorResponseSerializer,
    JobSerializer,
    JobStatusChoicesResponseSerializer,
    JobTransitionRequestSerializer,
)
from apps.job.services.job_service import JobService
from apps.job.services.job_status_service import JobStatusService
from apps.workflow.exceptions import AlreadyLoggedException, LifecycleError
from fieldservice.exception_handlers import lifecycle_error_response

logger = logging.getLogger(__name__)


class BaseJobRestView(APIView):
    """
    Base view for Job REST operations.
    Implements common error handling for the service layer.
    """

    permission_classes = [IsTenantMember]

    def error_response(self, message: str, status_code: int) -> Response:
        error_serializer = JobRestErrorResponseSerializer({"error": message})
        return Response(error_serializer.data, status=status_code)

    def handle_service_error(self, error: Exception) -> Response:
        """
        Centralise service layer error handling.

        Lifecycle and validation errors are expected outcomes and are returned
        to the user as-is. Anything else was already persisted by the service
        (AlreadyLoggedException) or is persisted here.
        """
        if isinstance(error, LifecycleError):
            return lifecycle_error_response(error)

        match error:
            case ValueError():
                return self.error_response(str(error), status.HTTP_400_BAD_REQUEST)
            case PermissionDenied():
                return self.error_response(
                    str(error) or "Permission denied", status.HTTP_403_FORBIDDEN
                )
            case Http404():
                return self.error_response(
                    "Resource not found", status.HTTP_404_NOT_FOUND
                )
            case AlreadyLoggedException():
                logger.error(
                    f"[JOB-REST-VIEW] Returning persisted error {error} "
                    f"(error_id={error.app_error_id})"
                )
            case _:
                # Import here to keep views importable without the error table
                from apps.workflow.services.error_persistence import (
                    persist_and_raise,
                )

                try:
                    persist_and_raise(error)
                except AlreadyLoggedException as logged_exc:
                    logger.error(
                        f"[JOB-REST-VIEW] Handled and persisted error {error} "
                        f"(error_id={logged_exc.app_error_id})"
                    )

        return self.error_response(
            "Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    def get_company_job(self, request, job_id) -> Job:
        return get_object_or_404(Job, id=job_id, company_id=request.user.company_id)


class JobListCreateRestView(BaseJobRestView):
    """List the tenant's jobs, or create one (admins only)."""

    serializer_class = JobSerializer

    @extend_schema(
        parameters=[
            OpenApiParameter(
                "status",
                OpenApiTypes.STR,
                enum=JobStatus.values,
                required=False,
                description="Only jobs in this status",
            )
        ],
        responses={200: JobSerializer(many=True), 400: JobRestErrorResponseSerializer},
        tags=["Jobs"],
    )
    def get(self, request):
        try:
            jobs = JobService.list_jobs(request.user, request.query_params.get("status"))
        except Exception as e:
            return self.handle_service_error(e)
        serializer = JobSerializer(jobs, many=True, context={"user": request.user})
        return Response(serializer.data)

    @extend_schema(
        request=JobCreateRequestSerializer,
        responses={
            201: JobSerializer,
            400: JobRestErrorResponseSerializer,
            403: JobRestErrorResponseSerializer,
            503: JobRestErrorResponseSerializer,
        },
        description="Create a job. The reference is allocated in the same transaction.",
        tags=["Jobs"],
    )
    def post(self, request):
        input_serializer = JobCreateRequestSerializer(data=request.data)
        if not input_serializer.is_valid():
            return self.error_response(
                f"Validation failed: {input_serializer.errors}",
                status.HTTP_400_BAD_REQUEST,
            )

        try:
            job = JobService.create_job(input_serializer.validated_data, request.user)
        except Exception as e:
            return self.handle_service_error(e)

        return Response(
            JobSerializer(job, context={"user": request.user}).data,
            status=status.HTTP_201_CREATED,
        )


class JobDetailRestView(BaseJobRestView):
    serializer_class = JobSerializer

    @extend_schema(
        responses={200: JobSerializer, 404: JobRestErrorResponseSerializer},
        tags=["Jobs"],
    )
    def get(self, request, job_id):
        try:
            job = self.get_company_job(request, job_id)
        except Exception as e:
            return self.handle_service_error(e)
        return Response(JobSerializer(job, context={"user": request.user}).data)


class JobTransitionRestView(BaseJobRestView):
    """
    Request a specific status change.

    409 names the disallowed edge, 403 means the role or assignment does not
    allow it. Nothing is retried server-side.
    """

    serializer_class = JobTransitionRequestSerializer

    @extend_schema(
        request=JobTransitionRequestSerializer,
        responses={
            200: JobSerializer,
            400: JobRestErrorResponseSerializer,
            403: JobRestErrorResponseSerializer,
            404: JobRestErrorResponseSerializer,
            409: JobRestErrorResponseSerializer,
        },
        tags=["Jobs"],
    )
    def post(self, request, job_id):
        input_serializer = JobTransitionRequestSerializer(data=request.data)
        if not input_serializer.is_valid():
            return self.error_response(
                f"Validation failed: {input_serializer.errors}",
                status.HTTP_400_BAD_REQUEST,
            )
        data = input_serializer.validated_data

        try:
            job = JobStatusService.transition(
                job_id,
                data["status"],
                request.user.id,
                request.user.role,
                signature=data.get("signature") or None,
                sign_off=data.get("sign_off", False),
                company_id=request.user.company_id,
            )
        except Exception as e:
            return self.handle_service_error(e)

        return Response(JobSerializer(job, context={"user": request.user}).data)


class JobAdvanceRestView(BaseJobRestView):
    """Move the job to the next status in the sequence."""

    serializer_class = JobAdvanceRequestSerializer

    @extend_schema(
        request=JobAdvanceRequestSerializer,
        responses={
            200: JobSerializer,
            403: JobRestErrorResponseSerializer,
            404: JobRestErrorResponseSerializer,
            409: JobRestErrorResponseSerializer,
        },
        tags=["Jobs"],
    )
    def post(self, request, job_id):
        input_serializer = JobAdvanceRequestSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        try:
            job = JobStatusService.advance(
                job_id,
                request.user.id,
                request.user.role,
                signature=data.get("signature") or None,
                sign_off=data.get("sign_off", False),
                company_id=request.user.company_id,
            )
        except Exception as e:
            return self.handle_service_error(e)

        return Response(JobSerializer(job, context={"user": request.user}).data)


class JobAssignRestView(BaseJobRestView):
    permission_classes = [IsCompanyAdmin]
    serializer_class = JobAssignRequestSerializer

    @extend_schema(
        request=JobAssignRequestSerializer,
        responses={
            200: JobSerializer,
            400: JobRestErrorResponseSerializer,
            403: JobRestErrorResponseSerializer,
        },
        tags=["Jobs"],
    )
    def post(self, request, job_id):
        input_serializer = JobAssignRequestSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        try:
            job = JobService.assign_workers(
                job_id, input_serializer.validated_data["assigned_to"], request.user
            )
        except Exception as e:
            return self.handle_service_error(e)

        return Response(JobSerializer(job, context={"user": request.user}).data)


class JobEventListRestView(BaseJobRestView):
    """Activity feed for one job, newest first. POST appends a note."""

    serializer_class = JobEventsResponseSerializer

    @extend_schema(
        responses={200: JobEventsResponseSerializer, 404: JobRestErrorResponseSerializer},
        tags=["Jobs"],
    )
    def get(self, request, job_id):
        try:
            job = self.get_company_job(request, job_id)
        except Exception as e:
            return self.handle_service_error(e)

        events = JobEvent.objects.filter(job=job).select_related("actor")
        return Response({"events": JobEventSerializer(events, many=True).data})

    @extend_schema(
        request=JobNoteRequestSerializer,
        responses={201: JobEventSerializer, 400: JobRestErrorResponseSerializer},
        tags=["Jobs"],
    )
    def post(self, request, job_id):
        input_serializer = JobNoteRequestSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        try:
            event = JobService.add_note(
                job_id, input_serializer.validated_data["description"], request.user
            )
        except Exception as e:
            return self.handle_service_error(e)

        return Response(JobEventSerializer(event).data, status=status.HTTP_201_CREATED)


class JobStatusChoicesRestView(BaseJobRestView):
    """Statuses, their order, and who may take which edge."""

    serializer_class = JobStatusChoicesResponseSerializer

    @extend_schema(responses={200: JobStatusChoicesResponseSerializer}, tags=["Jobs"])
    def get(self, request):
        payload = {
            "statuses": dict(JobStatus.choices),
            "tooltips": {str(k): v for k, v in Job.STATUS_TOOLTIPS.items()},
            "sequence": [str(s) for s in STATUS_SEQUENCE],
            "transitions": [
                {
                    "from_status": str(from_status),
                    "to_status": str(to_status),
                    "allowed_roles": sorted(actors),
                }
                for (from_status, to_status), actors in TRANSITIONS.items()
            ],
        }
        return Response(JobStatusChoicesResponseSerializer(payload).data)
