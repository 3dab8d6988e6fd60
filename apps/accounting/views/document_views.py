"""
Document REST Views

Quotes and invoices are created as drafts and issued through DocumentService.
Gas safety records are locked and stored in one call.
"""

import logging

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response

from apps.accounting.models import Document
from apps.accounting.serializers import (
    DocumentCreateRequestSerializer,
    DocumentErrorResponseSerializer,
    DocumentSerializer,
    GasSafetyRequestSerializer,
    TotalsPreviewRequestSerializer,
    TotalsPreviewResponseSerializer,
)
from apps.accounting.services.document_service import DocumentService
from apps.accounting.services.snapshot_locker import GasSafetySource, SnapshotLocker
from apps.accounting.services.totals import compute_totals, line_totals
from apps.client.models import Customer
from apps.job.models import Job
from apps.job.views.job_rest_views import BaseJobRestView

logger = logging.getLogger(__name__)


class DocumentCreateView(BaseJobRestView):
    serializer_class = DocumentCreateRequestSerializer

    @extend_schema(
        request=DocumentCreateRequestSerializer,
        responses={
            201: DocumentSerializer,
            400: DocumentErrorResponseSerializer,
            503: DocumentErrorResponseSerializer,
        },
        description="Create a numbered draft quote or invoice.",
        tags=["Documents"],
    )
    def post(self, request):
        input_serializer = DocumentCreateRequestSerializer(data=request.data)
        if not input_serializer.is_valid():
            return self.error_response(
                f"Validation failed: {input_serializer.errors}",
                status.HTTP_400_BAD_REQUEST,
            )

        try:
            document = DocumentService.create_draft(
                input_serializer.validated_data, request.user
            )
        except Exception as e:
            return self.handle_service_error(e)

        return Response(DocumentSerializer(document).data, status=status.HTTP_201_CREATED)


class DocumentDetailView(BaseJobRestView):
    serializer_class = DocumentSerializer

    @extend_schema(
        responses={200: DocumentSerializer, 404: DocumentErrorResponseSerializer},
        tags=["Documents"],
    )
    def get(self, request, document_id):
        try:
            document = Document.objects.select_related("company").get(
                id=document_id, company_id=request.user.company_id
            )
        except Document.DoesNotExist:
            return self.error_response("Resource not found", status.HTTP_404_NOT_FOUND)

        return Response(DocumentSerializer(document).data)


class DocumentIssueView(BaseJobRestView):
    """Lock a draft. Later edits to the company or customer no longer show on it."""

    serializer_class = DocumentSerializer

    @extend_schema(
        request=None,
        responses={
            200: DocumentSerializer,
            400: DocumentErrorResponseSerializer,
            404: DocumentErrorResponseSerializer,
        },
        tags=["Documents"],
    )
    def post(self, request, document_id):
        try:
            document = DocumentService.issue(document_id, request.user)
        except Exception as e:
            return self.handle_service_error(e)

        return Response(DocumentSerializer(document).data)


class GasSafetyRecordView(BaseJobRestView):
    """Store a signed CP12 as a locked document."""

    serializer_class = GasSafetyRequestSerializer

    @extend_schema(
        request=GasSafetyRequestSerializer,
        responses={
            201: DocumentSerializer,
            400: DocumentErrorResponseSerializer,
            503: DocumentErrorResponseSerializer,
        },
        tags=["Documents"],
    )
    def post(self, request):
        input_serializer = GasSafetyRequestSerializer(data=request.data)
        if not input_serializer.is_valid():
            return self.error_response(
                f"Validation failed: {input_serializer.errors}",
                status.HTTP_400_BAD_REQUEST,
            )
        data = input_serializer.validated_data
        user = request.user

        try:
            customer = None
            landlord = dict(data.get("landlord") or {})
            if customer_id := data.get("customer_id"):
                customer = Customer.objects.filter(
                    id=customer_id, company_id=user.company_id
                ).first()
                if customer is None:
                    raise ValueError(f"Customer {customer_id} not found")
                landlord = {**customer.snapshot(), **landlord}

            job = None
            if job_id := data.get("job_id"):
                job = Job.objects.filter(id=job_id, company_id=user.company_id).first()
                if job is None:
                    raise ValueError(f"Job {job_id} not found")

            source = GasSafetySource(
                company=user.company,
                engineer=user,
                landlord=landlord,
                tenant=data.get("tenant") or {},
                property_address=data.get("property_address") or "",
                appliances=data.get("appliances") or [],
                final_checks=data.get("final_checks") or {},
                inspection_date=data.get("inspection_date"),
                next_due_date=data.get("next_due_date"),
                customer_signature=data.get("customer_signature") or "",
            )
            document = SnapshotLocker.persist_certificate(
                source,
                company_id=user.company_id,
                actor=user,
                job=job,
                customer=customer,
            )
        except Exception as e:
            return self.handle_service_error(e)

        return Response(DocumentSerializer(document).data, status=status.HTTP_201_CREATED)


class DocumentTotalsPreviewView(BaseJobRestView):
    """Totals for unsaved line items, as the editor shows them."""

    serializer_class = TotalsPreviewRequestSerializer

    @extend_schema(
        request=TotalsPreviewRequestSerializer,
        responses={
            200: TotalsPreviewResponseSerializer,
            400: DocumentErrorResponseSerializer,
        },
        tags=["Documents"],
    )
    def post(self, request):
        input_serializer = TotalsPreviewRequestSerializer(data=request.data)
        if not input_serializer.is_valid():
            return self.error_response(
                f"Validation failed: {input_serializer.errors}",
                status.HTTP_400_BAD_REQUEST,
            )
        data = input_serializer.validated_data

        try:
            totals = compute_totals(data["items"], data["discount_percent"])
            lines = [
                {key: str(value) for key, value in line.items()}
                for line in line_totals(data["items"])
            ]
        except Exception as e:
            return self.handle_service_error(e)

        return Response(
            {"totals": totals.as_dict(), "formatted": totals.formatted(), "lines": lines}
        )
