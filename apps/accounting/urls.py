from django.urls import path

from apps.accounting.views.document_views import (
    DocumentCreateView,
    DocumentDetailView,
    DocumentIssueView,
    DocumentTotalsPreviewView,
    GasSafetyRecordView,
)

app_name = "documents"

urlpatterns = [
    path("", DocumentCreateView.as_view(), name="document_create"),
    path("totals/", DocumentTotalsPreviewView.as_view(), name="document_totals"),
    path("gas-safety/", GasSafetyRecordView.as_view(), name="gas_safety_create"),
    path("<uuid:document_id>/", DocumentDetailView.as_view(), name="document_detail"),
    path(
        "<uuid:document_id>/issue/",
        DocumentIssueView.as_view(),
        name="document_issue",
    ),
]
