from django.urls import path

from apps.job.views.job_rest_views import (
    JobAdvanceRestView,
    JobAssignRestView,
    JobDetailRestView,
    JobEventListRestView,
    JobListCreateRestView,
    JobStatusChoicesRestView,
    JobTransitionRestView,
)

app_name = "jobs"

urlpatterns = [
    path("", JobListCreateRestView.as_view(), name="job_list_create"),
    path(
        "status-choices/",
        JobStatusChoicesRestView.as_view(),
        name="job_status_choices",
    ),
    path("<uuid:job_id>/", JobDetailRestView.as_view(), name="job_detail"),
    path(
        "<uuid:job_id>/status/",
        JobTransitionRestView.as_view(),
        name="job_transition",
    ),
    path("<uuid:job_id>/advance/", JobAdvanceRestView.as_view(), name="job_advance"),
    path("<uuid:job_id>/assign/", JobAssignRestView.as_view(), name="job_assign"),
    path("<uuid:job_id>/events/", JobEventListRestView.as_view(), name="job_events"),
]
