from django.urls import path

from apps.job import consumers

websocket_urlpatterns = [
    path("ws/jobs/", consumers.CompanyJobsConsumer.as_asgi()),
    path(
        "ws/jobs/<uuid:job_id>/activity/",
        consumers.JobActivityConsumer.as_asgi(),
    ),
]
