from rest_framework import serializers

from apps.accounts.models import Staff
from apps.job.enums import JobStatus
from apps.job.models import Job, JobEvent


class StaffSummarySerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="get_display_full_name", read_only=True)

    class Meta:
        model = Staff
        fields = ["id", "name", "role"]
        read_only_fields = fields


class JobSerializer(serializers.ModelSerializer):
    """Read-only job representation used by list and detail endpoints."""

    assigned_to = StaffSummarySerializer(many=True, read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    estimated_duration_minutes = serializers.SerializerMethodField()
    allowed_transitions = serializers.SerializerMethodField()

    class Meta:
        model = Job
        fields = (
            ["id"]
            + Job.JOB_DIRECT_FIELDS
            + [
                "status_display",
                "assigned_to",
                "estimated_duration_minutes",
                "allowed_transitions",
                "created_at",
                "updated_at",
            ]
        )
        read_only_fields = fields

    def get_estimated_duration_minutes(self, obj: Job) -> int | None:
        if obj.estimated_duration is None:
            return None
        return int(obj.estimated_duration.total_seconds() // 60)

    def get_allowed_transitions(self, obj: Job) -> list[str]:
        # Import here to avoid a circular import with the service layer
        from apps.job.services.job_status_service import JobStatusService

        user = self.context.get("user")
        if user is None:
            return []
        return JobStatusService.allowed_transitions(obj, user.id, user.role)


class JobEventSerializer(serializers.ModelSerializer):
    """Serializer for JobEvent model - read-only for frontend consumption"""

    actor = serializers.CharField(
        source="actor.get_display_full_name",
        read_only=True,
        allow_null=True,
        required=False,
    )
    timestamp = serializers.DateTimeField(read_only=True)

    class Meta:
        model = JobEvent
        fields = JobEvent.JOBEVENT_API_FIELDS
        read_only_fields = fields


class CustomerInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    company_name = serializers.CharField(required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    phone = serializers.CharField(required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)


class JobCreateRequestSerializer(serializers.Serializer):
    """Serializer for job creation request data."""

    title = serializers.CharField(max_length=200)
    customer_id = serializers.UUIDField(required=False, allow_null=True)
    customer = CustomerInputSerializer(required=False)
    assigned_to = serializers.ListField(
        child=serializers.UUIDField(), required=False, default=list
    )
    scheduled_date = serializers.DateTimeField(required=False, allow_null=True)
    estimated_duration_minutes = serializers.IntegerField(
        required=False, allow_null=True, min_value=0
    )
    price = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True
    )
    notes = serializers.CharField(required=False, allow_blank=True)


class JobTransitionRequestSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=JobStatus.choices)
    signature = serializers.CharField(required=False, allow_blank=True)
    sign_off = serializers.BooleanField(required=False, default=False)


class JobAdvanceRequestSerializer(serializers.Serializer):
    signature = serializers.CharField(required=False, allow_blank=True)
    sign_off = serializers.BooleanField(required=False, default=False)


class JobAssignRequestSerializer(serializers.Serializer):
    assigned_to = serializers.ListField(child=serializers.UUIDField())


class JobNoteRequestSerializer(serializers.Serializer):
    description = serializers.CharField()


class JobEventsResponseSerializer(serializers.Serializer):
    events = JobEventSerializer(many=True)


class JobTransitionEdgeSerializer(serializers.Serializer):
    from_status = serializers.CharField()
    to_status = serializers.CharField()
    allowed_roles = serializers.ListField(child=serializers.CharField())


class JobStatusChoicesResponseSerializer(serializers.Serializer):
    """Serializer for job status choices response"""

    statuses = serializers.DictField()
    tooltips = serializers.DictField()
    sequence = serializers.ListField(child=serializers.CharField())
    transitions = JobTransitionEdgeSerializer(many=True)


class JobRestErrorResponseSerializer(serializers.Serializer):
    """Serializer for job REST error responses."""

    error = serializers.CharField()
    code = serializers.CharField(required=False)
    retryable = serializers.BooleanField(required=False)
