from django.contrib import admin

from apps.job.models import Job, JobEvent


class JobEventInline(admin.TabularInline):
    model = JobEvent
    extra = 0
    can_delete = False
    fields = ("timestamp", "action", "actor", "description", "details")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ("reference", "title", "company", "status", "payment_status")
    list_filter = ("status", "payment_status", "company")
    search_fields = ("reference", "title")
    # Status moves only through JobStatusService
    readonly_fields = (
        "reference",
        "sequence_number",
        "status",
        "payment_status",
        "completed_at",
        "customer_snapshot",
        "created_at",
        "updated_at",
    )
    filter_horizontal = ("assigned_to",)
    inlines = [JobEventInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(JobEvent)
class JobEventAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "job", "action", "actor")
    list_filter = ("action",)
    search_fields = ("job__reference", "description")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
