from django.contrib import admin
from simple_history.admin import SimpleHistoryAdmin

from apps.workflow.models import AppError, Company, SequenceCounter


class SequenceCounterInline(admin.TabularInline):
    model = SequenceCounter
    extra = 0
    can_delete = False
    readonly_fields = ("name", "next_value", "updated_at")

    def has_add_permission(self, request, obj=None):
        # Counters are created on first allocation
        return False


@admin.register(Company)
class CompanyAdmin(SimpleHistoryAdmin):
    list_display = ("name", "reference_prefix", "email", "phone", "created_at")
    search_fields = ("name", "email")
    readonly_fields = ("created_at", "updated_at")
    inlines = [SequenceCounterInline]


@admin.register(AppError)
class AppErrorAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "app", "function", "severity", "resolved", "message")
    list_filter = ("resolved", "severity", "app")
    search_fields = ("message",)
    readonly_fields = (
        "timestamp",
        "message",
        "data",
        "app",
        "file",
        "function",
        "severity",
        "company_id",
        "job_id",
        "user_id",
    )
