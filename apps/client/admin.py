from django.contrib import admin
from simple_history.admin import SimpleHistoryAdmin

from apps.client.models import Customer


@admin.register(Customer)
class CustomerAdmin(SimpleHistoryAdmin):
    list_display = ("name", "company_name", "postal_code", "phone", "company")
    list_filter = ("company",)
    search_fields = ("name", "company_name", "email", "postal_code")
    readonly_fields = ("created_at", "updated_at")
