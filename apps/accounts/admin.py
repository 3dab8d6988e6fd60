from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from apps.accounts.forms import StaffChangeForm, StaffCreationForm
from apps.accounts.models import Staff


@admin.register(Staff)
class StaffAdmin(UserAdmin):
    add_form = StaffCreationForm
    form = StaffChangeForm
    model = Staff

    list_display = (
        "email",
        "first_name",
        "last_name",
        "company",
        "role",
        "is_active",
    )
    list_filter = (
        "role",
        "is_staff",
        "is_active",
        "company",
    )
    fieldsets = (
        (None, {"fields": ("email", "password")}),
        (
            "Personal Info",
            {
                "fields": (
                    "first_name",
                    "last_name",
                    "display_name",
                    "phone",
                    "gas_safe_number",
                )
            },
        ),
        ("Tenant", {"fields": ("company", "role")}),
        (
            "Permissions",
            {
                "fields": (
                    "is_staff",
                    "is_active",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                )
            },
        ),
        ("Important dates", {"fields": ("last_login", "date_joined")}),
    )
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": (
                    "email",
                    "first_name",
                    "last_name",
                    "display_name",
                    "company",
                    "role",
                    "gas_safe_number",
                    "password1",
                    "password2",
                    "is_staff",
                ),
            },
        ),
    )
    search_fields = ("email", "first_name", "last_name", "display_name")
    ordering = ("email",)
