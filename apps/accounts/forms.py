from typing import TYPE_CHECKING, Any

from django.contrib.auth.forms import UserChangeForm, UserCreationForm

from apps.accounts.models import Staff

if TYPE_CHECKING:
    _UserCreationFormBase = UserCreationForm[Staff]
else:
    _UserCreationFormBase = UserCreationForm


class StaffCreationForm(_UserCreationFormBase):
    """
    A form for creating staff users inside a tenant.
    Extends Django's UserCreationForm with the tenant and role fields.
    """

    class Meta:
        model = Staff
        fields = (
            "email",
            "first_name",
            "last_name",
            "display_name",
            "company",
            "role",
            "gas_safe_number",
            "is_staff",
        )

    error_messages = {
        "password_mismatch": "The two password fields didn't match.",
    }

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.fields["role"].help_text = (
            "Admins may cancel jobs and mark them paid. "
            "Workers may only move jobs they are assigned to."
        )


if TYPE_CHECKING:
    _UserChangeFormBase = UserChangeForm[Staff]
else:
    _UserChangeFormBase = UserChangeForm


class StaffChangeForm(_UserChangeFormBase):
    class Meta:
        model = Staff
        fields = (
            "email",
            "first_name",
            "last_name",
            "display_name",
            "company",
            "role",
            "phone",
            "gas_safe_number",
            "is_staff",
            "is_active",
        )
