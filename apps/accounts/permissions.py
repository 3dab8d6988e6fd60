from typing import TYPE_CHECKING

from django.http import HttpRequest
from rest_framework.permissions import BasePermission

if TYPE_CHECKING:
    from rest_framework.views import APIView


class IsTenantMember(BasePermission):
    """Authenticated staff attached to a company."""

    message = "Your account is not attached to a company."

    def has_permission(self, request: HttpRequest, view: "APIView") -> bool:
        return bool(
            request.user
            and request.user.is_authenticated
            and request.user.company_id is not None
        )


class IsCompanyAdmin(IsTenantMember):
    message = "Only company admins may perform this action."

    def has_permission(self, request: HttpRequest, view: "APIView") -> bool:
        return super().has_permission(request, view) and request.user.is_admin
