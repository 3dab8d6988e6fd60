"""
Custom DRF exception handlers for the application.
"""

import logging
from typing import Optional

from rest_framework import status
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.workflow.exceptions import (
    Forbidden,
    IncompleteSnapshot,
    InvalidTransition,
    LifecycleError,
    SequenceConflict,
)

auth_logger = logging.getLogger("auth")
logger = logging.getLogger(__name__)

LIFECYCLE_STATUS_CODES = {
    Forbidden: status.HTTP_403_FORBIDDEN,
    InvalidTransition: status.HTTP_409_CONFLICT,
    IncompleteSnapshot: status.HTTP_400_BAD_REQUEST,
    SequenceConflict: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def lifecycle_error_response(exc: LifecycleError) -> Response:
    """Translate a lifecycle error into the user-facing response body."""
    status_code = status.HTTP_400_BAD_REQUEST
    for error_class, code in LIFECYCLE_STATUS_CODES.items():
        if isinstance(exc, error_class):
            status_code = code
            break

    body = {"error": exc.user_message, "code": exc.code, "retryable": exc.retryable}
    body.update(exc.details())
    return Response(body, status=status_code)


def custom_exception_handler(exc: Exception, context: dict) -> Optional[Response]:
    """
    Custom exception handler for lifecycle errors and permission denials.

    Lifecycle errors raised by the service layer become structured responses
    (InvalidTransition reports the disallowed edge, IncompleteSnapshot the
    missing fields). Permission denials are logged to the auth logger with
    user identity, endpoint, and HTTP method.
    """
    if isinstance(exc, LifecycleError):
        logger.info("Lifecycle error returned to client: %s", exc)
        return lifecycle_error_response(exc)

    response = exception_handler(exc, context)

    if isinstance(exc, PermissionDenied):
        request = context.get("request")
        view = context.get("view")

        user_info = "anonymous"
        if request and hasattr(request, "user"):
            user = request.user
            if hasattr(user, "is_authenticated") and user.is_authenticated:
                user_info = getattr(user, "email", None) or str(user.pk)

        endpoint = request.path if request else "unknown"
        method = request.method if request else "unknown"
        view_name = (
            f"{view.__class__.__module__}.{view.__class__.__name__}"
            if view
            else "unknown"
        )

        auth_logger.warning(
            "Permission denied: user=%s endpoint=%s method=%s view=%s",
            user_info,
            endpoint,
            method,
            view_name,
        )

    return response
