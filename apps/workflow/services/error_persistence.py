import inspect
import logging
import traceback
from pathlib import Path
from typing import NoReturn

from apps.workflow.exceptions import AlreadyLoggedException
from apps.workflow.models import AppError

logger = logging.getLogger(__name__)


def _extract_caller_context(depth: int = 2):
    """Automatically extract context from the calling function."""
    frame = inspect.currentframe()
    try:
        # Walk up: _extract_caller_context -> persist_* -> actual caller
        caller_frame = frame
        for _ in range(depth):
            caller_frame = caller_frame.f_back

        file_path = Path(caller_frame.f_code.co_filename)

        # Extract app name from path (e.g., apps/job/services/x.py -> job)
        parts = file_path.parts
        if "apps" in parts:
            app_index = parts.index("apps")
            app_name = parts[app_index + 1] if len(parts) > app_index + 1 else None
            relative_file = "/".join(parts[app_index + 1 :])
        else:
            app_name = None
            relative_file = file_path.name

        function_name = caller_frame.f_code.co_name

        return {"app": app_name, "file": relative_file, "function": function_name}
    finally:
        del frame


def persist_app_error(
    exception: Exception,
    app: str = None,
    file: str = None,
    function: str = None,
    severity: int = logging.ERROR,
    company_id: str = None,
    job_id: str = None,
    user_id: str = None,
    additional_context: dict = None,
) -> AppError:
    """Create and save an AppError with enhanced context.

    The app, file, and function parameters are automatically extracted from
    the calling code. Provide them explicitly if the auto-extraction picks
    the wrong frame.

    Args:
        exception: The exception to persist
        app: App name (auto-extracted from file path if not provided)
        file: File path (auto-extracted from caller if not provided)
        function: Function name (auto-extracted from caller if not provided)
        severity: Logging severity level (default: logging.ERROR)
        company_id: Tenant UUID
        job_id: Job UUID for job-related errors
        user_id: User UUID for user-related errors
        additional_context: Additional context data to store in JSON field

    Returns:
        Created AppError instance
    """
    caller_context = _extract_caller_context()

    context_data = {"trace": traceback.format_exc()}
    if additional_context:
        context_data.update(additional_context)

    return AppError.objects.create(
        message=str(exception),
        data=context_data,
        app=app or caller_context["app"],
        file=file or caller_context["file"],
        function=function or caller_context["function"],
        severity=severity,
        company_id=company_id,
        job_id=job_id,
        user_id=user_id,
    )


def persist_and_raise(exception: Exception, **kwargs) -> NoReturn:
    """Persist ``exception`` once and raise AlreadyLoggedException from it.

    If the exception was already persisted further down the stack it is
    re-raised untouched.
    """
    if isinstance(exception, AlreadyLoggedException):
        raise exception

    try:
        app_error = persist_app_error(exception, **kwargs)
        app_error_id = str(app_error.id)
    except Exception as persist_error:
        # The error table itself may be unreachable (e.g. the database is down)
        logger.error(f"Failed to persist error '{exception}': {persist_error}")
        app_error_id = None

    raise AlreadyLoggedException(exception, app_error_id) from exception
