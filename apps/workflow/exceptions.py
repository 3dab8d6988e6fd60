from typing import Any, Dict, Iterable, List, Optional


class AlreadyLoggedException(Exception):
    """Raised once an exception has been persisted as an AppError.

    Callers further up the stack catch this instead of the original error so
    the same failure is not written twice.

    Args:
        original: The exception that was persisted.
        app_error_id: Primary key of the stored AppError.
    """

    def __init__(self, original: Exception, app_error_id: Optional[str]) -> None:
        self.original = original
        self.app_error_id = app_error_id
        super().__init__(str(original))


class LifecycleError(Exception):
    """Base class for job and document lifecycle failures.

    ``user_message`` is safe to show to the person who triggered the action.
    ``retryable`` tells the caller whether repeating the same request can
    succeed without anything else changing.
    """

    code = "lifecycle_error"
    retryable = False

    def __init__(self, user_message: str) -> None:
        self.user_message = user_message
        super().__init__(user_message)

    def details(self) -> Dict[str, Any]:
        return {}


class SequenceConflict(LifecycleError):
    """A reference number could not be allocated after the bounded retries."""

    code = "sequence_conflict"
    retryable = True

    def __init__(self, company_id: Any, counter_name: str, attempts: int) -> None:
        self.company_id = company_id
        self.counter_name = counter_name
        self.attempts = attempts
        super().__init__(
            "Could not allocate a new number right now. Please try again."
        )

    def details(self) -> Dict[str, Any]:
        return {"counter": self.counter_name, "attempts": self.attempts}


class InvalidTransition(LifecycleError):
    """The requested status is not reachable from the job's current status."""

    code = "invalid_transition"

    def __init__(
        self, from_status: str, to_status: str, reason: Optional[str] = None
    ) -> None:
        self.from_status = from_status
        self.to_status = to_status
        message = f"Cannot move a job from '{from_status}' to '{to_status}'."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {"from": self.from_status, "to": self.to_status}


class IncompleteTransition(InvalidTransition):
    """The edge is legal but a required artifact (e.g. signature) is missing."""

    code = "incomplete_transition"

    def __init__(self, from_status: str, to_status: str, missing: str) -> None:
        self.missing = missing
        super().__init__(
            from_status, to_status, reason=f"A {missing} is required first."
        )

    def details(self) -> Dict[str, Any]:
        data = super().details()
        data["missing"] = self.missing
        return data


class Forbidden(LifecycleError):
    """The actor's role (or assignment) does not permit this transition."""

    code = "forbidden"

    def __init__(self, actor_role: str, from_status: str, to_status: str) -> None:
        self.actor_role = actor_role
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"A {actor_role} cannot move this job from '{from_status}' "
            f"to '{to_status}'."
        )

    def details(self) -> Dict[str, Any]:
        return {
            "role": self.actor_role,
            "from": self.from_status,
            "to": self.to_status,
        }


class IncompleteSnapshot(LifecycleError):
    """A locked payload is missing fields that must be captured before issue."""

    code = "incomplete_snapshot"

    def __init__(self, kind: str, missing_fields: Iterable[str]) -> None:
        self.kind = kind
        self.missing_fields: List[str] = list(missing_fields)
        super().__init__(
            f"Cannot complete the {kind} document. Missing: "
            f"{', '.join(self.missing_fields)}."
        )

    def details(self) -> Dict[str, Any]:
        return {"kind": self.kind, "missing_fields": self.missing_fields}


class ImmutableRecordError(Exception):
    """An attempt was made to change or remove a write-once record."""
