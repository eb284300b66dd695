"""
Custom exception classes for the maturity scoring engine.

Every error carries a technical message for the logs and a user-facing
message that is safe to show at the service boundary without leaking
row-level detail.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any


class MaturityAssessmentError(Exception):
    """Root of every error the engine raises on purpose."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.user_message = user_message or self._get_default_user_message()

    def _get_default_user_message(self) -> str:
        return "An unexpected error occurred. Please try again."

    def __str__(self) -> str:
        return f"{self.__class__.__name__}: {self.message}"


class ValidationError(MaturityAssessmentError):
    """A single submitted field was rejected."""

    def __init__(
        self, field: str, message: str, value: Any = None, details: dict[str, Any] | None = None
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=f"Validation failed for field '{field}': {message}",
            details=details or {"field": field, "value": value},
            user_message=f"Invalid {field.replace('_', ' ')}: {message}",
        )


class MultipleValidationError(MaturityAssessmentError):
    """Raised when several fields fail validation at once."""

    def __init__(self, errors: list[ValidationError]):
        self.validation_errors = errors
        messages = [f"{e.field}: {e.message}" for e in errors]
        super().__init__(
            message=f"Multiple validation errors: {'; '.join(messages)}",
            details={
                "errors": [
                    {"field": e.field, "message": e.message, "value": e.value} for e in errors
                ]
            },
            user_message="Some answers were not accepted. Please correct them and try again.",
        )


class DatabaseError(MaturityAssessmentError):
    """The store failed; most such failures clear up on retry."""

    retryable = True

    def __init__(self, message: str, operation: str, details: dict[str, Any] | None = None):
        self.operation = operation
        super().__init__(
            message=f"Database error during {operation}: {message}",
            details=details or {"operation": operation},
            user_message="Saving failed. Please try again in a moment.",
        )


class ConnectionError(DatabaseError):
    """Raised when the database cannot be reached."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, operation="connection", details=details)
        self.user_message = (
            "Unable to connect to the database. Please check your connection and try again."
        )


class IntegrityError(DatabaseError):
    """A constraint rejected the write, typically a concurrent upsert of the same key."""

    def __init__(
        self,
        message: str,
        constraint: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.constraint = constraint
        super().__init__(
            message=message,
            operation="integrity_check",
            details=details or {"constraint": constraint},
        )
        self.user_message = self._constraint_user_message()

    def _constraint_user_message(self) -> str:
        if self.constraint:
            if "unique" in self.constraint.lower():
                return "A conflicting update was saved at the same time. Please try again."
            if "foreign" in self.constraint.lower():
                return "The catalog changed while you were answering. Please refresh and try again."
        return "The answer could not be saved as given. Please review it and try again."


class ResponseError(MaturityAssessmentError):
    """Raised when an assessment response cannot be processed."""

    def __init__(
        self,
        message: str,
        response_id: int | None = None,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        self.response_id = response_id
        super().__init__(
            message=message,
            details=details or {"response_id": response_id},
            user_message=user_message,
        )

    def _get_default_user_message(self) -> str:
        return "The assessment could not be completed. Please try again."


class ResponseNotFoundError(ResponseError):
    """Raised when an assessment response does not exist."""

    def __init__(self, response_id: int):
        super().__init__(
            message=f"Assessment response with ID {response_id} not found",
            response_id=response_id,
            user_message="The assessment response could not be found.",
        )


class IncompleteAssessmentError(ResponseError):
    """Raised when completion is requested before every topic is answered."""

    def __init__(self, response_id: int, answered: int, total: int):
        self.answered = answered
        self.total = total
        super().__init__(
            message=(
                f"Assessment response {response_id} is incomplete: "
                f"{answered} of {total} topics answered"
            ),
            response_id=response_id,
            details={"response_id": response_id, "answered": answered, "total": total},
            user_message="Please answer every topic before completing the assessment.",
        )


class ResponseNotCompletedError(ResponseError):
    """Raised when results are requested for a response that is still in progress."""

    def __init__(self, response_id: int):
        super().__init__(
            message=f"Assessment response {response_id} has not been completed",
            response_id=response_id,
            user_message="Results are available once the assessment is completed.",
        )


class TopicNotFoundError(MaturityAssessmentError):
    """Raised when a topic does not belong to the response's assessment."""

    def __init__(self, topic_id: int):
        self.topic_id = topic_id
        super().__init__(
            message=f"Topic with ID {topic_id} not found",
            details={"topic_id": topic_id},
            user_message="The selected topic could not be found. Please refresh and try again.",
        )


class ScoringError(MaturityAssessmentError):
    """Raised when scoring cannot proceed, e.g. a broken topic/dimension reference."""

    retryable = True

    def __init__(
        self, message: str, response_id: int | None = None, details: dict[str, Any] | None = None
    ):
        self.response_id = response_id
        super().__init__(
            message=message,
            details=details or {"response_id": response_id},
            user_message="The assessment could not be completed. Please try again.",
        )


class ExportError(MaturityAssessmentError):
    """Raised when a results export fails."""

    def __init__(
        self,
        message: str,
        export_format: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.export_format = export_format
        super().__init__(
            message=message,
            details=details or {"export_format": export_format},
            user_message="Export failed. Please try again or choose a different format.",
        )


def handle_database_error(e: Exception, operation: str = "database operation") -> DatabaseError:
    """
    Translate a driver or SQLAlchemy failure into this module's error types.

    Lock contention is checked before connectivity so that a MySQL
    "lock wait timeout" is treated as retryable contention, not an outage.

    Example:
        >>> try:
        ...     session.flush()
        ... except SQLAlchemyError as e:
        ...     raise handle_database_error(e, "upsert_priorities") from e
    """
    text = str(e)
    lowered = text.lower()
    for markers, build in _DB_ERROR_MARKERS:
        if any(marker in lowered for marker in markers):
            return build(text)
    return DatabaseError(text, operation)


_DB_ERROR_MARKERS: tuple[tuple[tuple[str, ...], Callable[[str], DatabaseError]], ...] = (
    (
        ("deadlock", "could not serialize", "lock wait timeout"),
        lambda text: DatabaseError(text, "serialization"),
    ),
    (
        ("connection", "timeout", "server has gone away"),
        lambda text: ConnectionError(text),
    ),
    (
        ("unique constraint", "duplicate"),
        lambda text: IntegrityError(text, constraint="unique"),
    ),
    (
        ("foreign key", "foreign_key"),
        lambda text: IntegrityError(text, constraint="foreign_key"),
    ),
    (("check constraint",), lambda text: IntegrityError(text, constraint="check")),
)

_BUILTIN_USER_MESSAGES = {
    ValueError: "Some of the submitted values were not accepted. Please review them and try again.",
    KeyError: "A required value was missing from the request.",
    TypeError: "A submitted value had the wrong type.",
}


def create_user_friendly_error_message(error: Exception) -> str:
    """
    Message safe to show a respondent for any exception.

    Example:
        >>> create_user_friendly_error_message(ResponseNotFoundError(7))
        'The assessment response could not be found.'
    """
    if isinstance(error, MaturityAssessmentError):
        return error.user_message
    for error_type, message in _BUILTIN_USER_MESSAGES.items():
        if isinstance(error, error_type):
            return message
    return "An unexpected error occurred while scoring. Please try again or contact support."


def log_error_details(error: Exception, context: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Flatten an exception into a dict for the ``extra`` of a log call.

    Example:
        >>> details = log_error_details(ScoringError("boom", response_id=3))
        >>> details["error_type"]
        'ScoringError'
    """
    details: dict[str, Any] = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "context": dict(context or {}),
    }
    if isinstance(error, MaturityAssessmentError):
        details["user_message"] = error.user_message
        details["error_details"] = error.details
        details["retryable"] = error.retryable
    return details
