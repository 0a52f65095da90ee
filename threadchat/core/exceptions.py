"""
Exception hierarchy for the thread chat relay.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging, plus the
HTTP status and machine-readable code used at the request boundary.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class ThreadChatError(Exception):
    """Base exception for all relay errors."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(ThreadChatError):
    """Raised when a request is missing required fields or carries bad values."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class NotFoundError(ThreadChatError):
    """Base class for absent records."""

    status_code = 404
    code = "NOT_FOUND"


class SessionNotFoundError(NotFoundError):
    """Raised when no chat record matches a conversation id."""

    code = "SESSION_NOT_FOUND"

    def __init__(self, conversation_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["conversation_id"] = conversation_id
        super().__init__(f"Chat record not found: {conversation_id}", details)


class DocumentNotFoundError(NotFoundError):
    """Raised when no document record matches a document id."""

    code = "DOCUMENT_NOT_FOUND"

    def __init__(self, document_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["document_id"] = document_id
        super().__init__(f"Document not found: {document_id}", details)


class PersonaNotFoundError(NotFoundError):
    """Raised when an explicitly requested persona is not stored."""

    code = "PERSONA_NOT_FOUND"

    def __init__(self, name: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["persona"] = name
        super().__init__(f"Persona not found: {name}", details)


class UpstreamUnavailableError(ThreadChatError):
    """Raised when the record store or language-model service call fails."""

    status_code = 502
    code = "UPSTREAM_UNAVAILABLE"

    def __init__(
        self,
        message: str,
        service: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize upstream error.

        Args:
            message: Error message
            service: Upstream service name (kintone, openai)
            operation: Operation that failed
            details: Additional context
        """
        details = details or {}
        if service:
            details["service"] = service
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class UpstreamTimeoutError(UpstreamUnavailableError):
    """Raised when an upstream call or the whole turn exceeds its time budget."""

    status_code = 504
    code = "UPSTREAM_TIMEOUT"


class RunNotCompletedError(ThreadChatError):
    """Raised when a generation run ends in a terminal status other than completed."""

    status_code = 502
    code = "RUN_NOT_COMPLETED"

    def __init__(
        self,
        status: str,
        run_id: str | None = None,
        last_error: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["status"] = status
        if run_id:
            details["run_id"] = run_id
        if last_error:
            details["last_error"] = last_error
        self.status = status
        self.run_id = run_id
        self.last_error = last_error
        message = f"Run did not complete (status: {status})"
        if last_error:
            message = f"{message}: {last_error}"
        super().__init__(message, details)


class ConcurrentUpdateError(ThreadChatError):
    """Raised when a record changed since it was read (revision conflict)."""

    status_code = 409
    code = "CONCURRENT_UPDATE"
