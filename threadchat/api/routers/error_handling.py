"""
Request-boundary error handling.

A decorator that turns relay exceptions into structured JSON error
responses, plus the handler that reshapes request-body validation errors.
No exception escapes a route.
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from threadchat.core.exceptions import ThreadChatError
from threadchat.models.common import ErrorResponse

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def error_response(status_code: int, message: str, code: str, details: dict | None = None) -> JSONResponse:
    body = ErrorResponse(error=message, code=code, details=details or None)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def handle_relay_errors(func: F) -> F:
    """
    Decorator mapping exceptions raised by a route to error payloads.

    - ThreadChatError subclasses use their own status and code
    - anything else becomes a 500 and is logged with its traceback
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)

        except ThreadChatError as e:
            log = logger.warning if e.status_code < 500 else logger.error
            log("%s: %s", e.code, e.message, extra={"details": e.details})
            return error_response(e.status_code, e.message, e.code, e.details)

        except Exception as e:
            logger.exception("Unexpected failure", extra={"error": str(e)})
            return error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                f"An internal error occurred: {e}",
                "INTERNAL_ERROR",
            )

    return wrapper  # type: ignore


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 with the error payload shape."""
    errors = exc.errors()
    fields = [".".join(str(part) for part in error.get("loc", ()) if part != "body") for error in errors]
    logger.warning("Invalid request body: %s", fields)
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        ("Invalid request: " + ", ".join(f for f in fields if f)) if any(fields) else "Invalid request",
        "VALIDATION_ERROR",
        {"errors": [{"field": f, "message": e.get("msg")} for f, e in zip(fields, errors)]},
    )
