"""Context collection for thrown values.

Turns an arbitrary thrown value plus caller-supplied request facts into
an ErrorContext. Never raises.
"""

import os
import traceback
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from .models import ErrorContext

FALLBACK_MESSAGE = "Unknown error"
DEFAULT_ENVIRONMENT = "development"
ENVIRONMENT_VARIABLE = "ENVIRONMENT"


def current_environment() -> str:
    """Read the deployment environment name; not cached."""
    return os.environ.get(ENVIRONMENT_VARIABLE) or DEFAULT_ENVIRONMENT


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"


def _format_traceback(exc: BaseException) -> str | None:
    if exc.__traceback__ is None:
        return None
    return "".join(
        traceback.format_exception(type(exc), exc, exc.__traceback__)
    ).rstrip("\n")


def _stack_attribute(error: Any) -> Any:
    try:
        return getattr(error, "stack", None)
    except Exception:
        return None


def _error_like_fields(error: Any) -> tuple[str, str | None] | None:
    """Message and stack of a mapping or object that looks like an error."""
    if isinstance(error, Mapping):
        if "message" not in error:
            return None
        raw_message, raw_stack = error["message"], error.get("stack")
    elif not isinstance(error, str) and hasattr(error, "message"):
        raw_message, raw_stack = error.message, _stack_attribute(error)
    else:
        return None
    return _safe_str(raw_message), _safe_str(raw_stack) if raw_stack else None


def extract_message_and_stack(error: Any) -> tuple[str, str | None]:
    """Pull a message and optional stack out of a thrown value.

    Exceptions, mappings with a "message" key and objects exposing a
    ``message`` attribute are treated as error-like. Anything else is
    converted with str(), so None becomes "None".
    """
    if isinstance(error, BaseException):
        message = _safe_str(error)
        stack = _format_traceback(error)
    else:
        try:
            fields = _error_like_fields(error)
        except Exception:
            # Accessors on error-like values may raise anything
            fields = None
        message, stack = fields if fields is not None else (_safe_str(error), None)

    return message or FALLBACK_MESSAGE, stack


def collect_error_context(
    error: Any,
    *,
    url: str | None = None,
    user_agent: str | None = None,
    request_method: str | None = None,
    user_id: str | None = None,
    session_id: str | None = None,
    additional_data: Mapping[str, Any] | None = None,
    environment: str | None = None,
) -> ErrorContext:
    """Build an ErrorContext from a thrown value and request facts.

    Args:
        error: Any thrown value (exception, error-like mapping/object, or other).
        url: Request or page URL where the error happened.
        user_agent: Client user agent string.
        request_method: HTTP method of the failing request.
        user_id: Optional user correlation id.
        session_id: Optional session correlation id.
        additional_data: Free-form extra facts (headers, component stack, ...).
        environment: Deployment environment; read from ENVIRONMENT when omitted.

    Returns:
        ErrorContext with a non-empty message and an ISO-8601 UTC timestamp.
    """
    message, stack = extract_message_and_stack(error)

    return ErrorContext(
        message=message,
        stack=stack,
        timestamp=datetime.now(timezone.utc).isoformat(),
        url=url,
        user_agent=user_agent,
        request_method=request_method,
        environment=environment or current_environment(),
        user_id=user_id,
        session_id=session_id,
        additional_data=dict(additional_data) if additional_data is not None else None,
    )
