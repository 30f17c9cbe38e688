"""Error classification for chat-completion API responses.

Maps HTTP status codes and error bodies onto a small set of error classes
and recognizes the "invalid model id" signature that triggers model
fallback.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorClass(str, Enum):
    """Standard error classification."""

    INVALID_REQUEST = "invalid_request"
    """Malformed request body or invalid parameters."""

    INVALID_MODEL = "invalid_model"
    """The requested model id is unknown to the API."""

    AUTHENTICATION = "authentication"
    """Missing/invalid/expired credentials."""

    PERMISSION_DENIED = "permission_denied"
    """Authenticated but not permitted."""

    NOT_FOUND = "not_found"
    """Requested resource not found."""

    QUOTA_EXHAUSTED = "quota_exhausted"
    """Account credit or spend limit exceeded."""

    RATE_LIMITED = "rate_limited"
    """Throttled by the API."""

    TIMEOUT = "timeout"
    """Upstream deadline exceeded."""

    SERVER_ERROR = "server_error"
    """Transient server-side failure (5xx)."""

    OVERLOADED = "overloaded"
    """Service temporarily unavailable."""

    OTHER = "other"
    """Unknown classification."""


_DEFAULT_STATUS_MAPPING: dict[int, ErrorClass] = {
    400: ErrorClass.INVALID_REQUEST,
    401: ErrorClass.AUTHENTICATION,
    402: ErrorClass.QUOTA_EXHAUSTED,
    403: ErrorClass.PERMISSION_DENIED,
    404: ErrorClass.NOT_FOUND,
    408: ErrorClass.TIMEOUT,
    422: ErrorClass.INVALID_REQUEST,
    429: ErrorClass.RATE_LIMITED,
    500: ErrorClass.SERVER_ERROR,
    502: ErrorClass.SERVER_ERROR,
    503: ErrorClass.OVERLOADED,
    504: ErrorClass.TIMEOUT,
}

# Statuses OpenRouter/OpenAI use when rejecting a model id
_INVALID_MODEL_STATUSES = {400, 404}

_INVALID_MODEL_PATTERNS = (
    "invalid model",
    "not a valid model",
    "model not found",
    "no such model",
    "unknown model",
    "model_not_found",
    "does not exist",
)


def extract_error_message(body: dict[str, Any] | None) -> str | None:
    """Extract an error message from a response body.

    Supports:
    - OpenAI/OpenRouter style: {"error": {"message": "..."}}
    - Simple: {"error": "..."} or {"message": "..."}
    - Detail field: {"detail": "..."}

    Args:
        body: Response body (parsed JSON)

    Returns:
        Error message if found, None otherwise
    """
    if not body:
        return None

    if "error" in body:
        error = body["error"]
        if isinstance(error, dict):
            msg = error.get("message")
            if isinstance(msg, str):
                return msg
        elif isinstance(error, str):
            return error

    if "message" in body:
        msg = body["message"]
        if isinstance(msg, str):
            return msg

    if "detail" in body:
        detail = body["detail"]
        if isinstance(detail, str):
            return detail
        if isinstance(detail, list) and detail:
            return str(detail[0])

    return None


def is_invalid_model_error(
    status_code: int,
    body: dict[str, Any] | None = None,
    body_text: str = "",
) -> bool:
    """Check whether an error response rejects the requested model id.

    Args:
        status_code: HTTP status code
        body: Parsed JSON error body, if any
        body_text: Raw body text (used when the body is not JSON)

    Returns:
        True if the response carries an invalid-model signature
    """
    if status_code not in _INVALID_MODEL_STATUSES:
        return False

    haystack: list[str] = []
    message = extract_error_message(body)
    if message:
        haystack.append(message.lower())
    if body and isinstance(body.get("error"), dict):
        code = body["error"].get("code")
        if isinstance(code, str):
            haystack.append(code.lower())
    if body_text:
        haystack.append(body_text.lower())

    for text in haystack:
        if "model" not in text:
            continue
        if any(pattern in text for pattern in _INVALID_MODEL_PATTERNS):
            return True
    return False


def classify_http_error(
    status_code: int,
    body: dict[str, Any] | None = None,
    body_text: str = "",
) -> ErrorClass:
    """Classify an HTTP error into a standard error class.

    Body-based hints take precedence over the status code alone.

    Args:
        status_code: HTTP status code
        body: Response body (parsed JSON)
        body_text: Raw response body

    Returns:
        ErrorClass representing the error type
    """
    if is_invalid_model_error(status_code, body, body_text):
        return ErrorClass.INVALID_MODEL

    if status_code == 429 and body:
        msg_lower = (extract_error_message(body) or "").lower()
        for pattern in ("quota", "credit", "billing", "spend"):
            if pattern in msg_lower:
                return ErrorClass.QUOTA_EXHAUSTED

    if status_code in _DEFAULT_STATUS_MAPPING:
        return _DEFAULT_STATUS_MAPPING[status_code]

    if 400 <= status_code < 500:
        return ErrorClass.INVALID_REQUEST
    if 500 <= status_code < 600:
        return ErrorClass.SERVER_ERROR

    return ErrorClass.OTHER
