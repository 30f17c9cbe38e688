"""Exceptions raised by callai-stream.

``CallAiError`` is the root. ``PipelineError`` means a stage was built or
driven incorrectly, and ``RemoteError`` carries an HTTP error response from
the chat-completion API. Network failures have no class here: they are
raised by httpx and reach the caller unchanged.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from callai_stream.errors.classification import ErrorClass

_REQUEST_ID_HEADERS = ("x-request-id", "request-id", "x-generation-id")


@dataclass
class ErrorContext:
    """Origin of an error plus key/value details for logs."""

    source: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        if not self.source:
            return ""
        if not self.details:
            return f"[{self.source}]"
        pairs = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"[{self.source}] ({pairs})"


class CallAiError(Exception):
    """Root of the callai-stream error hierarchy.

    Attributes:
        message: Human-readable error message
        context: Where the error came from
    """

    def __init__(self, message: str, context: ErrorContext | None = None) -> None:
        self.message = message
        self.context = context or ErrorContext()
        suffix = str(self.context)
        super().__init__(f"{message} {suffix}" if suffix else message)


class PipelineError(CallAiError):
    """A stage was configured or wired incorrectly.

    Malformed stream input never raises this; the stage that sees it drops it.
    """

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        details = {"stage": stage} if stage else {}
        super().__init__(message, ErrorContext(source="pipeline", details=details))
        self.stage = stage


class RemoteError(CallAiError):
    """The chat-completion API answered with HTTP status >= 400.

    The body is kept exactly as received in ``body_text``; ``raw_error`` is
    its parsed form when it was a JSON object.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        error_class: ErrorClass,
        raw_error: dict[str, Any] | None = None,
        body_text: str = "",
        request_id: str | None = None,
    ) -> None:
        details: dict[str, Any] = {
            "status_code": status_code,
            "error_class": error_class.value,
        }
        if request_id:
            details["request_id"] = request_id
        super().__init__(message, ErrorContext(source="remote", details=details))

        self.status_code = status_code
        self.error_class = error_class
        self.raw_error = raw_error or {}
        self.body_text = body_text
        self.request_id = request_id

    @property
    def is_invalid_model(self) -> bool:
        """Whether the API rejected the requested model id."""
        from callai_stream.errors.classification import is_invalid_model_error

        return is_invalid_model_error(self.status_code, self.raw_error, self.body_text)

    @classmethod
    def from_response(
        cls,
        status_code: int,
        body_text: str = "",
        headers: dict[str, str] | None = None,
    ) -> RemoteError:
        """Build the error for a failed response.

        Args:
            status_code: HTTP status code
            body_text: Raw response body
            headers: Response headers, looked up for a provider request id

        Returns:
            A classified RemoteError
        """
        from callai_stream.errors.classification import (
            classify_http_error,
            extract_error_message,
        )

        body = _parse_object(body_text)
        error_class = classify_http_error(status_code, body, body_text)
        lowered = {k.lower(): v for k, v in (headers or {}).items()}
        request_id = next((lowered[h] for h in _REQUEST_ID_HEADERS if lowered.get(h)), None)

        return cls(
            extract_error_message(body) or body_text.strip() or f"HTTP {status_code}",
            status_code=status_code,
            error_class=error_class,
            raw_error=body,
            body_text=body_text,
            request_id=request_id,
        )


def _parse_object(text: str) -> dict[str, Any] | None:
    if not text:
        return None
    try:
        parsed = json.loads(text)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None
