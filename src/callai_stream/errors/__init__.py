"""Error hierarchy for callai-stream."""

from callai_stream.errors.base import (
    CallAiError,
    ErrorContext,
    PipelineError,
    RemoteError,
)
from callai_stream.errors.classification import (
    ErrorClass,
    classify_http_error,
    extract_error_message,
    is_invalid_model_error,
)

__all__ = [
    "CallAiError",
    "ErrorClass",
    "ErrorContext",
    "PipelineError",
    "RemoteError",
    "classify_http_error",
    "extract_error_message",
    "is_invalid_model_error",
]
