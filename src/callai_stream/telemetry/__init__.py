"""
Telemetry module for callai-stream: structured, credential-masking logging.
"""

from callai_stream.telemetry.logger import (
    CallAiLogger,
    JsonFormatter,
    LogContext,
    SensitiveDataMasker,
    TextFormatter,
    clear_log_context,
    get_log_context,
    get_logger,
    set_log_context,
)

__all__ = [
    "CallAiLogger",
    "JsonFormatter",
    "LogContext",
    "SensitiveDataMasker",
    "TextFormatter",
    "clear_log_context",
    "get_log_context",
    "get_logger",
    "set_log_context",
]
