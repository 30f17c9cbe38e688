"""
Logging for callai-stream.

Every module logs through ``get_logger(name)``, which hands out a
``CallAiLogger`` under the ``callai_stream`` logger. Records carry keyword
fields plus the current ``LogContext`` (request id, model, attempt number),
and API keys and bearer tokens are masked before anything is written.

    >>> CallAiLogger.configure(level="DEBUG", format="json")
    >>> get_logger("callai_stream.client").info("Sending", model="openai/gpt-4o")
"""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, ClassVar, TextIO

ROOT_LOGGER = "callai_stream"
REDACTED = "***REDACTED***"

_CONTEXT_FIELDS = ("request_id", "model", "attempt")

_current_context: ContextVar[LogContext | None] = ContextVar("callai_log_context", default=None)


@dataclass(frozen=True)
class LogContext:
    """Fields attached to every record logged while this context is set.

    The client sets ``request_id`` and ``model`` for a logical request; the
    fallback orchestrator updates ``model`` and ``attempt`` for every send.
    """

    request_id: str | None = None
    model: str | None = None
    attempt: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Set fields only, context fields first."""
        result = {name: getattr(self, name) for name in _CONTEXT_FIELDS}
        result = {name: value for name, value in result.items() if value is not None}
        result.update(self.extra)
        return result

    def evolve(self, **changes: Any) -> LogContext:
        """Copy with fields replaced; names that are not fields go to ``extra``."""
        known = {name: changes.pop(name) for name in _CONTEXT_FIELDS if name in changes}
        return replace(self, **known, extra={**self.extra, **changes})


def get_log_context() -> LogContext:
    """Context of the current task, empty when none is set."""
    return _current_context.get() or LogContext()


def set_log_context(context: LogContext) -> None:
    _current_context.set(context)


def clear_log_context() -> None:
    _current_context.set(None)


class SensitiveDataMasker:
    """Redacts credentials from log text and keyword fields.

    Text is scanned for API keys, bearer tokens and ``key=value`` style
    credential assignments. In field mappings, any key whose last
    ``_``-separated word is a credential word is replaced outright.
    """

    PATTERNS: ClassVar[tuple[tuple[str, str], ...]] = (
        (r"sk-or-v1-[a-z0-9]{16,}", "sk-or-" + REDACTED),
        (r"sk-[a-z0-9]{20,}", "sk-" + REDACTED),
        (r"(bearer\s+)\S+", r"\1" + REDACTED),
        (r"((?:api[_-]?key|authorization)[\"']?\s*[:=]\s*[\"']?)[^\"'\s]+", r"\1" + REDACTED),
    )
    SENSITIVE_WORDS: ClassVar[frozenset[str]] = frozenset(
        {"key", "apikey", "token", "secret", "password", "authorization", "auth"}
    )

    def __init__(self, patterns: tuple[tuple[str, str], ...] | None = None) -> None:
        self._patterns = [
            (re.compile(pattern, re.IGNORECASE), replacement)
            for pattern, replacement in (patterns or self.PATTERNS)
        ]

    def mask(self, text: str) -> str:
        for pattern, replacement in self._patterns:
            text = pattern.sub(replacement, text)
        return text

    def mask_dict(self, data: dict[str, Any]) -> dict[str, Any]:
        """Mask a field mapping, descending into nested dicts and lists."""
        return {
            key: REDACTED if self._is_sensitive(key) else self._mask_value(value)
            for key, value in data.items()
        }

    def _is_sensitive(self, key: str) -> bool:
        return key.lower().replace("-", "_").rsplit("_", 1)[-1] in self.SENSITIVE_WORDS

    def _mask_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.mask(value)
        if isinstance(value, dict):
            return self.mask_dict(value)
        if isinstance(value, list):
            return [self._mask_value(item) for item in value]
        return value


class _FieldFormatter(logging.Formatter):
    def __init__(self, masker: SensitiveDataMasker | None = None) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")
        self._masker = masker or SensitiveDataMasker()

    def _message(self, record: logging.LogRecord) -> str:
        return self._masker.mask(record.getMessage())

    def _fields(self, record: logging.LogRecord) -> dict[str, Any]:
        fields = get_log_context().to_dict()
        fields.update(getattr(record, "callai_fields", {}))
        return self._masker.mask_dict(fields)


class JsonFormatter(_FieldFormatter):
    """One JSON object per record; fields are top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        data: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": self._message(record),
        }
        data.update(self._fields(record))
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


class TextFormatter(_FieldFormatter):
    """``time LEVEL logger: message key=value ...``"""

    def format(self, record: logging.LogRecord) -> str:
        line = (
            f"{self.formatTime(record, self.datefmt)} {record.levelname:<7} "
            f"{record.name}: {self._message(record)}"
        )
        fields = self._fields(record)
        if fields:
            line += " " + " ".join(f"{key}={value}" for key, value in fields.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class CallAiLogger:
    """Logger with keyword-field support.

    Example:
        >>> logger = CallAiLogger.get_logger("callai_stream.resilience")
        >>> logger.info("Falling back", model="openrouter/auto")
    """

    _configured: ClassVar[bool] = False

    @classmethod
    def configure(
        cls,
        level: int | str = logging.INFO,
        format: str = "text",
        stream: TextIO | None = None,
        masker: SensitiveDataMasker | None = None,
    ) -> None:
        """Replace the handler on the ``callai_stream`` logger.

        Args:
            level: Level number or name, e.g. ``logging.DEBUG`` or ``"DEBUG"``
            format: ``"text"`` or ``"json"``
            stream: Output stream (default: stderr)
            masker: Masker for messages and fields
        """
        if format not in ("text", "json"):
            raise ValueError(f"Unknown log format: {format}")
        formatter = JsonFormatter(masker) if format == "json" else TextFormatter(masker)
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(formatter)

        root = logging.getLogger(ROOT_LOGGER)
        for old in list(root.handlers):
            root.removeHandler(old)
        root.addHandler(handler)
        root.setLevel(level.upper() if isinstance(level, str) else level)
        root.propagate = False
        cls._configured = True

    @classmethod
    def get_logger(cls, name: str) -> CallAiLogger:
        if not cls._configured:
            cls.configure(level=logging.WARNING)
        return cls(logging.getLogger(name))

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, msg: str, exc_info: bool = False, **fields: Any) -> None:
        if self._logger.isEnabledFor(level):
            self._logger.log(level, msg, exc_info=exc_info, extra={"callai_fields": fields})

    def debug(self, msg: str, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._log(logging.INFO, msg, **fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._log(logging.WARNING, msg, **fields)

    def error(self, msg: str, exc_info: bool = False, **fields: Any) -> None:
        self._log(logging.ERROR, msg, exc_info=exc_info, **fields)


def get_logger(name: str) -> CallAiLogger:
    """Logger for a module; names should start with ``callai_stream.``."""
    return CallAiLogger.get_logger(name)
