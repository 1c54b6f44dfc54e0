from __future__ import annotations

from datetime import datetime, timezone
import logging
import sys
from typing import Any

DEFAULT_REDACT_FIELDS = {
    "authorization",
    "cookie",
    "password",
    "session",
    "token",
}

_BASE_RECORD = logging.makeLogRecord({})
_STANDARD_RECORD_FIELDS = set(_BASE_RECORD.__dict__.keys()) | {"message", "asctime"}
_NOISY_RECORD_FIELDS = {"color_message"}


def configure_logging(*, level: str, redact_fields: set[str] | None = None) -> None:
    normalized_level = _normalize_level(level)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(normalized_level)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(normalized_level)
    handler.setFormatter(ConsoleLogFormatter(redact_fields=redact_fields or DEFAULT_REDACT_FIELDS))
    root_logger.addHandler(handler)

    # Route server logs through the single root handler.
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        framework_logger = logging.getLogger(logger_name)
        framework_logger.handlers.clear()
        framework_logger.propagate = True


class ConsoleLogFormatter(logging.Formatter):
    def __init__(self, *, redact_fields: set[str]) -> None:
        super().__init__()
        self._redact_fields = {field.lower() for field in redact_fields}

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            _format_timestamp(record.created),
            record.levelname[:3],
            record.name,
            record.getMessage(),
        ]
        extras = _extra_fields(record)
        for key in sorted(extras):
            parts.append(f"{key}={self._redact_value(key, extras[key])}")
        if record.exc_info:
            parts.append(f"exception={self.formatException(record.exc_info)}")
        return " | ".join(str(part) for part in parts if part)

    def _redact_value(self, key: str, value: Any) -> Any:
        if key.lower() in self._redact_fields:
            return "[REDACTED]"
        return value


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    extras: dict[str, Any] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_RECORD_FIELDS or key.startswith("_"):
            continue
        if key in _NOISY_RECORD_FIELDS:
            continue
        extras[key] = value
    return extras


def _normalize_level(level: str) -> int:
    normalized = (level or "").strip().upper()
    value = logging.getLevelName(normalized)
    if not isinstance(value, int):
        return logging.INFO
    return value


def _format_timestamp(created_ts: float) -> str:
    dt = datetime.fromtimestamp(created_ts, tz=timezone.utc)
    return dt.strftime("%Y-%m-%d %H:%M:%SZ")
