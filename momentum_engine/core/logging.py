"""
Logging for the momentum engine.

Every record on the "momentum" logger carries the current request_id. Domain
events (momentum.awarded, drill.submitted, artifact.power_updated, ...) go
through log_event so their fields land as record attributes: the JSON
formatter emits them as keys, the pretty formatter as trailing key=value pairs.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

LOGGER_NAME = "momentum"

request_id_ctx_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Attributes every LogRecord has; anything else arrived through extra=.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "request_id"}

_MAX_FIELD_CHARS = 500

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_LATENCY_BUCKETS = (
    (10, "<10ms"),
    (100, "10-100ms"),
    (500, "100-500ms"),
    (1000, "500-1000ms"),
)


def get_request_id(default: Optional[str] = None) -> Optional[str]:
    """Fetch the current request_id from context (if any)."""
    rid = request_id_ctx_var.get()
    return rid if rid is not None else default


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def latency_bucket_ms(latency_ms: Optional[float]) -> str:
    if latency_ms is None:
        return "unknown"
    for limit, label in _LATENCY_BUCKETS:
        if latency_ms < limit:
            return label
    return ">=1000ms"


def _timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z")


def _event_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_ATTRS and value is not None
    }


class RequestIdFilter(logging.Filter):
    """Fill in request_id from context when the caller did not pass one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": _timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        payload.update(_event_fields(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class PrettyFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        parts = [_timestamp(record), record.levelname, "[momentum]"]
        rid = getattr(record, "request_id", None)
        if rid:
            parts.append(f"[rid={rid}]")
        parts.append(record.getMessage())
        fields = _event_fields(record)
        parts.extend(f"{key}={fields[key]}" for key in sorted(fields))
        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _pick_formatter(env: str, log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter()
    if log_format == "auto" and env.lower() == "production":
        return JsonFormatter()
    return PrettyFormatter()


def configure_logging(env: str = "development", level: str = "INFO", log_format: str = "auto") -> None:
    """Install a single stdout handler on the momentum logger.

    JSON in production (or when LOG_FORMAT=json), pretty lines otherwise.
    """
    logger = get_logger()
    logger.setLevel(_LEVELS.get(str(level).lower(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_pick_formatter(env, log_format))
    handler.addFilter(RequestIdFilter())

    logger.handlers = [handler]
    logger.propagate = True

    # Keep uvicorn's own loggers out of ours
    for name in ("uvicorn", "uvicorn.error"):
        logging.getLogger(name).propagate = False


def _truncate(value: Any) -> str:
    text = str(value)
    if len(text) <= _MAX_FIELD_CHARS:
        return text
    return text[:_MAX_FIELD_CHARS] + "...<truncated>"


def log_event(
    level: str,
    msg: str,
    *,
    request_id: Optional[str] = None,
    user_id: Optional[str] = None,
    artifact_id: Optional[str] = None,
    session_id: Optional[str] = None,
    event_type: Optional[str] = None,
    error_code: Optional[str] = None,
    extra: Optional[Dict[str, object]] = None,
) -> None:
    """Emit a domain event on the momentum logger.

    Identity fields left as None are omitted. Values in `extra` are
    stringified and truncated so a large payload cannot flood the log.
    """
    fields: Dict[str, Any] = {
        "request_id": request_id or get_request_id(),
        "user_id": user_id,
        "artifact_id": artifact_id,
        "session_id": session_id,
        "event_type": event_type,
        "error_code": error_code,
    }
    fields = {key: value for key, value in fields.items() if value is not None}
    for key, value in (extra or {}).items():
        if value is not None:
            fields[key] = _truncate(value)

    get_logger().log(_LEVELS.get(level, logging.INFO), msg, extra=fields)
