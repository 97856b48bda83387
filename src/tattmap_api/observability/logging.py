from __future__ import annotations

import datetime as dt
import json
import logging
import os
import traceback
from typing import Any

from tattmap_api.observability.context import get_request_id, get_user_id

SERVICE_NAME = "tattmap-api"

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}
_CONTEXT_ATTRS = ("request_id", "user_id", "trace_id", "span_id")

_CONFIGURED = False


def _get_trace_context() -> tuple[str | None, str | None]:
    from opentelemetry.trace import get_current_span

    context = get_current_span().get_span_context()
    if not context or not context.is_valid:
        return None, None
    return f"{context.trace_id:032x}", f"{context.span_id:016x}"


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        record.user_id = get_user_id()
        record.trace_id, record.span_id = _get_trace_context()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra`` fields are flattened into the top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": dt.datetime.fromtimestamp(record.created, dt.UTC).isoformat(),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in _CONTEXT_ATTRS:
            value = getattr(record, key, None)
            if value:
                payload[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_type"] = record.exc_info[0].__name__
            payload["exc"] = "".join(traceback.format_exception(*record.exc_info)).rstrip()

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key in _CONTEXT_ATTRS or value is None:
                continue
            payload[key] = value

        return json.dumps(payload, default=str)


class PlainFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s")


def configure_logging(*, default_level: str = "INFO") -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return

    level = os.getenv("LOG_LEVEL", default_level).upper()
    log_format = os.getenv("LOG_FORMAT", "json").lower()

    handler: logging.Handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if log_format == "json" else PlainFormatter())
    handler.addFilter(RequestContextFilter())

    base = logging.getLogger("tattmap_api")
    base.setLevel(level)
    base.propagate = False
    if not base.handlers:
        base.addHandler(handler)

    _CONFIGURED = True


def access_log(event: dict[str, object]) -> None:
    status_code = event.get("status_code")
    level = logging.WARNING if isinstance(status_code, int) and status_code >= 500 else logging.INFO
    logging.getLogger("tattmap_api.access").log(level, "http_request", extra=event)
