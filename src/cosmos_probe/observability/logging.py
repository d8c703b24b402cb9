"""Structured logging bootstrap and correlation context helpers."""

from __future__ import annotations

import contextvars
import json
import logging
import os
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TextIO

if TYPE_CHECKING:
    from cosmos_probe.config.models import ProbeSettings

_UNSET = object()

_REQUEST_ID_HEADERS = ("x-request-id", "request-id", "x-correlation-id")

_REQUEST_ID_CTX: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "cosmos_probe_request_id",
    default=None,
)
_TRACE_ID_CTX: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "cosmos_probe_trace_id",
    default=None,
)

_STANDARD_RECORD_KEYS = frozenset(vars(logging.makeLogRecord({})).keys()) | {
    "asctime",
    "message",
    "taskName",
}
_RESERVED_FIELDS = frozenset({"service", "env", "trace_id", "request_id"})


@dataclass(frozen=True, slots=True)
class CorrelationIds:
    """Correlation values attached to every log line."""

    request_id: str | None = None
    trace_id: str | None = None


class JsonFormatter(logging.Formatter):
    """One JSON object per line with service, env and correlation fields."""

    def __init__(self, *, service: str, env: str) -> None:
        super().__init__()
        self._service = service
        self._env = env

    def format(self, record: logging.LogRecord) -> str:
        correlation = get_correlation_ids()
        payload: dict[str, Any] = {
            "timestamp": _format_timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self._service,
            "env": self._env,
            "trace_id": correlation.trace_id,
            "request_id": correlation.request_id,
        }
        payload.update(_extract_extra_fields(record))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=True)


class TextFormatter(logging.Formatter):
    """Human-readable formatter carrying the same context as `JsonFormatter`."""

    def __init__(self, *, service: str, env: str) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s %(message)s")
        self._service = service
        self._env = env

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        correlation = get_correlation_ids()
        extras = " ".join(f"{key}={value}" for key, value in _extract_extra_fields(record).items())
        line = (
            f"{base} service={self._service} env={self._env} "
            f"request_id={correlation.request_id or '-'}"
        )
        return f"{line} {extras}" if extras else line


def parse_traceparent(traceparent: str) -> str | None:
    """Return the trace id from a W3C `traceparent` header, if well formed."""
    parts = traceparent.strip().lower().split("-")
    if len(parts) != 4:
        return None

    version, trace_id, span_id, flags = parts
    if len(version) != 2 or len(flags) != 2 or len(trace_id) != 32 or len(span_id) != 16:
        return None
    if trace_id == "0" * 32:
        return None
    try:
        for value in parts:
            int(value, 16)
    except ValueError:
        return None
    return trace_id


def extract_correlation_ids(headers: Mapping[str, str]) -> CorrelationIds:
    """Pull request/trace identifiers out of incoming request headers."""
    normalized = {str(key).lower(): str(value) for key, value in headers.items()}

    request_id = None
    for key in _REQUEST_ID_HEADERS:
        request_id = _clean_optional_string(normalized.get(key))
        if request_id is not None:
            break

    trace_id = _clean_optional_string(normalized.get("x-trace-id"))
    traceparent = normalized.get("traceparent")
    if trace_id is None and traceparent:
        trace_id = parse_traceparent(traceparent)

    return CorrelationIds(request_id=request_id, trace_id=trace_id)


def get_correlation_ids() -> CorrelationIds:
    return CorrelationIds(request_id=_REQUEST_ID_CTX.get(), trace_id=_TRACE_ID_CTX.get())


@contextmanager
def correlation_scope(
    *,
    request_id: str | None | object = _UNSET,
    trace_id: str | None | object = _UNSET,
) -> Iterator[None]:
    """Temporarily bind correlation ids for the current context."""
    tokens: list[tuple[contextvars.ContextVar[str | None], contextvars.Token[str | None]]] = []
    if request_id is not _UNSET:
        tokens.append((_REQUEST_ID_CTX, _REQUEST_ID_CTX.set(_clean_optional_string(request_id))))
    if trace_id is not _UNSET:
        tokens.append((_TRACE_ID_CTX, _TRACE_ID_CTX.set(_clean_optional_string(trace_id))))

    try:
        yield
    finally:
        for context_var, token in reversed(tokens):
            context_var.reset(token)


@contextmanager
def correlation_scope_from_headers(headers: Mapping[str, str]) -> Iterator[CorrelationIds]:
    correlation = extract_correlation_ids(headers)
    with correlation_scope(request_id=correlation.request_id, trace_id=correlation.trace_id):
        yield correlation


def bootstrap_logging(
    *,
    service: str,
    env: str | None = None,
    level: str = "INFO",
    log_format: str = "json",
    logger: logging.Logger | None = None,
    stream: TextIO | None = None,
    force: bool = True,
) -> logging.Logger:
    """Configure a logger with standard formatting and correlation fields."""
    resolved_env = env if env is not None else os.getenv("PROBE_ENV", "development")
    target_logger = logger or logging.getLogger()

    if force:
        for handler in list(target_logger.handlers):
            target_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    if log_format == "text":
        handler.setFormatter(TextFormatter(service=service, env=resolved_env))
    else:
        handler.setFormatter(JsonFormatter(service=service, env=resolved_env))

    target_logger.addHandler(handler)
    target_logger.setLevel(level.upper())
    if target_logger is not logging.getLogger():
        target_logger.propagate = False
    return target_logger


def bootstrap_logging_from_settings(
    settings: ProbeSettings,
    *,
    logger: logging.Logger | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Bootstrap logging from validated probe settings."""
    return bootstrap_logging(
        service=settings.service_name,
        env=settings.environment,
        level=settings.logging.level,
        log_format=settings.logging.format,
        logger=logger,
        stream=stream,
    )


def _clean_optional_string(value: object | None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if text == "":
        return None
    return text


def _extract_extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_RECORD_KEYS
        and key not in _RESERVED_FIELDS
        and not key.startswith("_")
    }


def _format_timestamp(created: float) -> str:
    timestamp = datetime.fromtimestamp(created, tz=UTC)
    return timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")
