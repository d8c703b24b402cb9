"""Logging and metrics helpers."""

from cosmos_probe.observability.logging import (
    CorrelationIds,
    bootstrap_logging,
    bootstrap_logging_from_settings,
    correlation_scope,
    correlation_scope_from_headers,
    get_correlation_ids,
)
from cosmos_probe.observability.metrics import MetricsRegistry, MetricsSnapshot

__all__ = [
    "CorrelationIds",
    "MetricsRegistry",
    "MetricsSnapshot",
    "bootstrap_logging",
    "bootstrap_logging_from_settings",
    "correlation_scope",
    "correlation_scope_from_headers",
    "get_correlation_ids",
]
