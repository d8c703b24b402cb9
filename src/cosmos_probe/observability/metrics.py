"""Prometheus counters for probe outcomes."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from cosmos_probe.errors import MissingDependencyError
from cosmos_probe.outcome import Classification

_LABEL_NORMALIZER = re.compile(r"[^a-zA-Z0-9_]+")

_COUNTER_SPECS: dict[Classification, tuple[str, str]] = {
    Classification.SUCCESS: (
        "connection_success_total",
        "Total number of successful connections and table operations.",
    ),
    Classification.AUTH_ERROR: (
        "auth_error_total",
        "Total number of authentication errors when connecting to the table store.",
    ),
    Classification.OTHER_ERROR: (
        "other_error_total",
        "Total number of other errors when connecting to the table store.",
    ),
}


def _import_prometheus_client() -> Any:
    try:
        import prometheus_client
    except ImportError as exc:  # pragma: no cover - declared dependency
        raise MissingDependencyError(
            "Probe metrics require dependency 'prometheus-client'. "
            "Install with: pip install cosmos-msi-probe"
        ) from exc
    return prometheus_client


def _sanitize_prefix(value: str, *, default: str = "cosmos") -> str:
    normalized = _LABEL_NORMALIZER.sub("_", value.strip().lower()).strip("_")
    return normalized or default


@dataclass(frozen=True, slots=True)
class MetricsSnapshot:
    """Point-in-time view of the three outcome counters."""

    success: int
    auth_error: int
    other_error: int

    def to_dict(self) -> dict[str, int]:
        return {
            "success": self.success,
            "auth_error": self.auth_error,
            "other_error": self.other_error,
        }


class MetricsRegistry:
    """Three monotonic outcome counters on a private Prometheus registry.

    Counters are never removed or reset while the registry lives.
    `prometheus_client` counters serialize increments internally, so
    `snapshot` and `render` are safe to call from the reporting server while
    the probe increments from another thread.
    """

    def __init__(self, *, prefix: str = "cosmos", registry: Any | None = None) -> None:
        prometheus_client = _import_prometheus_client()
        self._prometheus = prometheus_client
        self._registry = (
            prometheus_client.CollectorRegistry(auto_describe=True)
            if registry is None
            else registry
        )
        self._prefix = _sanitize_prefix(prefix)
        self._counters: dict[Classification, Any] = {}
        self._names: dict[Classification, str] = {}
        for kind, (suffix, documentation) in _COUNTER_SPECS.items():
            name = f"{self._prefix}_{suffix}"
            self._names[kind] = name
            self._counters[kind] = prometheus_client.Counter(
                name,
                documentation,
                registry=self._registry,
            )

    @property
    def registry(self) -> Any:
        return self._registry

    @property
    def prefix(self) -> str:
        return self._prefix

    def metric_name(self, kind: Classification) -> str:
        """Exposition name of the counter for `kind`, including `_total`."""
        return self._names[Classification(kind)]

    def increment(self, kind: Classification) -> None:
        self._counters[Classification(kind)].inc()

    def value(self, kind: Classification) -> int:
        sample = self._registry.get_sample_value(self.metric_name(kind))
        return int(sample or 0)

    def snapshot(self) -> MetricsSnapshot:
        return MetricsSnapshot(
            success=self.value(Classification.SUCCESS),
            auth_error=self.value(Classification.AUTH_ERROR),
            other_error=self.value(Classification.OTHER_ERROR),
        )

    @property
    def content_type(self) -> str:
        """Prometheus exposition media type."""
        return str(self._prometheus.CONTENT_TYPE_LATEST)

    def render(self) -> bytes:
        """Render current counters in Prometheus exposition text format."""
        return bytes(self._prometheus.generate_latest(self._registry))
