"""Shared probe state owned by one explicit service object."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from cosmos_probe.health import HealthState
from cosmos_probe.observability.metrics import MetricsRegistry, MetricsSnapshot
from cosmos_probe.outcome import Classification

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProbeService:
    """Owns the outcome counters and the health latch.

    Passed by reference to both the probe runner (the only writer) and the
    reporting server (read-only). Nothing else touches the counters or the
    flag directly.

    Example usage::

        service = ProbeService.create(metrics_prefix="cosmos")
        service.record(Classification.AUTH_ERROR)
        service.health.is_healthy()  # False
    """

    metrics: MetricsRegistry
    health: HealthState = field(default_factory=HealthState)

    @classmethod
    def create(cls, *, metrics_prefix: str = "cosmos") -> ProbeService:
        return cls(metrics=MetricsRegistry(prefix=metrics_prefix))

    def record(self, classification: Classification) -> None:
        """Apply one classified outcome.

        The counter moves before the health flag, so a reader may briefly see
        the new count while still healthy, but never the reverse.
        """
        classification = Classification(classification)
        self.metrics.increment(classification)
        if classification is not Classification.SUCCESS and self.health.mark_unhealthy():
            logger.warning(
                "Health latched to unhealthy",
                extra={"classification": classification.value},
            )

    def is_healthy(self) -> bool:
        return self.health.is_healthy()

    def snapshot(self) -> MetricsSnapshot:
        return self.metrics.snapshot()
