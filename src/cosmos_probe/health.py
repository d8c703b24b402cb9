"""Latched process health shared between the probe and the reporting server."""

from __future__ import annotations

import threading
from enum import Enum


class HealthStatus(str, Enum):
    """Process-level health as exposed on `/health`."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthState:
    """One-way health latch.

    Starts healthy. `mark_unhealthy` flips it once and nothing flips it back
    for the rest of the process lifetime; restarting the process is the only
    way to get a fresh probe attempt.
    """

    __slots__ = ("_unhealthy",)

    def __init__(self) -> None:
        self._unhealthy = threading.Event()

    def mark_unhealthy(self) -> bool:
        """Latch to unhealthy. Returns `True` only on the first transition."""
        if self._unhealthy.is_set():
            return False
        self._unhealthy.set()
        return True

    def is_healthy(self) -> bool:
        return not self._unhealthy.is_set()

    @property
    def status(self) -> HealthStatus:
        return HealthStatus.HEALTHY if self.is_healthy() else HealthStatus.UNHEALTHY
