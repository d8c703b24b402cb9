"""Managed-identity connectivity probe for Cosmos DB Table API accounts."""

from cosmos_probe.errors import (
    ClientError,
    CosmosProbeError,
    CredentialError,
    ListenerError,
    MissingDependencyError,
    OperationError,
    ProbeAlreadyRunError,
    ProbeStageError,
)
from cosmos_probe.outcome import Classification, ProbeOutcome
from cosmos_probe.health import HealthState, HealthStatus
from cosmos_probe.config import ConfigError, ProbeSettings, load_settings
from cosmos_probe.observability import MetricsRegistry, MetricsSnapshot, bootstrap_logging
from cosmos_probe.service import ProbeService
from cosmos_probe.probe import (
    CredentialProvider,
    ErrorClassifier,
    ProbeReport,
    ProbeRunner,
    ProbeState,
    TableResourceClient,
)
from cosmos_probe.reporting import ReportingServer, build_app, start_reporting_server
from cosmos_probe.app import main, run_service

__version__ = "0.1.0"

__all__ = [
    "Classification",
    "ClientError",
    "ConfigError",
    "CosmosProbeError",
    "CredentialError",
    "CredentialProvider",
    "ErrorClassifier",
    "HealthState",
    "HealthStatus",
    "ListenerError",
    "MetricsRegistry",
    "MetricsSnapshot",
    "MissingDependencyError",
    "OperationError",
    "ProbeAlreadyRunError",
    "ProbeOutcome",
    "ProbeReport",
    "ProbeRunner",
    "ProbeService",
    "ProbeSettings",
    "ProbeStageError",
    "ProbeState",
    "ReportingServer",
    "TableResourceClient",
    "bootstrap_logging",
    "build_app",
    "load_settings",
    "main",
    "run_service",
    "start_reporting_server",
]
