"""Probe-and-classify engine."""

from cosmos_probe.probe.classifier import (
    ErrorClassifier,
    OutcomeClassifier,
    Rule,
)
from cosmos_probe.probe.credentials import (
    COSMOS_SCOPE,
    STORAGE_SCOPE,
    Credential,
    CredentialProvider,
    token_scope_for,
)
from cosmos_probe.probe.runner import ProbeReport, ProbeRunner, ProbeState
from cosmos_probe.probe.tables import TableResourceClient

__all__ = [
    "COSMOS_SCOPE",
    "STORAGE_SCOPE",
    "Credential",
    "CredentialProvider",
    "ErrorClassifier",
    "OutcomeClassifier",
    "ProbeReport",
    "ProbeRunner",
    "ProbeState",
    "Rule",
    "TableResourceClient",
    "token_scope_for",
]
