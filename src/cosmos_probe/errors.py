"""Custom exceptions for the cosmos connectivity probe."""

from __future__ import annotations


class CosmosProbeError(Exception):
    """Base exception for this package."""


class MissingDependencyError(CosmosProbeError):
    """Raised when an SDK dependency is required but not installed."""


class ListenerError(CosmosProbeError):
    """Raised when the reporting interface cannot bind its listening socket."""

    def __init__(self, host: str, port: int, reason: str) -> None:
        self.host = host
        self.port = port
        super().__init__(f"Failed to start reporting server on {host}:{port}: {reason}")


class ProbeAlreadyRunError(CosmosProbeError):
    """Raised when a probe runner is asked to run a second time."""


class ProbeStageError(CosmosProbeError):
    """Base exception for recoverable failures inside one probe stage.

    Carries the structured status and error code when the transport exposes
    them so the classifier never has to parse them out of the message.
    """

    stage: str = "operation"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class CredentialError(ProbeStageError):
    """Raised when a workload identity credential cannot be acquired."""

    stage = "credential"


class ClientError(ProbeStageError):
    """Raised when the resource store client cannot be constructed."""

    stage = "client"


class OperationError(ProbeStageError):
    """Raised when the create request against the resource store fails."""

    stage = "operation"
