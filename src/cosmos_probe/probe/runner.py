"""Run-once probe state machine.

The runner walks `idle -> credential_acquired -> client_ready -> probed ->
reported` exactly once. A failure while acquiring the credential or building
the client jumps straight to `reported`. Getting a second attempt means
starting a new process; the orchestrator restarts instances whose `/health`
latched unhealthy.

No timeout is applied to the SDK calls. A hung remote call leaves `run()`
pending until the caller cancels it, while the reporting server keeps
answering. Blocking calls run on daemon threads, so a cancelled run never
holds up executor shutdown or interpreter exit.
"""

from __future__ import annotations

import asyncio
import contextvars
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from time import perf_counter
from typing import TYPE_CHECKING, Any, TypeVar
from uuid import uuid4

from cosmos_probe.errors import MissingDependencyError, ProbeAlreadyRunError, ProbeStageError
from cosmos_probe.observability.logging import correlation_scope
from cosmos_probe.outcome import Classification, ProbeOutcome, ProbeStage
from cosmos_probe.probe.classifier import ErrorClassifier, OutcomeClassifier
from cosmos_probe.probe.credentials import (
    Credential,
    CredentialProvider,
    close_quietly,
    token_scope_for,
)
from cosmos_probe.probe.tables import ServiceClientFactory, TableResourceClient
from cosmos_probe.service import ProbeService

if TYPE_CHECKING:
    from cosmos_probe.config.models import ProbeSettings

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class ProbeState(str, Enum):
    IDLE = "idle"
    CREDENTIAL_ACQUIRED = "credential_acquired"
    CLIENT_READY = "client_ready"
    PROBED = "probed"
    REPORTED = "reported"


_TRANSITIONS: dict[ProbeState, frozenset[ProbeState]] = {
    ProbeState.IDLE: frozenset({ProbeState.CREDENTIAL_ACQUIRED, ProbeState.REPORTED}),
    ProbeState.CREDENTIAL_ACQUIRED: frozenset({ProbeState.CLIENT_READY, ProbeState.REPORTED}),
    ProbeState.CLIENT_READY: frozenset({ProbeState.PROBED}),
    ProbeState.PROBED: frozenset({ProbeState.REPORTED}),
    ProbeState.REPORTED: frozenset(),
}


@dataclass(frozen=True, slots=True)
class ProbeReport:
    """What one probe run did and how it was scored."""

    run_id: str
    classification: Classification
    outcome: ProbeOutcome
    states: tuple[ProbeState, ...]
    duration_seconds: float

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "run_id": self.run_id,
            "classification": self.classification.value,
            "ok": self.outcome.ok,
            "states": [state.value for state in self.states],
            "duration_seconds": max(0.0, self.duration_seconds),
        }
        if not self.outcome.ok:
            payload["stage"] = self.outcome.stage
            payload["status_code"] = self.outcome.status_code
            payload["error_code"] = self.outcome.error_code
        return payload


class ProbeRunner:
    """Credential -> client -> create -> classify -> record, exactly once."""

    def __init__(
        self,
        service: ProbeService,
        *,
        account_url: str,
        table_name: str,
        identity_selector: str | None = None,
        credentials: CredentialProvider | None = None,
        classifier: OutcomeClassifier | None = None,
        client_factory: ServiceClientFactory | None = None,
    ) -> None:
        self._service = service
        self._account_url = account_url
        self._table_name = table_name
        self._identity_selector = identity_selector
        self._credentials = credentials or CredentialProvider(scope=token_scope_for(account_url))
        self._classifier = classifier or ErrorClassifier()
        self._client_factory = client_factory
        self._state = ProbeState.IDLE
        self._history: list[ProbeState] = [ProbeState.IDLE]
        self._started = False

    @classmethod
    def from_settings(
        cls,
        settings: ProbeSettings,
        service: ProbeService,
        **overrides: Any,
    ) -> ProbeRunner:
        """Build a runner wired to validated settings."""
        scope = settings.token_scope or token_scope_for(settings.account_url)
        options: dict[str, Any] = {
            "account_url": settings.account_url,
            "table_name": settings.table_name,
            "identity_selector": settings.client_id,
            "credentials": CredentialProvider(scope=scope),
            "classifier": ErrorClassifier(
                client_error=Classification(settings.client_error_classification),
            ),
        }
        options.update(overrides)
        return cls(service, **options)

    @property
    def state(self) -> ProbeState:
        return self._state

    @property
    def history(self) -> tuple[ProbeState, ...]:
        return tuple(self._history)

    @property
    def account_url(self) -> str:
        return self._account_url

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def identity_selector(self) -> str | None:
        return self._identity_selector

    @property
    def credentials(self) -> CredentialProvider:
        return self._credentials

    @property
    def classifier(self) -> OutcomeClassifier:
        return self._classifier

    async def run(self) -> ProbeReport:
        """Execute the probe and record its classification on the service."""
        if self._started:
            raise ProbeAlreadyRunError("probe runner has already been used")
        self._started = True

        run_id = uuid4().hex
        started = perf_counter()
        with correlation_scope(request_id=run_id):
            outcome = await self._execute()
            classification = self._classifier.classify(outcome)
            self._log_classification(outcome, classification)
            self._service.record(classification)
            self._transition(ProbeState.REPORTED)

        return ProbeReport(
            run_id=run_id,
            classification=classification,
            outcome=outcome,
            states=self.history,
            duration_seconds=perf_counter() - started,
        )

    async def _execute(self) -> ProbeOutcome:
        credential: Credential | None = None
        client: TableResourceClient | None = None
        try:
            logger.info("Creating managed identity credential")
            try:
                credential = await _call_blocking(
                    self._credentials.acquire,
                    self._identity_selector,
                )
            except MissingDependencyError:
                raise
            except Exception as exc:
                return _failed("credential", exc)
            self._transition(ProbeState.CREDENTIAL_ACQUIRED)

            logger.info("Creating table service client", extra={"endpoint": self._account_url})
            try:
                client = await _call_blocking(
                    TableResourceClient.construct,
                    self._account_url,
                    credential,
                    factory=self._client_factory,
                )
            except MissingDependencyError:
                raise
            except Exception as exc:
                return _failed("client", exc)
            self._transition(ProbeState.CLIENT_READY)

            try:
                await _call_blocking(client.create_if_absent, self._table_name)
            except Exception as exc:
                outcome = _failed("operation", exc)
            else:
                outcome = ProbeOutcome.success()
            self._transition(ProbeState.PROBED)
            return outcome
        finally:
            if client is not None:
                client.close()
            if credential is not None:
                close_quietly(credential)

    def _transition(self, target: ProbeState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise RuntimeError(f"invalid probe transition {self._state.value} -> {target.value}")
        self._state = target
        self._history.append(target)

    def _log_classification(self, outcome: ProbeOutcome, classification: Classification) -> None:
        extra = {
            "table": self._table_name,
            "classification": classification.value,
            "stage": outcome.stage,
            "status_code": outcome.status_code,
            "error_code": outcome.error_code,
        }
        if outcome.ok:
            logger.info("Successfully created table", extra=extra)
        elif classification is Classification.SUCCESS:
            logger.info("Table already exists (expected)", extra=extra)
        elif classification is Classification.AUTH_ERROR:
            logger.error("Authentication/authorization error: %s", outcome.message, extra=extra)
        else:
            logger.error("Error performing table operation: %s", outcome.message, extra=extra)


async def _call_blocking(func: Callable[..., _T], /, *args: Any, **kwargs: Any) -> _T:
    """Run a blocking SDK call on a daemon thread and await its result.

    Behaves like `asyncio.to_thread`, but the worker is not owned by the
    loop's default executor: cancelling the awaiting task abandons the call
    instead of leaving shutdown waiting on it.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[_T] = loop.create_future()
    context = contextvars.copy_context()

    def settle(result: Any, error: BaseException | None) -> None:
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

    def work() -> None:
        try:
            result = context.run(func, *args, **kwargs)
        except Exception as exc:
            outcome: tuple[Any, BaseException | None] = (None, exc)
        else:
            outcome = (result, None)
        try:
            loop.call_soon_threadsafe(settle, *outcome)
        except RuntimeError:
            # Loop already closed: the run was abandoned on stop.
            logger.debug("Dropping result of abandoned %s call", getattr(func, "__name__", func))

    threading.Thread(target=work, name="cosmos-probe-sdk", daemon=True).start()
    return await future


def _failed(stage: ProbeStage, exc: Exception) -> ProbeOutcome:
    if isinstance(exc, ProbeStageError):
        logger.warning("Probe %s stage failed: %s", stage, exc, extra={"stage": stage})
    else:
        logger.exception("Unexpected error in probe %s stage", stage, extra={"stage": stage})
    return ProbeOutcome.from_error(stage, exc)
