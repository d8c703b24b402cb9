"""Prioritized rule pipeline that maps probe outcomes to a classification.

Structured signals (HTTP status, service error code) are authoritative and
are checked first. Message keyword matching is a degraded path for transports
that do not surface structured codes and never overrides a structured status.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Protocol

from cosmos_probe.outcome import Classification, ProbeOutcome

Rule = Callable[[ProbeOutcome], Classification | None]

CONFLICT_STATUS = 409
AUTH_STATUS_CODES = frozenset({401, 403})
ALREADY_EXISTS_CODES = frozenset({"TableAlreadyExists"})
AUTH_KEYWORDS = ("unauthorized", "forbidden", "authentication", "authorization")
ALREADY_EXISTS_KEYWORD = "already exists"


class OutcomeClassifier(Protocol):
    """Contract the probe runner depends on."""

    def classify(self, outcome: ProbeOutcome) -> Classification:
        ...


def success_or_conflict(
    already_exists_codes: Iterable[str] = ALREADY_EXISTS_CODES,
) -> Rule:
    codes = frozenset(already_exists_codes)

    def rule(outcome: ProbeOutcome) -> Classification | None:
        if outcome.ok:
            return Classification.SUCCESS
        if outcome.status_code == CONFLICT_STATUS or outcome.error_code in codes:
            return Classification.SUCCESS
        return None

    return rule


def auth_status(outcome: ProbeOutcome) -> Classification | None:
    if outcome.status_code in AUTH_STATUS_CODES:
        return Classification.AUTH_ERROR
    return None


def stage_policy(client_error: Classification) -> Rule:
    """Settle credential and client stage failures.

    Credential failures are authorization-path failures by definition. Client
    construction failures follow the configured policy.
    """

    def rule(outcome: ProbeOutcome) -> Classification | None:
        if outcome.stage == "credential":
            return Classification.AUTH_ERROR
        if outcome.stage == "client":
            return client_error
        return None

    return rule


def auth_keywords(outcome: ProbeOutcome) -> Classification | None:
    if outcome.status_code is not None:
        return None
    message = outcome.message.lower()
    if any(keyword in message for keyword in AUTH_KEYWORDS):
        return Classification.AUTH_ERROR
    return None


def already_exists_keyword(outcome: ProbeOutcome) -> Classification | None:
    if ALREADY_EXISTS_KEYWORD in outcome.message.lower():
        return Classification.SUCCESS
    return None


class ErrorClassifier:
    """First matching rule wins; unmatched outcomes are `OTHER_ERROR`."""

    def __init__(
        self,
        *,
        client_error: Classification = Classification.OTHER_ERROR,
        already_exists_codes: Iterable[str] = ALREADY_EXISTS_CODES,
        rules: Iterable[Rule] | None = None,
    ) -> None:
        if client_error is Classification.SUCCESS:
            raise ValueError("client_error must be AUTH_ERROR or OTHER_ERROR")
        self._client_error = client_error
        if rules is None:
            rules = (
                stage_policy(client_error),
                success_or_conflict(already_exists_codes),
                auth_status,
                auth_keywords,
                already_exists_keyword,
            )
        self._rules: tuple[Rule, ...] = tuple(rules)

    @property
    def client_error(self) -> Classification:
        return self._client_error

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def classify(self, outcome: ProbeOutcome) -> Classification:
        for rule in self._rules:
            result = rule(outcome)
            if result is not None:
                return result
        return Classification.OTHER_ERROR
