"""Fakes standing in for the Azure identity and table SDKs."""

from __future__ import annotations

import threading
from typing import Any

ACCOUNT_URL = "https://probe-account.table.cosmos.azure.com:443/"
TABLE_NAME = "ScaleTestTable"


class FakeResponseError(Exception):
    """Shape of `azure.core.exceptions.HttpResponseError` used by the probe."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class FakeCredential:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.scopes: list[tuple[str, ...]] = []
        self.closed = 0

    def get_token(self, *scopes: str, **kwargs: Any) -> Any:
        self.scopes.append(scopes)
        if self.error is not None:
            raise self.error
        return ("token", 3600)

    def close(self) -> None:
        self.closed += 1


class FakeTableServiceClient:
    def __init__(
        self,
        *,
        error: Exception | None = None,
        gate: threading.Event | None = None,
    ) -> None:
        self.error = error
        self.gate = gate
        self.created: list[str] = []
        self.entered = threading.Event()
        self.closed = 0

    def create_table(self, table_name: str, **kwargs: Any) -> Any:
        self.created.append(table_name)
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=10)
        if self.error is not None:
            raise self.error
        return object()

    def close(self) -> None:
        self.closed += 1


