"""Shared fixtures for probe tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from fakes import ACCOUNT_URL, TABLE_NAME, FakeCredential, FakeTableServiceClient

from cosmos_probe import (
    Classification,
    CredentialProvider,
    ErrorClassifier,
    ProbeRunner,
    ProbeService,
)


@pytest.fixture
def service() -> ProbeService:
    return ProbeService.create()


@pytest.fixture
def make_runner(
    service: ProbeService,
) -> Callable[..., ProbeRunner]:
    def factory(
        *,
        credential: FakeCredential | None = None,
        credential_factory: Callable[[str | None], Any] | None = None,
        table_client: FakeTableServiceClient | None = None,
        client_factory: Callable[[str, Any], Any] | None = None,
        client_error: Classification = Classification.OTHER_ERROR,
        identity_selector: str | None = None,
        account_url: str = ACCOUNT_URL,
    ) -> ProbeRunner:
        resolved_credential = credential or FakeCredential()
        resolved_client = table_client or FakeTableServiceClient()
        return ProbeRunner(
            service,
            account_url=account_url,
            table_name=TABLE_NAME,
            identity_selector=identity_selector,
            credentials=CredentialProvider(
                factory=credential_factory or (lambda _client_id: resolved_credential),
            ),
            classifier=ErrorClassifier(client_error=client_error),
            client_factory=client_factory or (lambda _endpoint, _cred: resolved_client),
        )

    return factory
