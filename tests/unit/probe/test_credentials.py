"""Tests for managed identity credential acquisition."""

from __future__ import annotations

import pytest
from fakes import FakeCredential

from cosmos_probe import CredentialError, CredentialProvider
from cosmos_probe.probe.credentials import COSMOS_SCOPE, STORAGE_SCOPE, token_scope_for


def test_acquire_default_identity_verifies_token() -> None:
    credential = FakeCredential()
    seen: list[str | None] = []

    def factory(client_id: str | None) -> FakeCredential:
        seen.append(client_id)
        return credential

    provider = CredentialProvider(scope=COSMOS_SCOPE, factory=factory)

    assert provider.acquire() is credential
    assert seen == [None]
    assert credential.scopes == [(COSMOS_SCOPE,)]
    assert credential.closed == 0


@pytest.mark.parametrize(("selector", "expected"), [("client-1", "client-1"), ("   ", None)])
def test_acquire_passes_cleaned_selector(selector: str, expected: str | None) -> None:
    seen: list[str | None] = []

    def factory(client_id: str | None) -> FakeCredential:
        seen.append(client_id)
        return FakeCredential()

    CredentialProvider(factory=factory).acquire(selector)

    assert seen == [expected]


def test_factory_failure_becomes_credential_error() -> None:
    def factory(client_id: str | None) -> FakeCredential:
        raise ValueError("malformed client id")

    with pytest.raises(CredentialError) as exc_info:
        CredentialProvider(factory=factory).acquire("bad")

    assert exc_info.value.stage == "credential"
    assert isinstance(exc_info.value.__cause__, ValueError)
    assert "malformed client id" in str(exc_info.value)


def test_token_failure_closes_credential_and_raises() -> None:
    credential = FakeCredential(error=RuntimeError("no managed identity endpoint found"))
    provider = CredentialProvider(scope=STORAGE_SCOPE, factory=lambda _: credential)

    with pytest.raises(CredentialError, match="no managed identity endpoint"):
        provider.acquire()

    assert credential.closed == 1


def test_verification_can_be_disabled() -> None:
    credential = FakeCredential(error=RuntimeError("unreachable"))
    provider = CredentialProvider(factory=lambda _: credential, verify=False)

    assert provider.acquire() is credential
    assert credential.scopes == []


@pytest.mark.parametrize(
    ("url", "scope"),
    [
        ("https://acct.table.cosmos.azure.com:443/", COSMOS_SCOPE),
        ("https://ACCT.TABLE.COSMOS.AZURE.COM/", COSMOS_SCOPE),
        ("https://acct.table.core.windows.net/", STORAGE_SCOPE),
        ("not a url", STORAGE_SCOPE),
    ],
)
def test_token_scope_for(url: str, scope: str) -> None:
    assert token_scope_for(url) == scope
