"""Managed identity credential acquisition."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol
from urllib.parse import urlparse

from cosmos_probe.errors import CredentialError, MissingDependencyError

logger = logging.getLogger(__name__)

COSMOS_SCOPE = "https://cosmos.azure.com/.default"
STORAGE_SCOPE = "https://storage.azure.com/.default"


class Credential(Protocol):
    """Token-issuing capability accepted by the Azure table client."""

    def get_token(self, *scopes: str, **kwargs: Any) -> Any:
        ...


CredentialFactory = Callable[[str | None], Credential]


def token_scope_for(account_url: str) -> str:
    """Return the AAD scope the table endpoint expects tokens for."""
    host = (urlparse(account_url).hostname or "").lower()
    if ".cosmos." in host:
        return COSMOS_SCOPE
    return STORAGE_SCOPE


def _build_managed_identity_credential(client_id: str | None) -> Credential:
    try:
        from azure.identity import ManagedIdentityCredential
    except ImportError as exc:  # pragma: no cover - declared dependency
        raise MissingDependencyError(
            "Managed identity support requires dependency 'azure-identity'. "
            "Install with: pip install cosmos-msi-probe"
        ) from exc

    if client_id is None:
        return ManagedIdentityCredential()
    return ManagedIdentityCredential(client_id=client_id)


class CredentialProvider:
    """Acquires a workload identity credential, optionally for an explicit identity.

    The credential is verified by requesting one token for `scope` so that a
    missing identity or an unreachable metadata endpoint fails here, as a
    `CredentialError`, rather than inside the table request.
    """

    def __init__(
        self,
        *,
        scope: str = COSMOS_SCOPE,
        factory: CredentialFactory | None = None,
        verify: bool = True,
    ) -> None:
        self._scope = scope
        self._factory = factory or _build_managed_identity_credential
        self._verify = verify

    @property
    def scope(self) -> str:
        return self._scope

    def acquire(self, identity_selector: str | None = None) -> Credential:
        client_id = _clean_selector(identity_selector)
        if client_id is None:
            logger.info("Using default managed identity (no client ID specified)")
        else:
            logger.info("Using managed identity with client ID", extra={"client_id": client_id})

        try:
            credential = self._factory(client_id)
        except MissingDependencyError:
            raise
        except Exception as exc:
            raise CredentialError(
                f"failed to create managed identity credential: {exc}"
            ) from exc

        if not self._verify:
            return credential

        try:
            credential.get_token(self._scope)
        except Exception as exc:
            close_quietly(credential)
            raise CredentialError(
                f"failed to acquire token for {self._scope}: {exc}",
                status_code=getattr(exc, "status_code", None),
            ) from exc
        return credential


def _clean_selector(value: str | None) -> str | None:
    if value is None:
        return None
    text = value.strip()
    if text == "":
        return None
    return text


def close_quietly(resource: Any) -> None:
    close = getattr(resource, "close", None)
    if not callable(close):
        return
    try:
        close()
    except Exception:
        logger.debug("Ignoring error while closing %s", type(resource).__name__, exc_info=True)
