"""Table store client used for the idempotent create probe."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol
from urllib.parse import urlparse

from cosmos_probe.errors import ClientError, MissingDependencyError, OperationError
from cosmos_probe.outcome import error_code, error_status
from cosmos_probe.probe.credentials import Credential, close_quietly

logger = logging.getLogger(__name__)


class SupportsCreateTable(Protocol):
    """Subset of `azure.data.tables.TableServiceClient` used by the probe."""

    def create_table(self, table_name: str, **kwargs: Any) -> Any:
        ...


ServiceClientFactory = Callable[[str, Credential], SupportsCreateTable]


def _build_table_service_client(endpoint: str, credential: Credential) -> SupportsCreateTable:
    try:
        from azure.data.tables import TableServiceClient
    except ImportError as exc:  # pragma: no cover - declared dependency
        raise MissingDependencyError(
            "Table store support requires dependency 'azure-data-tables'. "
            "Install with: pip install cosmos-msi-probe"
        ) from exc

    return TableServiceClient(endpoint=endpoint, credential=credential)  # type: ignore[arg-type]


class TableResourceClient:
    """Handle bound to one account endpoint and credential, used for one probe."""

    def __init__(self, *, client: SupportsCreateTable, endpoint: str) -> None:
        self._client = client
        self._endpoint = endpoint

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @classmethod
    def construct(
        cls,
        endpoint: str,
        credential: Credential,
        *,
        factory: ServiceClientFactory | None = None,
    ) -> TableResourceClient:
        """Build the service client, raising `ClientError` on any setup failure."""
        normalized = _normalize_endpoint(endpoint)
        build = factory or _build_table_service_client
        try:
            client = build(normalized, credential)
        except MissingDependencyError:
            raise
        except Exception as exc:
            raise ClientError(f"failed to create service client: {exc}") from exc
        return cls(client=client, endpoint=normalized)

    def create_if_absent(self, name: str) -> None:
        """Issue a single create request for table `name`.

        A conflict from the store is raised like any other failure; whether it
        counts as success is the classifier's decision.
        """
        table_name = name.strip()
        if not table_name:
            raise ValueError("table name must be a non-empty string")

        logger.info("Attempting to create table", extra={"table": table_name})
        try:
            self._client.create_table(table_name)
        except Exception as exc:
            raise OperationError(
                f"error creating table '{table_name}': {exc}",
                status_code=error_status(exc),
                error_code=error_code(exc),
            ) from exc

    def close(self) -> None:
        close_quietly(self._client)


def _normalize_endpoint(endpoint: str) -> str:
    value = endpoint.strip()
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ClientError(f"malformed account endpoint: {endpoint!r}")
    return value
