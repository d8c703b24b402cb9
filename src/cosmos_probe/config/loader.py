"""Environment-variable configuration loader."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from cosmos_probe.config.errors import ConfigValidationError, MissingSettingError
from cosmos_probe.config.models import ProbeSettings

ACCOUNT_URL_VAR = "COSMOS_ACCOUNT_URL"

# environment variable -> dotted settings path
ENV_MAPPING: dict[str, str] = {
    ACCOUNT_URL_VAR: "account_url",
    "TABLE_NAME": "table_name",
    "AZURE_CLIENT_ID": "client_id",
    "METRICS_HOST": "host",
    "METRICS_PORT": "port",
    "METRICS_PREFIX": "metrics_prefix",
    "CLIENT_ERROR_CLASSIFICATION": "client_error_classification",
    "TOKEN_SCOPE": "token_scope",
    "SERVICE_NAME": "service_name",
    "PROBE_ENV": "environment",
    "LOG_LEVEL": "logging.level",
    "LOG_FORMAT": "logging.format",
}


def settings_from_env(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect non-empty mapped variables into a nested settings payload."""
    payload: dict[str, Any] = {}
    for variable, path in ENV_MAPPING.items():
        raw = environ.get(variable)
        if raw is None or raw.strip() == "":
            continue
        target = payload
        *parents, leaf = path.split(".")
        for parent in parents:
            target = target.setdefault(parent, {})
        target[leaf] = raw.strip()
    return payload


def load_settings(environ: Mapping[str, str] | None = None) -> ProbeSettings:
    """Load and validate probe settings from the environment.

    Args:
        environ: Variables to read. Defaults to ``os.environ``.

    Returns:
        Validated and frozen ProbeSettings instance.

    Raises:
        MissingSettingError: If ``COSMOS_ACCOUNT_URL`` is unset or blank.
        ConfigValidationError: If any value fails validation.
    """
    if environ is None:
        environ = os.environ

    payload = settings_from_env(environ)
    if "account_url" not in payload:
        raise MissingSettingError(ACCOUNT_URL_VAR)

    try:
        return ProbeSettings.model_validate(payload)
    except ValidationError as e:
        errors = [
            {"loc": " -> ".join(str(loc) for loc in err["loc"]), "msg": err["msg"]}
            for err in e.errors()
        ]
        raise ConfigValidationError(errors) from e
