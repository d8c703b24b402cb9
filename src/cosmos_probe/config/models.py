"""Typed probe settings with Pydantic validation."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TABLE_NAME = "ScaleTestTable"
DEFAULT_METRICS_PORT = 8080


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    format: Literal["json", "text"] = Field(default="json", description="Log output format")

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


class ProbeSettings(BaseModel):
    """Process configuration, read once at start-up and immutable afterwards."""

    model_config = ConfigDict(frozen=True)

    account_url: str = Field(..., min_length=1, description="Table store account endpoint URL")
    table_name: str = Field(
        default=DEFAULT_TABLE_NAME,
        min_length=1,
        description="Table created by the probe",
    )
    client_id: str | None = Field(
        default=None,
        description="Client id of a user-assigned managed identity; host default when unset",
    )
    host: str = Field(default="0.0.0.0", description="Reporting server bind host")
    port: int = Field(
        default=DEFAULT_METRICS_PORT,
        ge=1,
        le=65535,
        description="Reporting server bind port",
    )
    metrics_prefix: str = Field(default="cosmos", min_length=1, description="Counter name prefix")
    client_error_classification: Literal["auth_error", "other_error"] = Field(
        default="other_error",
        description="How a client construction failure is counted",
    )
    token_scope: str | None = Field(
        default=None,
        description="Override for the token scope requested when verifying the credential",
    )
    service_name: str = Field(default="cosmos-msi-probe", min_length=1)
    environment: str = Field(default="development", min_length=1)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # A malformed URL is not rejected here; it surfaces as a client
    # construction failure and is counted like any other probe outcome.
    @field_validator("account_url", "table_name")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("client_id", "token_scope", mode="before")
    @classmethod
    def _blank_as_none(cls, value: object) -> object:
        if isinstance(value, str) and value.strip() == "":
            return None
        return value.strip() if isinstance(value, str) else value

    @property
    def identity_mode(self) -> str:
        return "user-assigned" if self.client_id else "default"
