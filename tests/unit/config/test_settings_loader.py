"""Tests for environment-driven settings loading."""

from __future__ import annotations

import pytest

from cosmos_probe.config import (
    ConfigError,
    ConfigValidationError,
    MissingSettingError,
    ProbeSettings,
    load_settings,
    settings_from_env,
)

ACCOUNT = "https://acct.table.cosmos.azure.com:443/"


class TestSettingsFromEnv:
    """Tests for settings_from_env."""

    def test_maps_nested_paths(self) -> None:
        payload = settings_from_env(
            {"COSMOS_ACCOUNT_URL": ACCOUNT, "LOG_LEVEL": "debug", "LOG_FORMAT": "text"}
        )
        assert payload == {
            "account_url": ACCOUNT,
            "logging": {"level": "debug", "format": "text"},
        }

    def test_skips_blank_and_unknown_variables(self) -> None:
        payload = settings_from_env({"AZURE_CLIENT_ID": "  ", "UNRELATED": "x"})
        assert payload == {}


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults(self) -> None:
        settings = load_settings({"COSMOS_ACCOUNT_URL": ACCOUNT})

        assert settings.account_url == ACCOUNT
        assert settings.table_name == "ScaleTestTable"
        assert settings.client_id is None
        assert settings.identity_mode == "default"
        assert settings.port == 8080
        assert settings.host == "0.0.0.0"
        assert settings.metrics_prefix == "cosmos"
        assert settings.client_error_classification == "other_error"
        assert settings.logging.level == "INFO"
        assert settings.logging.format == "json"

    def test_full_environment(self) -> None:
        settings = load_settings(
            {
                "COSMOS_ACCOUNT_URL": f" {ACCOUNT} ",
                "TABLE_NAME": "ProbeTable",
                "AZURE_CLIENT_ID": "11111111-2222-3333-4444-555555555555",
                "METRICS_PORT": "9100",
                "CLIENT_ERROR_CLASSIFICATION": "auth_error",
                "TOKEN_SCOPE": "https://storage.azure.com/.default",
                "LOG_LEVEL": "warning",
            }
        )

        assert settings.account_url == ACCOUNT
        assert settings.table_name == "ProbeTable"
        assert settings.client_id == "11111111-2222-3333-4444-555555555555"
        assert settings.identity_mode == "user-assigned"
        assert settings.port == 9100
        assert settings.client_error_classification == "auth_error"
        assert settings.token_scope == "https://storage.azure.com/.default"
        assert settings.logging.level == "WARNING"

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COSMOS_ACCOUNT_URL", ACCOUNT)
        monkeypatch.setenv("TABLE_NAME", "FromEnv")

        assert load_settings().table_name == "FromEnv"

    @pytest.mark.parametrize("environ", [{}, {"COSMOS_ACCOUNT_URL": "   "}])
    def test_missing_account_url_is_fatal(self, environ: dict[str, str]) -> None:
        with pytest.raises(MissingSettingError) as exc_info:
            load_settings(environ)

        assert isinstance(exc_info.value, ConfigError)
        assert "COSMOS_ACCOUNT_URL" in str(exc_info.value)

    @pytest.mark.parametrize(
        ("variable", "value", "loc"),
        [
            ("METRICS_PORT", "not-a-port", "port"),
            ("METRICS_PORT", "70000", "port"),
            ("CLIENT_ERROR_CLASSIFICATION", "success", "client_error_classification"),
            ("LOG_FORMAT", "xml", "logging -> format"),
        ],
    )
    def test_invalid_values_raise_validation_error(
        self,
        variable: str,
        value: str,
        loc: str,
    ) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            load_settings({"COSMOS_ACCOUNT_URL": ACCOUNT, variable: value})

        assert any(err["loc"] == loc for err in exc_info.value.errors)

    def test_settings_are_frozen(self) -> None:
        settings = ProbeSettings(account_url=ACCOUNT)
        with pytest.raises(Exception):
            settings.port = 1  # type: ignore[misc]

    def test_malformed_url_is_left_to_the_probe(self) -> None:
        settings = load_settings({"COSMOS_ACCOUNT_URL": "not a url"})
        assert settings.account_url == "not a url"
