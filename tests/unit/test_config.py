"""Unit tests for settings loading and configuration resolution."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from tfc_workspace_teardown.orchestrator import config as config_mod
from tfc_workspace_teardown.orchestrator.config import (
    DEFAULT_ADDRESS,
    MAX_POLL_ITERATIONS,
    POLL_INTERVAL_SECONDS,
    TeardownSettings,
    resolve_config,
)
from tfc_workspace_teardown.orchestrator.errors import ConfigurationError


def test_settings_defaults(clean_env: Path) -> None:
    settings = TeardownSettings()

    assert settings.token == ""
    assert settings.organization == ""
    assert settings.workspace == ""
    assert settings.address == DEFAULT_ADDRESS
    assert settings.retry_server_errors is True
    assert settings.log_level == "INFO"


def test_settings_loads_from_dotenv(clean_env: Path) -> None:
    (clean_env / ".env").write_text(
        "\n".join(
            [
                "TERRAFORM_CLOUD_TOKEN=dotenv-token",
                "TERRAFORM_CLOUD_ORGANIZATION=acme",
                "TERRAFORM_CLOUD_WORKSPACE=staging",
                "LOG_LEVEL=DEBUG",
                "",
            ]
        ),
        encoding="utf-8",
    )

    settings = TeardownSettings()

    assert settings.token == "dotenv-token"
    assert settings.organization == "acme"
    assert settings.workspace == "staging"
    assert settings.log_level == "DEBUG"


def test_environment_wins_over_dotenv(clean_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (clean_env / ".env").write_text("TERRAFORM_CLOUD_WORKSPACE=from-file\n", encoding="utf-8")
    monkeypatch.setenv("TERRAFORM_CLOUD_WORKSPACE", "from-env")

    assert TeardownSettings().workspace == "from-env"


def test_resolve_prefers_flags_over_environment(
    clean_env: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TERRAFORM_CLOUD_TOKEN", "test-token")
    monkeypatch.setenv("TERRAFORM_CLOUD_ORGANIZATION", "env-org")
    monkeypatch.setenv("TERRAFORM_CLOUD_WORKSPACE", "env-ws")

    config = resolve_config(TeardownSettings(), organization="flag-org", workspace="flag-ws")

    assert config.organization == "flag-org"
    assert config.workspace == "flag-ws"
    assert config.token == "test-token"


def test_resolve_falls_back_to_environment(
    clean_env: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TERRAFORM_CLOUD_TOKEN", "test-token")
    monkeypatch.setenv("TERRAFORM_CLOUD_ORGANIZATION", "env-org")
    monkeypatch.setenv("TERRAFORM_CLOUD_WORKSPACE", "env-ws")

    config = resolve_config(TeardownSettings(), organization=None, workspace="")

    assert config.organization == "env-org"
    assert config.workspace == "env-ws"
    assert config.poll_interval_seconds == POLL_INTERVAL_SECONDS
    assert config.max_poll_iterations == MAX_POLL_ITERATIONS
    assert config.retry_server_errors is True


def test_missing_organization_names_variable(clean_env: Path) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        resolve_config(TeardownSettings())

    assert excinfo.value.variable == "TERRAFORM_CLOUD_ORGANIZATION"
    assert "TERRAFORM_CLOUD_ORGANIZATION" in str(excinfo.value)


def test_missing_workspace_names_variable(clean_env: Path) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        resolve_config(TeardownSettings(), organization="acme")

    assert excinfo.value.variable == "TERRAFORM_CLOUD_WORKSPACE"
    assert "TERRAFORM_CLOUD_WORKSPACE" in str(excinfo.value)


@pytest.mark.parametrize("token", [None, "", "   "])
def test_missing_or_empty_token_is_rejected(
    clean_env: Path, monkeypatch: pytest.MonkeyPatch, token: str | None
) -> None:
    if token is not None:
        monkeypatch.setenv("TERRAFORM_CLOUD_TOKEN", token)

    with pytest.raises(ConfigurationError) as excinfo:
        resolve_config(TeardownSettings(), organization="acme", workspace="staging")

    assert excinfo.value.variable == "TERRAFORM_CLOUD_TOKEN"


def test_empty_environment_value_counts_as_missing(
    clean_env: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TERRAFORM_CLOUD_TOKEN", "test-token")
    monkeypatch.setenv("TERRAFORM_CLOUD_ORGANIZATION", "")

    with pytest.raises(ConfigurationError) as excinfo:
        resolve_config(TeardownSettings(), workspace="staging")

    assert excinfo.value.variable == "TERRAFORM_CLOUD_ORGANIZATION"


def test_address_and_retry_flag_are_carried_over(
    clean_env: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TERRAFORM_CLOUD_TOKEN", "test-token")
    monkeypatch.setenv("TFE_ADDRESS", "https://tfe.example.com/")
    monkeypatch.setenv("TERRAFORM_CLOUD_RETRY_SERVER_ERRORS", "false")

    config = resolve_config(TeardownSettings(), organization="acme", workspace="staging")

    assert config.address == "https://tfe.example.com"
    assert config.retry_server_errors is False


def test_config_repr_hides_token(clean_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TERRAFORM_CLOUD_TOKEN", "super-secret")

    config = resolve_config(TeardownSettings(), organization="acme", workspace="staging")

    assert "super-secret" not in repr(config)


@pytest.mark.parametrize(
    "address", ["app.terraform.io", "ftp://tfe.example.com", "https://", "tfe.example.com:8443"]
)
def test_malformed_address_is_rejected(
    clean_env: Path, monkeypatch: pytest.MonkeyPatch, address: str
) -> None:
    monkeypatch.setenv("TFE_ADDRESS", address)

    with pytest.raises(ValidationError) as excinfo:
        TeardownSettings()

    assert "TFE_ADDRESS" in str(excinfo.value)


def test_blank_address_uses_default(clean_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TFE_ADDRESS", "  ")

    assert TeardownSettings().address == DEFAULT_ADDRESS


def test_flags_do_not_log_environment_fallback(
    clean_env: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setenv("TERRAFORM_CLOUD_TOKEN", "test-token")

    with caplog.at_level("INFO", logger=config_mod.__name__):
        resolve_config(TeardownSettings(), organization="acme", workspace="staging")

    assert [r.getMessage() for r in caplog.records if r.name == config_mod.__name__] == []


def test_environment_fallback_is_logged(
    clean_env: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setenv("TERRAFORM_CLOUD_TOKEN", "test-token")
    monkeypatch.setenv("TERRAFORM_CLOUD_ORGANIZATION", "env-org")
    monkeypatch.setenv("TERRAFORM_CLOUD_WORKSPACE", "env-ws")

    with caplog.at_level("INFO", logger=config_mod.__name__):
        resolve_config(TeardownSettings())

    assert [r.getMessage() for r in caplog.records if r.name == config_mod.__name__] == [
        "No organization name provided as input argument, will fall back to environment variable",
        "Organization name read from environment variable",
        "No workspace name provided as input argument, will fall back to environment variable",
        "Workspace name read from environment variable",
    ]
    assert caplog.records[0].variable == "TERRAFORM_CLOUD_ORGANIZATION"
    assert caplog.records[2].variable == "TERRAFORM_CLOUD_WORKSPACE"
