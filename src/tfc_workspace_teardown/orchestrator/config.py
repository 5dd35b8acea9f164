"""Configuration for the workspace teardown.

Settings are loaded from:
- environment variables
- and a local `.env` file (if present)

Organization and workspace may also be passed on the command line; the flag
wins over the environment. The API token is only ever read from the
environment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tfc_workspace_teardown.orchestrator.errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_TERRAFORM_CLOUD_TOKEN = "TERRAFORM_CLOUD_TOKEN"
ENV_TERRAFORM_CLOUD_ORGANIZATION = "TERRAFORM_CLOUD_ORGANIZATION"
ENV_TERRAFORM_CLOUD_WORKSPACE = "TERRAFORM_CLOUD_WORKSPACE"

DEFAULT_ADDRESS = "https://app.terraform.io"
DEFAULT_RUN_MESSAGE = "Automatically started via GitHub Actions"
POLL_INTERVAL_SECONDS = 10
MAX_POLL_ITERATIONS = 360


class TeardownSettings(BaseSettings):
    """Raw settings read from the environment.

    Environment variables:
    - TERRAFORM_CLOUD_TOKEN                (required, validated in `resolve_config`)
    - TERRAFORM_CLOUD_ORGANIZATION         (fallback for --organization)
    - TERRAFORM_CLOUD_WORKSPACE            (fallback for --workspace)
    - TFE_ADDRESS                          (optional)
    - TERRAFORM_CLOUD_RETRY_SERVER_ERRORS  (optional)
    - LOG_LEVEL                            (optional)

    Notes:
        Values are left empty here so that missing ones can be reported with the
        variable name once flags have been taken into account.
    """

    token: str = Field(
        default="",
        validation_alias=ENV_TERRAFORM_CLOUD_TOKEN,
        description="Terraform Cloud API token",
    )
    organization: str = Field(
        default="",
        validation_alias=ENV_TERRAFORM_CLOUD_ORGANIZATION,
        description="Terraform Cloud organization name",
    )
    workspace: str = Field(
        default="",
        validation_alias=ENV_TERRAFORM_CLOUD_WORKSPACE,
        description="Terraform Cloud workspace name",
    )

    address: str = Field(
        default=DEFAULT_ADDRESS,
        validation_alias="TFE_ADDRESS",
        description="Terraform Cloud / Enterprise base URL",
    )
    retry_server_errors: bool = Field(
        default=True,
        validation_alias="TERRAFORM_CLOUD_RETRY_SERVER_ERRORS",
        description="Let the API client retry 5xx responses",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("address")
    @classmethod
    def _validate_address(cls, value: str) -> str:
        address = value.strip().rstrip("/")
        if not address:
            return DEFAULT_ADDRESS
        parsed = urlparse(address)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(
                f"TFE_ADDRESS must be an http(s) URL such as {DEFAULT_ADDRESS}, got {value!r}"
            )
        return address


@dataclass(frozen=True, slots=True)
class TeardownConfig:
    """Fully resolved, immutable configuration for one teardown."""

    organization: str
    workspace: str
    token: str = field(default="", repr=False)
    address: str = DEFAULT_ADDRESS
    retry_server_errors: bool = True
    run_message: str = DEFAULT_RUN_MESSAGE
    poll_interval_seconds: float = POLL_INTERVAL_SECONDS
    max_poll_iterations: int = MAX_POLL_ITERATIONS


def _from_flag_or_env(
    flag_value: str | None,
    env_value: str,
    *,
    kind: str,
    variable: str,
    missing_message: str,
) -> str:
    if flag_value is not None and flag_value.strip():
        return flag_value.strip()

    logger.info(
        f"No {kind} name provided as input argument, will fall back to environment variable",
        extra={"variable": variable},
    )
    if not env_value.strip():
        raise ConfigurationError(missing_message, variable=variable)

    logger.info(f"{kind.capitalize()} name read from environment variable")
    return env_value.strip()


def resolve_config(
    settings: TeardownSettings,
    *,
    organization: str | None = None,
    workspace: str | None = None,
) -> TeardownConfig:
    """Combine command-line values with settings into a `TeardownConfig`.

    Raises:
        ConfigurationError: If organization, workspace or token is missing. They are
            checked in that order and the first missing one is reported.
    """

    resolved_org = _from_flag_or_env(
        organization,
        settings.organization,
        kind="organization",
        variable=ENV_TERRAFORM_CLOUD_ORGANIZATION,
        missing_message=(
            "The organization name must be provided either as an input parameter or in the "
            f"{ENV_TERRAFORM_CLOUD_ORGANIZATION} environment variable"
        ),
    )
    resolved_workspace = _from_flag_or_env(
        workspace,
        settings.workspace,
        kind="workspace",
        variable=ENV_TERRAFORM_CLOUD_WORKSPACE,
        missing_message=(
            "A workspace name must be provided either as an input parameter or in the "
            f"{ENV_TERRAFORM_CLOUD_WORKSPACE} environment variable"
        ),
    )

    if not settings.token.strip():
        raise ConfigurationError(
            f"{ENV_TERRAFORM_CLOUD_TOKEN} environment variable must be set with a valid token",
            variable=ENV_TERRAFORM_CLOUD_TOKEN,
        )

    return TeardownConfig(
        organization=resolved_org,
        workspace=resolved_workspace,
        token=settings.token.strip(),
        address=settings.address,
        retry_server_errors=settings.retry_server_errors,
    )
