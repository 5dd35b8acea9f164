"""CLI entrypoint for the workspace teardown.

Destroys everything managed by a Terraform Cloud workspace, then deletes the workspace.
"""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from tfc_workspace_teardown import __version__
from tfc_workspace_teardown.orchestrator.config import TeardownSettings, resolve_config
from tfc_workspace_teardown.orchestrator.errors import (
    APIError,
    ConfigurationError,
    PollTimeout,
    RunFailed,
)
from tfc_workspace_teardown.orchestrator.logging import configure_logging
from tfc_workspace_teardown.orchestrator.teardown import destroy_workspace
from tfc_workspace_teardown.orchestrator.tfe.client import TerraformCloudClient

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tfc-workspace-teardown",
        description=(
            "Destroy all resources of a Terraform Cloud workspace with an auto-applied "
            "destroy run, then delete the workspace"
        ),
    )
    parser.add_argument(
        "--version", action="version", version=f"tfc-workspace-teardown {__version__}"
    )
    parser.add_argument(
        "--organization",
        default=None,
        help="Terraform Cloud organization name (defaults to $TERRAFORM_CLOUD_ORGANIZATION)",
    )
    parser.add_argument(
        "--workspace",
        default=None,
        help="Terraform Cloud workspace name (defaults to $TERRAFORM_CLOUD_WORKSPACE)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = TeardownSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your environment or .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return ConfigurationError.exit_code

    try:
        configure_logging(settings.log_level)
    except ValueError:
        print(f"Configuration error: invalid LOG_LEVEL {settings.log_level!r}", file=sys.stderr)
        return ConfigurationError.exit_code

    try:
        config = resolve_config(
            settings, organization=args.organization, workspace=args.workspace
        )
    except ConfigurationError as e:
        logger.error(str(e), extra={"variable": e.variable})
        return e.exit_code

    client = TerraformCloudClient(
        token=config.token,
        address=config.address,
        retry_server_errors=config.retry_server_errors,
    )
    try:
        result = destroy_workspace(client, config)
        print(
            f"Destroyed and deleted workspace {config.organization}/{config.workspace} "
            f"(run {result.run_id})"
        )
        return 0

    except RunFailed as e:
        logger.error(str(e), extra={"run_id": e.run_id, "status": e.status})
        return e.exit_code

    except PollTimeout as e:
        logger.error(str(e), extra={"run_id": e.run_id, "iterations": e.iterations})
        return e.exit_code

    except APIError as e:
        logger.error(
            str(e), extra={"status_code": e.status_code, "request_url": e.request_url}
        )
        return e.exit_code

    except Exception:
        logger.exception("Teardown failed")
        return 1

    finally:
        client.close()


if __name__ == "__main__":
    raise SystemExit(main())
