#!/usr/bin/env python3
"""Programmatic teardown example.

This demonstrates using the orchestrator components directly:

* load settings from the environment / `.env`
* poll an existing destroy run until it is applied
* optionally delete the workspace afterwards

Useful when a destroy run was queued by hand in the Terraform Cloud UI and you only
want to wait for it (and clean up) from a script.
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from pydantic import ValidationError

from tfc_workspace_teardown.orchestrator.config import TeardownSettings, resolve_config
from tfc_workspace_teardown.orchestrator.errors import ConfigurationError, TeardownError
from tfc_workspace_teardown.orchestrator.logging import configure_logging
from tfc_workspace_teardown.orchestrator.teardown import wait_for_destroy_run
from tfc_workspace_teardown.orchestrator.tfe.client import TerraformCloudClient


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Wait for a destroy run (programmatic example).")
    parser.add_argument("--organization", default=None, help="Terraform Cloud organization")
    parser.add_argument("--workspace", default=None, help="Terraform Cloud workspace")
    parser.add_argument("--run-id", required=True, help='Run to wait for, e.g. "run-abc123"')
    parser.add_argument(
        "--delete",
        action="store_true",
        help="Delete the workspace once the run is applied",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        settings = TeardownSettings()
    except ValidationError as exc:
        print("Configuration error (check your environment or .env):", file=sys.stderr)
        print(exc, file=sys.stderr)
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
    except TeardownError as exc:
        print(str(exc))
        return exc.exit_code

    client = TerraformCloudClient(
        token=config.token,
        address=config.address,
        retry_server_errors=config.retry_server_errors,
    )

    try:
        run, iterations = wait_for_destroy_run(
            client,
            run_id=args.run_id,
            poll_interval_seconds=config.poll_interval_seconds,
            max_iterations=config.max_poll_iterations,
        )
        print(f"Run {run.id} finished with status {run.status} after {iterations} polls")

        if args.delete:
            client.delete_workspace(organization=config.organization, workspace=config.workspace)
            print(f"Deleted workspace {config.organization}/{config.workspace}")
    except TeardownError as exc:
        print(str(exc))
        return exc.exit_code
    finally:
        client.close()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
