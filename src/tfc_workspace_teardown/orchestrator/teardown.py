"""Destroy a Terraform Cloud workspace's resources, then delete the workspace.

Sequence:
- look up the workspace
- queue a destroy run with auto-apply
- poll the run at a fixed interval until it is applied or errored
- delete the workspace

Every failure is raised; nothing here exits the process.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from tfc_workspace_teardown.orchestrator.config import TeardownConfig
from tfc_workspace_teardown.orchestrator.errors import PollTimeout, RunFailed
from tfc_workspace_teardown.orchestrator.tfe.client import (
    Run,
    RunStatus,
    TerraformCloudClient,
    Workspace,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TeardownResult:
    """Outcome of a successful teardown."""

    workspace: Workspace
    run_id: str
    final_status: str
    poll_iterations: int


def wait_for_destroy_run(
    client: TerraformCloudClient,
    *,
    run_id: str,
    poll_interval_seconds: float,
    max_iterations: int,
) -> tuple[Run, int]:
    """Poll a run until it is applied.

    The reported elapsed time is ``poll_interval_seconds * iterations`` and does not
    include time spent in API calls.

    Returns:
        The applied run and the number of sleeps performed.

    Raises:
        RunFailed: The run reached the errored status.
        PollTimeout: More than ``max_iterations`` sleeps passed without a terminal status.
        APIError: Reading the run failed.
    """

    if poll_interval_seconds < 0:
        raise ValueError("poll_interval_seconds must be >= 0")
    if max_iterations < 0:
        raise ValueError("max_iterations must be >= 0")

    iterations = 0
    while True:
        run = client.read_run(run_id)

        if run.status == RunStatus.APPLIED:
            logger.info("Destroy plan finished!", extra={"run_id": run_id})
            return run, iterations

        if run.status == RunStatus.ERRORED:
            raise RunFailed(run_id, run.status)

        logger.info(
            f"Destroying ... ({poll_interval_seconds * iterations:g} s)",
            extra={"run_id": run_id, "status": run.status},
        )
        time.sleep(poll_interval_seconds)

        iterations += 1
        if iterations > max_iterations:
            raise PollTimeout(run_id, iterations)


def destroy_workspace(client: TerraformCloudClient, config: TeardownConfig) -> TeardownResult:
    """Run a destroy-apply against the configured workspace and delete it afterwards."""

    workspace = client.read_workspace(
        organization=config.organization, workspace=config.workspace
    )
    logger.info(
        "Workspace found",
        extra={
            "organization": config.organization,
            "workspace": workspace.name,
            "workspace_id": workspace.id,
        },
    )

    run = client.create_run(
        workspace=workspace,
        message=config.run_message,
        auto_apply=True,
        is_destroy=True,
    )

    final_run, iterations = wait_for_destroy_run(
        client,
        run_id=run.id,
        poll_interval_seconds=config.poll_interval_seconds,
        max_iterations=config.max_poll_iterations,
    )

    logger.info("Deleting workspace", extra={"workspace": config.workspace})
    client.delete_workspace(organization=config.organization, workspace=config.workspace)
    logger.info("Workspace deleted", extra={"workspace": config.workspace})

    return TeardownResult(
        workspace=workspace,
        run_id=run.id,
        final_status=final_run.status,
        poll_iterations=iterations,
    )
