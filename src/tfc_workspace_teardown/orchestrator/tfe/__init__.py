"""Terraform Cloud API access."""

from tfc_workspace_teardown.orchestrator.tfe.client import (
    Run,
    RunStatus,
    TerraformCloudClient,
    Workspace,
)

__all__ = ["Run", "RunStatus", "TerraformCloudClient", "Workspace"]
