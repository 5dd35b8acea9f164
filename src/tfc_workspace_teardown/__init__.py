"""Terraform Cloud workspace teardown.

A small CLI that:
- resolves organization, workspace and token from flags, environment and `.env`
- queues an auto-applied destroy run and waits for it to finish
- deletes the workspace once the destroy has been applied
"""

__version__ = "0.1.0"

from tfc_workspace_teardown.orchestrator.config import TeardownConfig, TeardownSettings

__all__ = ["__version__", "TeardownConfig", "TeardownSettings"]
