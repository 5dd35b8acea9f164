"""Test configuration and fixtures."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from tfc_workspace_teardown.orchestrator.config import TeardownConfig

_SETTINGS_ENV_VARS = (
    "TERRAFORM_CLOUD_TOKEN",
    "TERRAFORM_CLOUD_ORGANIZATION",
    "TERRAFORM_CLOUD_WORKSPACE",
    "TFE_ADDRESS",
    "TERRAFORM_CLOUD_RETRY_SERVER_ERRORS",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Clear settings variables and run from an empty directory (no stray `.env`)."""
    for name in _SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def teardown_config() -> TeardownConfig:
    """Provide a resolved teardown configuration."""
    return TeardownConfig(
        organization="acme",
        workspace="pr-123",
        token="test-token",
        poll_interval_seconds=10,
        max_poll_iterations=360,
    )


@pytest.fixture(autouse=True)
def restore_root_logging() -> Iterator[None]:
    """Undo `configure_logging` so handlers don't outlive a test's captured stdout."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
