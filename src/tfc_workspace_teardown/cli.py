"""Console script entrypoint.

The CLI itself is implemented in `tfc_workspace_teardown.orchestrator.main`.
"""

from __future__ import annotations

from tfc_workspace_teardown.orchestrator.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
