"""Error taxonomy for the teardown orchestrator.

All errors are terminal. Orchestration code raises them and `main()` is the
only place that turns them into an exit code.
"""

from __future__ import annotations


class TeardownError(Exception):
    """Base class for all teardown failures."""

    exit_code: int = 1


class ConfigurationError(TeardownError):
    """Raised when organization, workspace or token cannot be resolved.

    Attributes:
        variable: Name of the environment variable that was expected.
    """

    exit_code = 2

    def __init__(self, message: str, *, variable: str | None = None) -> None:
        super().__init__(message)
        self.variable = variable


class APIError(TeardownError):
    """Raised when a call to the Terraform Cloud API fails.

    Attributes:
        message: Human-readable error description from the service or transport.
        status_code: HTTP status code, if a response was received.
        request_url: The URL that was requested.
    """

    exit_code = 1

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        request_url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.request_url = request_url

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (HTTP {self.status_code})"


class RunFailed(TeardownError):
    """Raised when the destroy run reaches the errored status."""

    exit_code = 3

    def __init__(self, run_id: str, status: str) -> None:
        super().__init__(
            f"Could not destroy environment, check Terraform Cloud for status of run {run_id}"
        )
        self.run_id = run_id
        self.status = status


class PollTimeout(TeardownError):
    """Raised when the destroy run does not finish within the iteration cap."""

    exit_code = 4

    def __init__(self, run_id: str, iterations: int) -> None:
        super().__init__(
            "Destroy plan took more time than expected, please check status in Terraform Cloud"
        )
        self.run_id = run_id
        self.iterations = iterations
