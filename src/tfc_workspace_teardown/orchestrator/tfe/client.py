"""Terraform Cloud API client wrapper.

This intentionally wraps the JSON:API endpoints we need behind a small class to keep
HTTP calls out of orchestration code and make tests easy.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import quote

import requests

from tfc_workspace_teardown import __version__
from tfc_workspace_teardown.orchestrator.errors import APIError

logger = logging.getLogger(__name__)

JSONAPI_CONTENT_TYPE = "application/vnd.api+json"


class RunStatus(str, Enum):
    """Run statuses reported by Terraform Cloud."""

    PENDING = "pending"
    FETCHING = "fetching"
    FETCHING_COMPLETED = "fetching_completed"
    PRE_PLAN_RUNNING = "pre_plan_running"
    PRE_PLAN_COMPLETED = "pre_plan_completed"
    QUEUING = "queuing"
    PLAN_QUEUED = "plan_queued"
    PLANNING = "planning"
    PLANNED = "planned"
    COST_ESTIMATING = "cost_estimating"
    COST_ESTIMATED = "cost_estimated"
    POLICY_CHECKING = "policy_checking"
    POLICY_OVERRIDE = "policy_override"
    POLICY_SOFT_FAILED = "policy_soft_failed"
    POLICY_CHECKED = "policy_checked"
    CONFIRMED = "confirmed"
    POST_PLAN_RUNNING = "post_plan_running"
    POST_PLAN_COMPLETED = "post_plan_completed"
    PLANNED_AND_FINISHED = "planned_and_finished"
    APPLY_QUEUED = "apply_queued"
    APPLYING = "applying"
    APPLIED = "applied"
    DISCARDED = "discarded"
    ERRORED = "errored"
    CANCELED = "canceled"
    FORCE_CANCELED = "force_canceled"


@dataclass(frozen=True, slots=True)
class Workspace:
    """Minimal workspace metadata returned from Terraform Cloud."""

    id: str
    name: str
    organization: str


@dataclass(frozen=True, slots=True)
class Run:
    """Minimal run metadata returned from Terraform Cloud."""

    id: str
    status: str
    message: str = ""
    is_destroy: bool = False


class TerraformCloudClient:
    """Small wrapper around the Terraform Cloud REST API for a workspace teardown."""

    RETRYABLE_SERVER_STATUS_CODES = frozenset({500, 502, 503, 504})

    def __init__(
        self,
        *,
        token: str,
        address: str = "https://app.terraform.io",
        retry_server_errors: bool = True,
        max_retries: int = 3,
        base_delay: float = 0.5,
        max_delay: float = 8.0,
        max_retry_after: float = 60.0,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not token:
            raise ValueError("Terraform Cloud token is required")

        self._api_base_url = f"{address.rstrip('/')}/api/v2"
        self.retry_server_errors = retry_server_errors
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.max_retry_after = max_retry_after
        self.timeout = timeout

        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": JSONAPI_CONTENT_TYPE,
                "Content-Type": JSONAPI_CONTENT_TYPE,
                "User-Agent": f"tfc-workspace-teardown/{__version__}",
            }
        )
        logger.debug("Terraform Cloud client created", extra={"api_base_url": self._api_base_url})

    @property
    def api_base_url(self) -> str:
        return self._api_base_url

    def _workspace_url(self, *, organization: str, workspace: str) -> str:
        if not organization.strip():
            raise ValueError("organization is required")
        if not workspace.strip():
            raise ValueError("workspace is required")
        return (
            f"{self._api_base_url}/organizations/{quote(organization, safe='')}"
            f"/workspaces/{quote(workspace, safe='')}"
        )

    def _run_url(self, run_id: str = "") -> str:
        if run_id:
            return f"{self._api_base_url}/runs/{quote(run_id, safe='')}"
        return f"{self._api_base_url}/runs"

    def _calculate_backoff(self, attempt: int) -> float:
        """Exponential backoff with full jitter for the given 0-indexed attempt."""

        capped_delay = min(self.base_delay * (2**attempt), self.max_delay)
        return random.uniform(0, capped_delay)

    def _retry_after(self, response: requests.Response) -> float | None:
        """Seconds from a numeric `Retry-After` header, capped at `max_retry_after`."""

        value = response.headers.get("Retry-After")
        if value is None:
            return None
        try:
            seconds = max(0.0, float(value))
        except ValueError:
            return None
        return min(seconds, self.max_retry_after)

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        """Build a message from a JSON:API error document, falling back to the reason."""

        try:
            payload = response.json()
        except ValueError:
            payload = None

        messages: list[str] = []
        if isinstance(payload, dict) and isinstance(payload.get("errors"), list):
            for err in payload["errors"]:
                if isinstance(err, dict):
                    parts = [
                        str(err[key]).strip()
                        for key in ("title", "detail")
                        if isinstance(err.get(key), str) and str(err[key]).strip()
                    ]
                    if parts:
                        messages.append(": ".join(parts))
                elif isinstance(err, str) and err.strip():
                    messages.append(err.strip())

        if messages:
            return "; ".join(messages)
        if response.status_code == 404:
            return "resource not found"
        if response.status_code == 401:
            return "unauthorized"
        return response.reason or "request failed"

    def _request(
        self,
        method: str,
        url: str,
        *,
        json_data: dict[str, Any] | None = None,
    ) -> requests.Response:
        """Send a request, retrying rate limits and (optionally) server errors.

        Raises:
            APIError: On transport failure or any non-2xx response once retries are exhausted.
        """

        for attempt in range(self.max_retries + 1):
            can_retry = attempt < self.max_retries
            try:
                response = self._session.request(
                    method,
                    url,
                    json=json_data,
                    timeout=self.timeout,
                )
            except (requests.ConnectionError, requests.Timeout) as e:
                if self.retry_server_errors and can_retry:
                    delay = self._calculate_backoff(attempt)
                    logger.warning(
                        "Transport error from Terraform Cloud API, retrying",
                        extra={"attempt": attempt + 1, "delay": delay, "url": url, "error": str(e)},
                    )
                    time.sleep(delay)
                    continue
                raise APIError(str(e) or type(e).__name__, request_url=url) from e
            except requests.RequestException as e:
                raise APIError(str(e) or type(e).__name__, request_url=url) from e

            status = response.status_code
            retryable = status == 429 or (
                self.retry_server_errors and status in self.RETRYABLE_SERVER_STATUS_CODES
            )
            if retryable and can_retry:
                delay = self._retry_after(response) if status == 429 else None
                if delay is None:
                    delay = self._calculate_backoff(attempt)
                logger.warning(
                    "Retryable error from Terraform Cloud API",
                    extra={
                        "status_code": status,
                        "attempt": attempt + 1,
                        "max_retries": self.max_retries,
                        "delay": delay,
                        "url": url,
                    },
                )
                time.sleep(delay)
                continue

            if status >= 400:
                message = self._error_message(response)
                logger.debug(
                    "Terraform Cloud API error",
                    extra={"status_code": status, "method": method, "url": url},
                )
                raise APIError(message, status_code=status, request_url=url)

            return response

        # The loop either returns or raises; this only guards max_retries < 0.
        raise APIError("request was never attempted", request_url=url)

    @staticmethod
    def _data(response: requests.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as e:
            raise APIError("Unexpected response: body is not JSON") from e
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise APIError("Unexpected response: missing data object")
        return data

    @staticmethod
    def _parse_run(data: dict[str, Any]) -> Run:
        run_id = data.get("id")
        if not isinstance(run_id, str) or not run_id.strip():
            raise APIError("Unexpected run response: missing id")
        attributes = data.get("attributes")
        if not isinstance(attributes, dict):
            attributes = {}
        status = attributes.get("status")
        if not isinstance(status, str):
            status = ""
        message = attributes.get("message")
        return Run(
            id=run_id,
            status=status,
            message=message if isinstance(message, str) else "",
            is_destroy=bool(attributes.get("is-destroy", False)),
        )

    def read_workspace(self, *, organization: str, workspace: str) -> Workspace:
        """Look up a workspace by organization and name."""

        url = self._workspace_url(organization=organization, workspace=workspace)
        logger.debug(
            "Reading workspace", extra={"organization": organization, "workspace": workspace}
        )
        data = self._data(self._request("GET", url))

        workspace_id = data.get("id")
        if not isinstance(workspace_id, str) or not workspace_id.strip():
            raise APIError("Unexpected workspace response: missing id", request_url=url)
        attributes = data.get("attributes")
        name = attributes.get("name") if isinstance(attributes, dict) else None
        return Workspace(
            id=workspace_id,
            name=name if isinstance(name, str) and name else workspace,
            organization=organization,
        )

    def create_run(
        self,
        *,
        workspace: Workspace,
        message: str,
        auto_apply: bool = False,
        is_destroy: bool = False,
    ) -> Run:
        """Queue a new run against a workspace."""

        payload: dict[str, Any] = {
            "data": {
                "type": "runs",
                "attributes": {
                    "message": message,
                    "auto-apply": auto_apply,
                    "is-destroy": is_destroy,
                },
                "relationships": {
                    "workspace": {"data": {"type": "workspaces", "id": workspace.id}},
                },
            }
        }
        logger.info(
            "Creating run",
            extra={"workspace_id": workspace.id, "is_destroy": is_destroy, "auto_apply": auto_apply},
        )
        response = self._request("POST", self._run_url(), json_data=payload)
        run = self._parse_run(self._data(response))
        logger.info("Run created", extra={"run_id": run.id, "status": run.status})
        return run

    def read_run(self, run_id: str) -> Run:
        """Fetch the current state of a run."""

        if not run_id.strip():
            raise ValueError("run_id is required")
        return self._parse_run(self._data(self._request("GET", self._run_url(run_id))))

    def delete_workspace(self, *, organization: str, workspace: str) -> None:
        """Delete a workspace by organization and name."""

        url = self._workspace_url(organization=organization, workspace=workspace)
        self._request("DELETE", url)

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()
