"""
CI Query Client
===============
Read-only queries against the GitHub Actions REST API.

BOUNDARY RULES:
    - The client ONLY reads. It never re-runs, cancels or mutates anything.
    - Ordering is whatever the API returns (most recent first); never re-sorted.
    - One request at a time. No automatic retries.

Failure contract:
    resolve_commit / query_runs /
    query_failed_jobs               — raise QueryError (transport, HTTP status)
                                      or FormatError (payload shape)
    query_job_log                   — returns None when the log is unavailable

The runs endpoint only matches `head_sha` against a full 40-character SHA,
so abbreviated commits go through resolve_commit first.
"""
import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx

from ciwatch.core.config import WatchConfig
from ciwatch.core.constants import CONCLUSION_FAILURE, FULL_SHA_LENGTH, MAX_RUN_LIMIT
from ciwatch.core.errors import FormatError, QueryError
from ciwatch.models.workflow_job import WorkflowJob
from ciwatch.models.workflow_run import WorkflowRun

logger = logging.getLogger(__name__)


class CIQueryClient(Protocol):
    """Capability interface; one method per query shape."""

    def resolve_commit(self, repo: str, commit: str) -> str:
        ...

    def query_runs(self, repo: str, commit: Optional[str] = None, limit: int = 20) -> List[WorkflowRun]:
        ...

    def query_failed_jobs(self, repo: str, run_id: int) -> List[WorkflowJob]:
        ...

    def query_job_log(self, repo: str, job_id: int) -> Optional[str]:
        ...


def _trace_request(request: httpx.Request) -> None:
    logger.debug("+ %s %s", request.method, request.url)


class GitHubActionsClient:
    """
    CIQueryClient backed by httpx.

    Use as a context manager (or call close()) so the connection pool is
    released when the watch ends.
    """

    def __init__(self, config: Optional[WatchConfig] = None, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.config = config or WatchConfig()
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "ciwatch",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.config.token:
            self.headers["Authorization"] = f"Bearer {self.config.token}"

        self._client = httpx.Client(
            base_url=self.config.api_url.rstrip("/"),
            headers=self.headers,
            timeout=self.config.request_timeout,
            follow_redirects=True,
            transport=transport,
            event_hooks={"request": [_trace_request]},
        )

    def __enter__(self) -> "GitHubActionsClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # -------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------
    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as http_err:
            status_code = http_err.response.status_code
            raise QueryError(f"GET {path} failed with HTTP {status_code}", status_code=status_code) from http_err
        except httpx.HTTPError as e:
            raise QueryError(f"GET {path} failed: {e}") from e

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = self._get(path, params=params)
        try:
            data = response.json()
        except ValueError as e:
            raise FormatError(f"GET {path} returned invalid JSON") from e
        if not isinstance(data, dict):
            raise FormatError(f"GET {path} returned {type(data).__name__}, expected an object")
        return data

    @staticmethod
    def _items(data: Dict[str, Any], key: str) -> List[Any]:
        items = data.get(key)
        if not isinstance(items, list):
            raise FormatError(f"Response has no '{key}' array")
        return items

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def resolve_commit(self, repo: str, commit: str) -> str:
        """Expand an abbreviated SHA to the full one; full SHAs need no request."""
        commit = commit.lower()
        if len(commit) == FULL_SHA_LENGTH:
            return commit

        data = self._get_json(f"/repos/{repo}/commits/{commit}")
        sha = data.get("sha")
        if not isinstance(sha, str) or len(sha) != FULL_SHA_LENGTH:
            raise FormatError(f"Commit lookup for {commit} returned no full SHA")
        logger.debug("Resolved %s to %s", commit, sha)
        return sha.lower()

    def query_runs(self, repo: str, commit: Optional[str] = None, limit: int = 20) -> List[WorkflowRun]:
        params: Dict[str, Any] = {"per_page": min(max(limit, 1), MAX_RUN_LIMIT)}
        if commit:
            params["head_sha"] = commit
        data = self._get_json(f"/repos/{repo}/actions/runs", params=params)

        runs: List[WorkflowRun] = []
        for item in self._items(data, "workflow_runs")[:limit]:
            try:
                runs.append(WorkflowRun.from_api(item))
            except FormatError as e:
                logger.warning("Skipping malformed run in %s: %s", repo, e)
        logger.debug("Fetched %d run(s) for %s@%s", len(runs), repo, commit or "*")
        return runs

    def query_failed_jobs(self, repo: str, run_id: int) -> List[WorkflowJob]:
        data = self._get_json(
            f"/repos/{repo}/actions/runs/{run_id}/jobs",
            params={"filter": "latest", "per_page": MAX_RUN_LIMIT},
        )

        jobs: List[WorkflowJob] = []
        for item in self._items(data, "jobs"):
            try:
                job = WorkflowJob.from_api(item)
            except FormatError as e:
                logger.warning("Skipping malformed job in run %s: %s", run_id, e)
                continue
            if job.conclusion == CONCLUSION_FAILURE:
                jobs.append(job)
        return jobs

    def query_job_log(self, repo: str, job_id: int) -> Optional[str]:
        try:
            response = self._get(f"/repos/{repo}/actions/jobs/{job_id}/logs")
        except QueryError as e:
            logger.warning("Could not fetch logs for job %s: %s", job_id, e)
            return None
        return response.text.strip()
