"""
GET /runs/{owner}/{repo}/{commit}
Single-snapshot status of the workflow runs for a commit. Never waits for
active runs; clients poll this endpoint themselves.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from ciwatch.core import config
from ciwatch.core.config import WatchConfig
from ciwatch.core.errors import FormatError, QueryError
from ciwatch.agents.run_monitor import query_matching_runs
from ciwatch.models.workflow_run import WorkflowRun
from ciwatch.parser.classification import classify_run, format_duration, is_active, is_failed
from ciwatch.services import vcs
from ciwatch.services.ci_query import CIQueryClient, GitHubActionsClient
from ciwatch.services.failure_logs import FailureLogAggregator

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class RunStatus(BaseModel):
    id: int
    workflow_name: str
    event: str
    status: str
    conclusion: Optional[str] = None
    display_state: str
    duration: str
    active: bool
    html_url: str = ""


class JobLog(BaseModel):
    id: int
    name: str
    log: Optional[str] = None
    warning: str = ""


class FailedRun(BaseModel):
    run_id: int
    workflow_name: str
    jobs: List[JobLog] = []
    warning: str = ""


class CommitStatus(BaseModel):
    repo: str
    commit: str
    total: int
    failed: int
    active: int
    runs: List[RunStatus] = []
    failures: List[FailedRun] = []


def _to_status(run: WorkflowRun) -> RunStatus:
    return RunStatus(
        id=run.id,
        workflow_name=run.workflow_name,
        event=run.event,
        status=run.status,
        conclusion=run.conclusion,
        display_state=classify_run(run),
        duration=format_duration(run.started_at, run.updated_at),
        active=is_active(run.status),
        html_url=run.html_url,
    )


def build_client() -> CIQueryClient:
    """Factory patched in tests."""
    if not config.GITHUB_TOKEN:
        raise HTTPException(status_code=503, detail="GitHub token is not configured")
    return GitHubActionsClient(WatchConfig(token=config.GITHUB_TOKEN))


@router.get("/runs/{owner}/{repo}/{commit}", response_model=CommitStatus)
def get_commit_status(
    owner: str,
    repo: str,
    commit: str,
    workflow: Optional[str] = Query(default=None),
    include_logs: bool = Query(default=False),
):
    slug = f"{owner}/{repo}"
    if not vcs.is_valid_repo(slug):
        raise HTTPException(status_code=422, detail=f"Invalid repository '{slug}'")
    if not vcs.is_valid_commit(commit):
        raise HTTPException(status_code=422, detail=f"Invalid commit '{commit}'")
    commit = commit.lower()

    client = build_client()
    try:
        commit = client.resolve_commit(slug, commit)
        runs, _ = query_matching_runs(client, slug, commit, config.RUN_LIMIT, workflow)
        failures: List[FailedRun] = []
        if include_logs:
            for report in FailureLogAggregator(client).aggregate(slug, runs):
                failures.append(FailedRun(
                    run_id=report.run.id,
                    workflow_name=report.run.workflow_name,
                    warning=report.warning,
                    jobs=[
                        JobLog(id=entry.job.id, name=entry.job.name, log=entry.log, warning=entry.warning)
                        for entry in report.jobs
                    ],
                ))
    except (QueryError, FormatError) as e:
        logger.error("Status query for %s@%s failed: %s", slug, commit, e)
        raise HTTPException(status_code=502, detail=str(e))
    finally:
        close = getattr(client, "close", None)
        if close:
            close()

    return CommitStatus(
        repo=slug,
        commit=commit,
        total=len(runs),
        failed=sum(1 for run in runs if is_failed(run)),
        active=sum(1 for run in runs if is_active(run.status)),
        runs=[_to_status(run) for run in runs],
        failures=failures,
    )
