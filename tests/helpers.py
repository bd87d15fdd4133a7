"""Shared builders and fakes for the test suite."""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Union

from ciwatch.models.workflow_job import WorkflowJob
from ciwatch.models.workflow_run import WorkflowRun

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_run(
    run_id: int = 1,
    status: str = "completed",
    conclusion: Optional[str] = "success",
    name: str = "CI",
    event: str = "push",
    seconds: Optional[int] = 42,
) -> WorkflowRun:
    return WorkflowRun(
        id=run_id,
        workflow_name=name,
        event=event,
        status=status,
        conclusion=conclusion,
        started_at=T0 if seconds is not None else None,
        updated_at=T0 + timedelta(seconds=seconds) if seconds is not None else None,
        head_sha="abc1234def",
    )


def make_job(job_id: int, name: str = "build", conclusion: str = "failure") -> WorkflowJob:
    return WorkflowJob(id=job_id, name=name, conclusion=conclusion)


class FakeCIClient:
    """
    In-memory CIQueryClient.

    `snapshots` is consumed one per query_runs call; the last one repeats.
    `jobs` values may be an exception instance to raise instead.
    `logs` maps job id to log text; missing ids return None.
    """

    def __init__(
        self,
        snapshots: List[List[WorkflowRun]],
        jobs: Optional[Dict[int, Union[List[WorkflowJob], Exception]]] = None,
        logs: Optional[Dict[int, Optional[str]]] = None,
    ) -> None:
        self.snapshots = snapshots
        self.jobs = jobs or {}
        self.logs = logs or {}
        self.calls: List[tuple] = []
        self.run_queries = 0

    def resolve_commit(self, repo, commit):
        self.calls.append(("resolve", commit))
        return commit

    def query_runs(self, repo, commit=None, limit=20):
        self.calls.append(("runs", repo, commit, limit))
        index = min(self.run_queries, len(self.snapshots) - 1)
        self.run_queries += 1
        return list(self.snapshots[index])

    def query_failed_jobs(self, repo, run_id):
        self.calls.append(("jobs", run_id))
        value = self.jobs.get(run_id, [])
        if isinstance(value, Exception):
            raise value
        return list(value)

    def query_job_log(self, repo, job_id):
        self.calls.append(("log", job_id))
        return self.logs.get(job_id)


class FakeSleep:
    """Records requested sleeps instead of sleeping."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


