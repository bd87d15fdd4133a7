"""
Run Monitor Agent
=================
Polls GitHub Actions for the workflow runs of one commit until none of them
is active, or the timeout ceiling is reached.

State machine:  Idle → Polling → Done
    - Idle:     initial snapshot taken by the caller
    - Polling:  entered only if that snapshot has an active run
    - Done:     no active runs left, or elapsed >= poll_timeout

Each tick sleeps a fixed interval, then re-queries. Every snapshot replaces
the previous one wholesale. Elapsed time advances in whole intervals, so the
loop ends within poll_timeout + poll_interval no matter what the API says.
"""
import time
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from ciwatch.core.config import WatchConfig
from ciwatch.core.constants import MAX_RUN_LIMIT
from ciwatch.core.errors import UsageError
from ciwatch.models.workflow_run import WorkflowRun
from ciwatch.parser.classification import is_active
from ciwatch.services.ci_query import CIQueryClient

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def active_runs(runs: List[WorkflowRun]) -> List[WorkflowRun]:
    return [run for run in runs if is_active(run.status)]


def filter_by_workflow(runs: List[WorkflowRun], workflow: Optional[str]) -> List[WorkflowRun]:
    """Keep runs whose workflow name contains `workflow` (case-insensitive)."""
    if not workflow:
        return runs
    needle = workflow.lower()
    return [run for run in runs if needle in run.workflow_name.lower()]


def query_matching_runs(
    client: CIQueryClient,
    repo: str,
    commit: Optional[str],
    limit: int,
    workflow: Optional[str] = None,
) -> Tuple[List[WorkflowRun], int]:
    """
    Query runs and apply the workflow filter before the run limit.

    With a filter the full page is fetched so a matching run is not cut off
    by runs of other workflows. Returns (matching runs, runs fetched).
    """
    if not workflow:
        runs = client.query_runs(repo, commit, limit)
        return runs, len(runs)
    runs = client.query_runs(repo, commit, MAX_RUN_LIMIT)
    return filter_by_workflow(runs, workflow)[:limit], len(runs)


@dataclass
class PollResult:
    """
    Outcome of wait_for_completion.

    Fields
    ------
    runs : list[WorkflowRun]
        Last snapshot fetched. May still contain active runs when timed_out.
    timed_out : bool
        True if the ceiling was reached before every run went inactive.
    elapsed : int
        Simulated seconds spent sleeping between ticks.
    iterations : int
        Number of re-queries performed.
    """
    runs: List[WorkflowRun] = field(default_factory=list)
    timed_out: bool = False
    elapsed: int = 0
    iterations: int = 0


class RunMonitor:
    """
    Agent that waits for the CI runs of a commit to settle.
    """

    def __init__(
        self,
        client: CIQueryClient,
        config: Optional[WatchConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.client = client
        self.config = config or WatchConfig()
        self.sleep = sleep
        self.clock = clock
        self.timeline: List[Dict[str, Any]] = []
        self.last_fetched = 0

    def _add_timeline_event(self, iteration: int, runs: List[WorkflowRun], elapsed: int, phase: str) -> None:
        """Add a timeline event describing one snapshot."""
        self.timeline.append({
            "iteration": iteration,
            "phase": phase,
            "timestamp": self.clock().isoformat(),
            "total_runs": len(runs),
            "active_runs": len(active_runs(runs)),
            "elapsed": elapsed,
        })

    def _query(self, repo: str, commit: str, workflow: Optional[str]) -> List[WorkflowRun]:
        runs, self.last_fetched = query_matching_runs(
            self.client, repo, commit, self.config.run_limit, workflow,
        )
        return runs

    def fetch_runs(self, repo: str, commit: str, workflow: Optional[str] = None) -> List[WorkflowRun]:
        """
        Take the initial snapshot.

        CI may not have registered runs for a freshly pushed commit yet, so an
        empty first answer gets exactly one retry after no_runs_retry_delay.

        Raises UsageError when the commit has runs but none of them belongs
        to a workflow matching `workflow`.
        """
        runs = self._query(repo, commit, workflow)
        self._add_timeline_event(0, runs, 0, "initial")
        if runs:
            return runs

        logger.info(
            "No runs yet for %s@%s, retrying once in %ds",
            repo, commit, self.config.no_runs_retry_delay,
        )
        self.sleep(self.config.no_runs_retry_delay)
        runs = self._query(repo, commit, workflow)
        self._add_timeline_event(0, runs, 0, "retry")
        if not runs and workflow and self.last_fetched:
            raise UsageError(f"No workflow found containing '{workflow}'.")
        return runs

    def wait_for_completion(
        self,
        repo: str,
        commit: str,
        runs: List[WorkflowRun],
        workflow: Optional[str] = None,
        on_tick: Optional[Callable[[int, List[WorkflowRun]], None]] = None,
    ) -> PollResult:
        """
        Poll until no run is active or the timeout ceiling is hit.

        Returns immediately, without querying, if `runs` has no active run.
        Otherwise queries at least once.
        """
        result = PollResult(runs=runs)
        if not active_runs(runs):
            return result

        interval = self.config.poll_interval
        timeout = self.config.poll_timeout

        while True:
            self.sleep(interval)
            result.elapsed += interval
            result.iterations += 1

            result.runs = self._query(repo, commit, workflow)
            self._add_timeline_event(result.iterations, result.runs, result.elapsed, "poll")
            if on_tick is not None:
                on_tick(result.iterations, result.runs)

            still_active = active_runs(result.runs)
            if not still_active:
                logger.info("All runs settled after %ds (%d polls)", result.elapsed, result.iterations)
                return result

            if result.elapsed >= timeout:
                logger.warning(
                    "Timeout reached after %ds with %d run(s) still active",
                    result.elapsed, len(still_active),
                )
                result.timed_out = True
                return result

            logger.debug("%d run(s) still active after %ds", len(still_active), result.elapsed)

    def get_timeline(self) -> List[Dict[str, Any]]:
        """Return the captured timeline events."""
        return self.timeline
