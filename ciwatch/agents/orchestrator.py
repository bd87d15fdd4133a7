"""
Orchestrator Agent
==================
Drives one watch from target to exit code:

    full commit SHA → initial snapshot (one retry if empty) → summary
        → wait while any run is active (summary again whenever an active
          snapshot changes state) → summary of the final snapshot
        → failure logs for failed runs → outcome banner + exit code

Exit codes:
    0   no runs, or no run concluded with failure
    64  at least one run concluded with failure
    (1 is reserved for errors raised out of this module and handled by the CLI)
"""
import time
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from ciwatch.agents.run_monitor import RunMonitor, active_runs
from ciwatch.core.config import WatchConfig
from ciwatch.core.console import Console, render_summary
from ciwatch.core.constants import EXIT_RUNS_FAILED, EXIT_SUCCESS
from ciwatch.core.output_formatter import format_outcome, format_title
from ciwatch.models.workflow_run import WorkflowRun
from ciwatch.parser.classification import DisplayState, classify_run, is_failed
from ciwatch.services.ci_query import CIQueryClient
from ciwatch.services.failure_logs import FailedRunReport, FailureLogAggregator

logger = logging.getLogger(__name__)

TIMEOUT_WARNING = "Timeout reached. Some runs may still be in progress."


@dataclass
class WatchOutcome:
    exit_code: int
    runs: List[WorkflowRun] = field(default_factory=list)
    failed_runs: List[WorkflowRun] = field(default_factory=list)
    reports: List[FailedRunReport] = field(default_factory=list)
    timed_out: bool = False


class Orchestrator:
    """
    Runs the watch pipeline against any CIQueryClient and writes the report
    to a Console.
    """

    def __init__(
        self,
        client: CIQueryClient,
        config: Optional[WatchConfig] = None,
        console: Optional[Console] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.config = config or WatchConfig()
        self.console = console or Console()
        self.monitor = RunMonitor(client, self.config, sleep=sleep)
        self.aggregator = FailureLogAggregator(client, self.console)

    def run(self, repo: str, commit: str, workflow: Optional[str] = None) -> WatchOutcome:
        out = self.console
        out.h1(format_title(repo, commit))

        commit = self.client.resolve_commit(repo, commit)
        runs = self.monitor.fetch_runs(repo, commit, workflow)
        if not runs:
            return self._no_runs(commit)

        render_summary(runs, out)
        out.log()

        timed_out = False
        pending = active_runs(runs)
        if pending:
            out.log(f"Waiting for {len(pending)} active run(s) to complete...")
            result = self.monitor.wait_for_completion(
                repo, commit, runs, workflow,
                on_tick=self._progress_reporter(runs),
            )
            out.log()
            runs = result.runs
            timed_out = result.timed_out
            if timed_out:
                out.warning(TIMEOUT_WARNING)
            out.log()
            if not runs:
                return self._no_runs(commit, timed_out)
            render_summary(runs, out)
            out.log()

        failed_runs = [run for run in runs if is_failed(run)]
        reports = self.aggregator.aggregate(repo, failed_runs)

        if failed_runs:
            out.error(format_outcome(len(failed_runs), len(runs)))
            exit_code = EXIT_RUNS_FAILED
        else:
            if all(classify_run(run) == DisplayState.SUCCESS for run in runs):
                out.success(f"All {len(runs)} workflow run(s) succeeded.")
            else:
                out.success("No failed workflow runs.")
            exit_code = EXIT_SUCCESS

        logger.info("Watch of %s@%s finished: %d/%d failed", repo, commit, len(failed_runs), len(runs))
        return WatchOutcome(
            exit_code=exit_code,
            runs=runs,
            failed_runs=failed_runs,
            reports=reports,
            timed_out=timed_out,
        )

    def _no_runs(self, commit: str, timed_out: bool = False) -> WatchOutcome:
        self.console.success(f"No workflow runs found for commit {commit}.")
        return WatchOutcome(exit_code=EXIT_SUCCESS, timed_out=timed_out)

    def _progress_reporter(self, runs: List[WorkflowRun]) -> Callable[[int, List[WorkflowRun]], None]:
        """
        Tick callback: a dot per poll, or the full summary when a snapshot
        that still has active runs shows different states than the last one
        printed. The settled snapshot is rendered by run() itself.
        """
        out = self.console
        shown = [_display_states(runs)]

        def on_tick(iteration: int, snapshot: List[WorkflowRun]) -> None:
            states = _display_states(snapshot)
            if active_runs(snapshot) and states != shown[-1]:
                out.log()
                render_summary(snapshot, out)
                shown.append(states)
            else:
                out.progress()

        return on_tick


def _display_states(runs: List[WorkflowRun]) -> List[Tuple[int, str]]:
    return [(run.id, classify_run(run)) for run in runs]
