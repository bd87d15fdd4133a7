"""
Failure Log Aggregator
======================
Collects and prints the logs of failed jobs for every failed run.

Walk order is strict: runs in the order supplied, jobs in the order the API
returns them, one request at a time. A missing job list or a missing log is
a warning for that item only; processing always moves on to the next job
and the next run.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ciwatch.core.console import Console
from ciwatch.core.constants import LOG_FENCE
from ciwatch.core.errors import FormatError, QueryError
from ciwatch.core.output_formatter import format_failed_job_header, format_failed_run_header
from ciwatch.models.workflow_job import WorkflowJob
from ciwatch.models.workflow_run import WorkflowRun
from ciwatch.parser.classification import is_failed
from ciwatch.services.ci_query import CIQueryClient

logger = logging.getLogger(__name__)

NO_FAILED_JOBS = "No failed jobs found for this run."
RUN_FAILED_FOOTER = "Workflow run failed, see logs above for details."


@dataclass
class FailedJobLog:
    job: WorkflowJob
    log: Optional[str] = None   # None = could not be fetched

    @property
    def warning(self) -> str:
        return "" if self.log is not None else f"Could not fetch logs for job {self.job.id}"


@dataclass
class FailedRunReport:
    run: WorkflowRun
    jobs: List[FailedJobLog] = field(default_factory=list)
    warning: str = ""


class FailureLogAggregator:
    """
    Fetches failed jobs and their logs. When a console is given, each block is
    printed as soon as it is fetched.
    """

    def __init__(self, client: CIQueryClient, console: Optional[Console] = None) -> None:
        self.client = client
        self.console = console

    def aggregate(self, repo: str, runs: Sequence[WorkflowRun]) -> List[FailedRunReport]:
        """Process every run with conclusion == failure; others are ignored."""
        reports: List[FailedRunReport] = []
        for run in runs:
            if not is_failed(run):
                continue
            reports.append(self._process_run(repo, run))
        return reports

    def _process_run(self, repo: str, run: WorkflowRun) -> FailedRunReport:
        report = FailedRunReport(run=run)
        if self.console:
            self.console.h2(format_failed_run_header(run))

        try:
            jobs = self.client.query_failed_jobs(repo, run.id)
        except (QueryError, FormatError) as e:
            logger.warning("Could not list jobs for run %s: %s", run.id, e)
            jobs = []

        if not jobs:
            report.warning = NO_FAILED_JOBS
            if self.console:
                self.console.warning(NO_FAILED_JOBS)
                self.console.log()
            return report

        for job in jobs:
            entry = FailedJobLog(job=job, log=self.client.query_job_log(repo, job.id))
            report.jobs.append(entry)
            if self.console:
                self._render_job(entry)

        if self.console:
            self.console.warning(RUN_FAILED_FOOTER)
            self.console.log()
        return report

    def _render_job(self, entry: FailedJobLog) -> None:
        self.console.h3(format_failed_job_header(entry.job))
        self.console.log(LOG_FENCE)
        if entry.log is not None:
            self.console.log(entry.log)
            self.console.log()
        else:
            self.console.warning(entry.warning)
        self.console.log(LOG_FENCE)
        self.console.log()
