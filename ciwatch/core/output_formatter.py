"""
Output Formatter
================
Single source of truth for every report string the watcher prints.

DETERMINISM CONTRACT:
  - This module NEVER performs I/O and NEVER reads the clock.
  - Given the same inputs, it ALWAYS returns the exact same string.
  - Colour is not applied here; the Console sink decides that.

Summary line format (one per run, input order preserved):
    {STATE:<9} {workflow_name} ({event}) {duration}
"""
from typing import List, Sequence

from ciwatch.core.constants import SHORT_SHA_LENGTH
from ciwatch.models.workflow_job import WorkflowJob
from ciwatch.models.workflow_run import WorkflowRun
from ciwatch.parser.classification import classify_run, format_duration

# Width of the widest DisplayState ("CANCELLED")
_STATE_WIDTH = 9


def short_sha(commit: str) -> str:
    return commit[:SHORT_SHA_LENGTH]


def format_run_line(run: WorkflowRun) -> str:
    """
    Render one summary line for a run.

    Example:
        FAILURE   CI (push) 42s
    """
    state = classify_run(run)
    duration = format_duration(run.started_at, run.updated_at)
    event = run.event or "unknown event"
    return f"{state:<{_STATE_WIDTH}} {run.workflow_name} ({event}) {duration}"


def format_summary(runs: Sequence[WorkflowRun]) -> List[str]:
    """One line per run, same order. Empty input gives an empty list."""
    return [format_run_line(run) for run in runs]


# ---------------------------------------------------------------------------
# Headers and banners
# ---------------------------------------------------------------------------
def format_title(repo: str, commit: str) -> str:
    return f"Workflow runs for {repo} @ {short_sha(commit)}"


def format_failed_run_header(run: WorkflowRun) -> str:
    return f"Failed run for workflow '{run.workflow_name}' on {run.event or 'unknown event'} (run ID: {run.id})"


def format_failed_job_header(job: WorkflowJob) -> str:
    return f"Failed Job: {job.name} (id: {job.id})"


def format_outcome(failed: int, total: int) -> str:
    return f"{failed} of {total} workflow run(s) failed."
