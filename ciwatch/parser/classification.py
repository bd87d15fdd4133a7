"""
Classification
==============
Maps a run's (status, conclusion) pair to one of seven display states and
renders elapsed durations.

Display States:
    QUEUED, RUNNING, SUCCESS, FAILURE, CANCELLED, SKIPPED, UNKNOWN

Classification Strategy:
    1. STATUS FIRST — queued / in_progress win regardless of conclusion
    2. CONCLUSION TABLE SECOND — consulted only once status == completed
    3. ANYTHING ELSE → UNKNOWN (display fallback, never an error)

Everything here is pure: no I/O, no clock reads.
"""
from datetime import datetime
from typing import Optional

from ciwatch.core.constants import (
    ACTIVE_STATUSES,
    CONCLUSION_CANCELLED,
    CONCLUSION_FAILURE,
    CONCLUSION_SKIPPED,
    CONCLUSION_SUCCESS,
    DURATION_NOT_AVAILABLE,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_QUEUED,
)
from ciwatch.models.workflow_run import WorkflowRun


# ---------------------------------------------------------------------------
# Display State Constants
# ---------------------------------------------------------------------------
class DisplayState:
    """Closed set of display states.  Values must remain UPPERCASE strings."""
    QUEUED    = "QUEUED"
    RUNNING   = "RUNNING"
    SUCCESS   = "SUCCESS"
    FAILURE   = "FAILURE"
    CANCELLED = "CANCELLED"
    SKIPPED   = "SKIPPED"
    UNKNOWN   = "UNKNOWN"


DISPLAY_STATES: frozenset[str] = frozenset({
    DisplayState.QUEUED,
    DisplayState.RUNNING,
    DisplayState.SUCCESS,
    DisplayState.FAILURE,
    DisplayState.CANCELLED,
    DisplayState.SKIPPED,
    DisplayState.UNKNOWN,
})


# ---------------------------------------------------------------------------
# Lookup Tables
# ---------------------------------------------------------------------------
_STATUS_MAP: dict[str, str] = {
    STATUS_QUEUED:      DisplayState.QUEUED,
    STATUS_IN_PROGRESS: DisplayState.RUNNING,
}

_CONCLUSION_MAP: dict[str, str] = {
    CONCLUSION_SUCCESS:   DisplayState.SUCCESS,
    CONCLUSION_FAILURE:   DisplayState.FAILURE,
    CONCLUSION_CANCELLED: DisplayState.CANCELLED,
    CONCLUSION_SKIPPED:   DisplayState.SKIPPED,
}


def classify(status: Optional[str], conclusion: Optional[str]) -> str:
    """
    Map a (status, conclusion) pair to a DisplayState value.

    Status takes precedence: a queued or running run is shown as such even if
    the API already reports a conclusion. Conclusion is consulted only for
    completed runs. Never raises.
    """
    state = _STATUS_MAP.get(status)
    if state is not None:
        return state
    if status == STATUS_COMPLETED:
        return _CONCLUSION_MAP.get(conclusion, DisplayState.UNKNOWN)
    return DisplayState.UNKNOWN


def classify_run(run: WorkflowRun) -> str:
    return classify(run.status, run.conclusion)


def is_active(status: Optional[str]) -> bool:
    """True exactly for queued and in_progress. Drives the poll loop exit."""
    return status in ACTIVE_STATUSES


def is_failed(run: WorkflowRun) -> bool:
    """A run belongs to the failed set only when it concluded with failure."""
    return run.conclusion == CONCLUSION_FAILURE


def format_duration(started_at: Optional[datetime], updated_at: Optional[datetime]) -> str:
    """
    Whole seconds between two timestamps, e.g. "42s".

    Returns "N/A" when either timestamp is missing. Out-of-order timestamps
    (updated before started) clamp to "0s".
    """
    if started_at is None or updated_at is None:
        return DURATION_NOT_AVAILABLE
    seconds = int((updated_at - started_at).total_seconds())
    return f"{max(seconds, 0)}s"
