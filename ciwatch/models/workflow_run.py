"""
Workflow Run Model
==================
Pydantic model for one GitHub Actions workflow run, as observed in a snapshot.

Fields:
    id              — run identifier (databaseId), stable for the run's lifetime
    workflow_name   — display name of the workflow definition
    event           — trigger category (push, pull_request, schedule, ...)
    status          — queued / in_progress / completed (other API values pass through)
    conclusion      — success / failure / cancelled / skipped / ...; None until completed
    started_at      — run_started_at, None until the run begins
    updated_at      — last update timestamp
    head_sha        — commit the run was triggered for
    head_branch     — branch name, when the event has one
    html_url        — link to the run page

This tool never creates or mutates runs. Each poll builds fresh instances.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError

from ciwatch.core.errors import FormatError


class WorkflowRun(BaseModel):
    id: int
    workflow_name: str
    event: str = ""
    status: str
    conclusion: Optional[str] = None
    started_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    head_sha: str = ""
    head_branch: Optional[str] = None
    html_url: str = ""

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "WorkflowRun":
        """Build from a /actions/runs item. Raises FormatError on malformed payloads."""
        if not isinstance(payload, dict):
            raise FormatError(f"Expected a run object, got {type(payload).__name__}")
        try:
            return cls(
                id=payload["id"],
                workflow_name=payload.get("name") or "",
                event=payload.get("event") or "",
                status=payload["status"],
                conclusion=payload.get("conclusion"),
                started_at=payload.get("run_started_at"),
                updated_at=payload.get("updated_at"),
                head_sha=payload.get("head_sha") or "",
                head_branch=payload.get("head_branch"),
                html_url=payload.get("html_url") or "",
            )
        except (KeyError, ValidationError) as e:
            raise FormatError(f"Malformed workflow run payload: {e}") from e
