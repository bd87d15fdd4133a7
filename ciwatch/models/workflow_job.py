"""
Workflow Job Model
Pydantic model for a job inside a workflow run. Only fetched for failed runs.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError

from ciwatch.core.errors import FormatError


class WorkflowJob(BaseModel):
    id: int
    name: str
    conclusion: Optional[str] = None
    html_url: str = ""

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "WorkflowJob":
        if not isinstance(payload, dict):
            raise FormatError(f"Expected a job object, got {type(payload).__name__}")
        try:
            return cls(
                id=payload["id"],
                name=payload.get("name") or "",
                conclusion=payload.get("conclusion"),
                html_url=payload.get("html_url") or "",
            )
        except (KeyError, ValidationError) as e:
            raise FormatError(f"Malformed job payload: {e}") from e
