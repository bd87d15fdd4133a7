"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    GITHUB_TOKEN                 — Token used for the GitHub Actions API (falls back to GH_TOKEN)
    GITHUB_API_URL               — API base URL (default: https://api.github.com)
    GITHUB_REPOSITORY            — owner/name, set by GitHub Actions; used for repo auto-detection
    CIWATCH_RUN_LIMIT            — Max runs fetched per query (default: 20)
    CIWATCH_POLL_TIMEOUT         — Seconds to wait for active runs before giving up (default: 1200)
    CIWATCH_POLL_INTERVAL        — Seconds between poll ticks (default: 10)
    CIWATCH_NO_RUNS_RETRY_DELAY  — Seconds before the single retry when no runs exist yet (default: 10)
    CIWATCH_REQUEST_TIMEOUT      — Per-request HTTP timeout in seconds (default: 20)
    CIWATCH_DEBUG                — Trace every API request to stdout (default: false)
    CIWATCH_LOG_DIR              — Also write logs to a dated file in this directory (default: unset)

Polling Philosophy:
    Interval and timeout are fixed. There is no backoff: a watch over a
    20 minute CI pipeline costs at most TIMEOUT / INTERVAL queries, and the
    elapsed counter advances by whole intervals so the loop bound does not
    depend on wall-clock jitter.
"""
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from ciwatch.core.constants import MAX_RUN_LIMIT

load_dotenv()

GITHUB_TOKEN = os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN")
GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")

RUN_LIMIT = int(os.getenv("CIWATCH_RUN_LIMIT", 20))
POLL_TIMEOUT = int(os.getenv("CIWATCH_POLL_TIMEOUT", 1200))   # 20 minutes
POLL_INTERVAL = int(os.getenv("CIWATCH_POLL_INTERVAL", 10))
NO_RUNS_RETRY_DELAY = int(os.getenv("CIWATCH_NO_RUNS_RETRY_DELAY", 10))
REQUEST_TIMEOUT = float(os.getenv("CIWATCH_REQUEST_TIMEOUT", 20.0))

DEBUG = os.getenv("CIWATCH_DEBUG", "false").lower() in ("1", "true", "yes")
LOG_DIR = os.getenv("CIWATCH_LOG_DIR") or None


class WatchConfig(BaseModel):
    """Tunables handed to the query client, run monitor and orchestrator."""
    api_url: str = GITHUB_API_URL
    token: Optional[str] = GITHUB_TOKEN
    run_limit: int = Field(default=RUN_LIMIT, ge=1, le=MAX_RUN_LIMIT)
    poll_timeout: int = Field(default=POLL_TIMEOUT, ge=0)
    poll_interval: int = Field(default=POLL_INTERVAL, ge=1)
    no_runs_retry_delay: int = Field(default=NO_RUNS_RETRY_DELAY, ge=0)
    request_timeout: float = Field(default=REQUEST_TIMEOUT, gt=0)
