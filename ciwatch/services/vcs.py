"""
VCS Service
===========
Resolves the watch target (repository + commit) from the ambient checkout.

Philosophy:
    - Explicit arguments always win; this module is only the fallback.
    - Repository: GITHUB_REPOSITORY (CI hosting context) first, then the
      origin remote URL.
    - Commit: HEAD of the working tree.
"""
import os
import re
import shutil
import subprocess
import logging
from typing import Optional

from ciwatch.core.errors import DependencyError, QueryError

logger = logging.getLogger(__name__)

_REMOTE_RE = re.compile(r"github\.com[:/](.+?)(?:\.git)?/?$")
REPO_SLUG_RE = re.compile(r"^[\w.\-]+/[\w.\-]+$")
COMMIT_RE = re.compile(r"^[0-9a-fA-F]{7,40}$")


def is_valid_repo(repo: str) -> bool:
    return bool(REPO_SLUG_RE.match(repo or ""))


def is_valid_commit(commit: str) -> bool:
    return bool(COMMIT_RE.match(commit or ""))


def extract_repo_path(remote_url: str) -> str:
    """Extract 'owner/repo' from a GitHub remote URL (https or ssh)."""
    match = _REMOTE_RE.search(remote_url.strip())
    if match:
        return match.group(1).rstrip("/")
    return ""


def ensure_git() -> None:
    if shutil.which("git") is None:
        raise DependencyError("git is not installed or not on PATH.")


def _git(*args: str, cwd: Optional[str] = None) -> str:
    try:
        res = subprocess.run(
            ["git", *args],
            cwd=cwd,
            check=True,
            capture_output=True,
            text=True,
        )
    except (subprocess.CalledProcessError, OSError) as e:
        stderr = getattr(e, "stderr", "") or str(e)
        raise QueryError(f"git {' '.join(args)} failed: {stderr.strip()}") from e
    logger.debug("+ git %s", " ".join(args))
    return res.stdout.strip()


def get_head_commit(cwd: Optional[str] = None) -> str:
    """SHA of HEAD in the working tree."""
    return _git("rev-parse", "HEAD", cwd=cwd)


def get_remote_url(cwd: Optional[str] = None, remote: str = "origin") -> str:
    return _git("remote", "get-url", remote, cwd=cwd)


def resolve_repository(cwd: Optional[str] = None) -> str:
    """
    Determine owner/name for the current checkout.

    Raises QueryError when neither GITHUB_REPOSITORY nor the origin remote
    yields a GitHub repository.
    """
    from_env = os.getenv("GITHUB_REPOSITORY", "")
    if is_valid_repo(from_env):
        return from_env

    try:
        remote_url = get_remote_url(cwd=cwd)
    except QueryError as e:
        logger.warning("Could not read origin remote: %s", e)
        raise QueryError("Could not determine repository. Please provide it as first argument.") from e

    repo = extract_repo_path(remote_url)
    if not is_valid_repo(repo):
        raise QueryError(f"Origin remote is not a GitHub repository: {remote_url}")
    return repo
