import argparse
import logging
import sys
from typing import List, Optional, Tuple

from pydantic import ValidationError

from ciwatch.agents.orchestrator import Orchestrator
from ciwatch.core import config
from ciwatch.core.config import WatchConfig
from ciwatch.core.console import Console
from ciwatch.core.errors import CIWatchError, DependencyError, UsageError
from ciwatch.services import vcs
from ciwatch.services.ci_query import GitHubActionsClient
from ciwatch.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

PROG = "ciwatch"
EXAMPLE = f"Example: {PROG} owner/repo 1a2b3c4"


class _ArgumentParser(argparse.ArgumentParser):
    """Report bad arguments as UsageError (exit 1) instead of exiting with 2."""

    def error(self, message):
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=PROG,
        description="Show GitHub Actions runs for a commit, wait for them, and print logs of failed jobs.",
        epilog=EXAMPLE,
    )
    parser.add_argument("repo", nargs="?", help="Repository as owner/name (default: current checkout)")
    parser.add_argument("commit", nargs="?", help="Commit SHA, 7-40 hex chars (default: HEAD)")
    parser.add_argument("--workflow", help="Only show runs whose workflow name contains this text")
    parser.add_argument("--limit", type=int, default=config.RUN_LIMIT, help="Max runs to fetch (default: %(default)s)")
    parser.add_argument("--timeout", type=int, default=config.POLL_TIMEOUT, help="Seconds to wait for active runs (default: %(default)s)")
    parser.add_argument("--interval", type=int, default=config.POLL_INTERVAL, help="Seconds between polls (default: %(default)s)")
    parser.add_argument("--debug", action="store_true", default=config.DEBUG, help="Trace API and git commands to stdout")
    return parser


def resolve_target(repo: Optional[str], commit: Optional[str]) -> Tuple[str, str]:
    """
    Validate positional arguments, or derive both from the checkout.

    Supplying a repository without a commit is rejected: HEAD of the local
    checkout says nothing about another repository.
    """
    if repo and not commit:
        raise UsageError("A commit is required when a repository is given.")
    if repo:
        if not vcs.is_valid_repo(repo):
            raise UsageError(f"Invalid repository '{repo}', expected owner/name.")
        if not vcs.is_valid_commit(commit):
            raise UsageError(f"Invalid commit '{commit}', expected 7-40 hexadecimal characters.")
        return repo, commit.lower()

    vcs.ensure_git()
    return vcs.resolve_repository(), vcs.get_head_commit().lower()


def build_config(args: argparse.Namespace) -> WatchConfig:
    try:
        return WatchConfig(
            run_limit=args.limit,
            poll_timeout=args.timeout,
            poll_interval=args.interval,
            token=config.GITHUB_TOKEN,
        )
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors())
        raise UsageError(f"Invalid option value for: {fields}") from e


def run(argv: Optional[List[str]] = None, console: Optional[Console] = None) -> int:
    parser = build_parser()
    console = console or Console()

    try:
        args = parser.parse_args(argv)
        setup_logging(
            level=logging.DEBUG if args.debug else logging.WARNING,
            stream=sys.stdout if args.debug else None,
            log_dir=config.LOG_DIR,
        )

        watch_config = build_config(args)
        repo, commit = resolve_target(args.repo, args.commit)
        if not watch_config.token:
            raise DependencyError("No GitHub token found. Set GITHUB_TOKEN (or GH_TOKEN).")
        logger.debug("Watching %s@%s", repo, commit)

        with GitHubActionsClient(watch_config) as client:
            outcome = Orchestrator(client, watch_config, console).run(repo, commit, args.workflow)
        return outcome.exit_code

    except UsageError as e:
        console.error(str(e))
        console.log(parser.format_usage().rstrip())
        console.log(EXAMPLE)
        return e.exit_code
    except CIWatchError as e:
        console.error(str(e))
        return e.exit_code


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
