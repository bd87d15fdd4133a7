"""
Errors
======
Exception taxonomy for the watch pipeline.

    UsageError       — bad or missing arguments; fatal, usage is printed
    DependencyError  — git missing or no API token; fatal before any query
    QueryError       — one CI / git round-trip failed
    FormatError      — a response payload did not have the expected shape

Only UsageError and DependencyError are always fatal. QueryError and
FormatError are recovered wherever the call site can live without the data
(per-job logs, per-run job lists, repository auto-detection).
"""
from ciwatch.core.constants import EXIT_ERROR


class CIWatchError(Exception):
    """Base class; carries the process exit code for the CLI."""
    exit_code = EXIT_ERROR


class UsageError(CIWatchError):
    pass


class DependencyError(CIWatchError):
    pass


class QueryError(CIWatchError):
    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


class FormatError(CIWatchError):
    pass
