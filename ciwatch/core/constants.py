"""
Constants
Centralised storage for run statuses, conclusions and process exit codes.
"""
# GitHub Actions run/job status values
STATUS_QUEUED = "queued"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"

ACTIVE_STATUSES = frozenset({STATUS_QUEUED, STATUS_IN_PROGRESS})

# Conclusion values this tool distinguishes
CONCLUSION_SUCCESS = "success"
CONCLUSION_FAILURE = "failure"
CONCLUSION_CANCELLED = "cancelled"
CONCLUSION_SKIPPED = "skipped"

# Process exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_RUNS_FAILED = 64

DURATION_NOT_AVAILABLE = "N/A"
LOG_FENCE = "`````"
SHORT_SHA_LENGTH = 7
FULL_SHA_LENGTH = 40

# GitHub caps per_page at 100
MAX_RUN_LIMIT = 100
