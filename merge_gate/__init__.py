"""merge-gate: two-team approval policy and /merge command for pull requests."""

from .dispatcher import Dispatcher, DispatchResult
from .errors import (
    ConfigError,
    GitHubAPIError,
    MergeFailureReason,
    MergeGateError,
    MergeRejectedError,
    PayloadError,
)
from .policy import ApprovalVerdict, Roster, compute_verdict, format_status

__version__ = "0.1.0"

__all__ = [
    "Dispatcher",
    "DispatchResult",
    "ConfigError",
    "GitHubAPIError",
    "MergeFailureReason",
    "MergeGateError",
    "MergeRejectedError",
    "PayloadError",
    "ApprovalVerdict",
    "Roster",
    "compute_verdict",
    "format_status",
]
