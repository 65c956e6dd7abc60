"""Error types for merge-gate."""

from enum import Enum


class MergeGateError(Exception):
    """Base exception for all merge-gate errors."""


class ConfigError(MergeGateError, ValueError):
    """Raised when the process configuration is missing or invalid."""


class PayloadError(MergeGateError):
    """Raised when a webhook payload lacks a field the workflow needs."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        if field:
            message = f"{message}: {field}"
        super().__init__(message)


class GitHubAPIError(MergeGateError):
    """Raised when the GitHub REST API answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        self.api_message = message
        if status_code is not None:
            message = f"API Error: {status_code} {message}"
        super().__init__(message)


class MergeFailureReason(Enum):
    """Why a merge did not happen."""

    CONFLICTS = "conflicts"
    BLOCKED = "blocked"
    PERMISSION_DENIED = "permission_denied"
    NOT_MERGEABLE = "not_mergeable"
    RULE_BLOCKED = "rule_blocked"
    UNKNOWN = "unknown"


class MergeRejectedError(MergeGateError):
    """Raised when a merge is refused, locally or by GitHub."""

    def __init__(
        self,
        reason: MergeFailureReason,
        message: str,
        status_code: int | None = None,
    ):
        self.reason = reason
        self.status_code = status_code
        super().__init__(message)
