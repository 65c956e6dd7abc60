"""Review policy: approval replay, status rendering and commands."""

from .approval import compute_verdict, replay_reviews
from .commands import (
    MERGE_COMMAND,
    CommandOutcome,
    CommandState,
    CommandStateMachine,
    merge_precondition_failure,
    parse_command,
)
from .models import (
    ApprovalVerdict,
    PullRequest,
    ReviewerState,
    ReviewState,
    ReviewSubmission,
    Roster,
    TeamVerdict,
)
from .status import format_status

__all__ = [
    "compute_verdict",
    "replay_reviews",
    "format_status",
    "MERGE_COMMAND",
    "CommandOutcome",
    "CommandState",
    "CommandStateMachine",
    "merge_precondition_failure",
    "parse_command",
    "ApprovalVerdict",
    "PullRequest",
    "ReviewerState",
    "ReviewState",
    "ReviewSubmission",
    "Roster",
    "TeamVerdict",
]
