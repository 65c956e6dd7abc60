"""Comment commands and the state machine behind `/merge`.

A comment is resolved within a single delivery:

    IDLE -> VALIDATING -> MERGING -> DONE
                 |           |
                 +-> REJECTED <-+

Comments that are not commands never leave IDLE.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from ..errors import MergeFailureReason, MergeRejectedError
from .models import ApprovalVerdict, PullRequest

logger = logging.getLogger(__name__)

MERGE_COMMAND = "/merge"
AVAILABLE_COMMANDS: tuple[str, ...] = (MERGE_COMMAND,)

# mergeable_state values that mean GitHub itself will refuse the merge
STRUCTURAL_BLOCK_STATES = frozenset({"blocked"})


class CommandState(Enum):
    """Where a command is in its lifecycle."""

    IDLE = "idle"
    VALIDATING = "validating"
    MERGING = "merging"
    DONE = "done"
    REJECTED = "rejected"


class CommandOutcome(Enum):
    """Terminal outcome of a comment."""

    NOT_A_COMMAND = "not_a_command"
    UNKNOWN_COMMAND = "unknown_command"
    UNAUTHORIZED = "unauthorized"
    NOT_APPROVED = "not_approved"
    PRECONDITION_FAILED = "precondition_failed"
    MERGED = "merged"
    MERGE_FAILED = "merge_failed"


_ALLOWED: dict[CommandState, frozenset[CommandState]] = {
    CommandState.IDLE: frozenset({CommandState.VALIDATING}),
    CommandState.VALIDATING: frozenset({CommandState.MERGING, CommandState.REJECTED}),
    CommandState.MERGING: frozenset({CommandState.DONE, CommandState.REJECTED}),
    CommandState.DONE: frozenset(),
    CommandState.REJECTED: frozenset(),
}


def parse_command(body: str | None) -> str | None:
    """Return the leading `/command` token of a comment, or None."""
    trimmed = (body or "").strip()
    if not trimmed.startswith("/"):
        return None
    return trimmed.split()[0]


def merge_precondition_failure(pull_request: PullRequest) -> MergeRejectedError | None:
    """Return why GitHub would refuse this merge, if that is already known."""
    if pull_request.mergeable is False:
        return MergeRejectedError(
            MergeFailureReason.CONFLICTS,
            "PR has merge conflicts that must be resolved first",
        )
    if pull_request.mergeable_state in STRUCTURAL_BLOCK_STATES:
        return MergeRejectedError(
            MergeFailureReason.BLOCKED,
            f"PR is blocked (state: {pull_request.mergeable_state})",
        )
    return None


@dataclass
class CommandStateMachine:
    """Tracks one comment from receipt to its terminal outcome."""

    state: CommandState = CommandState.IDLE
    command: str | None = None
    outcome: CommandOutcome | None = None
    error: MergeRejectedError | None = None

    @property
    def finished(self) -> bool:
        return self.outcome is not None

    def _move(self, target: CommandState) -> None:
        if target not in _ALLOWED[self.state]:
            raise RuntimeError(
                f"Illegal command transition {self.state.value} -> {target.value}"
            )
        logger.debug(f"{self.command}: {self.state.value} -> {target.value}")
        self.state = target

    def _reject(self, outcome: CommandOutcome) -> CommandOutcome:
        self._move(CommandState.REJECTED)
        self.outcome = outcome
        return outcome

    def receive(self, body: str | None) -> bool:
        """Start on a comment body. Returns False if it is not a command."""
        command = parse_command(body)
        if command is None:
            self.outcome = CommandOutcome.NOT_A_COMMAND
            return False
        self.command = command
        self._move(CommandState.VALIDATING)
        return True

    def validate(
        self,
        commenter: str,
        pull_request: PullRequest,
        verdict: ApprovalVerdict,
    ) -> CommandOutcome | None:
        """
        Run the command checks in order.

        Returns the rejection outcome, or None when the merge may proceed
        (the machine is then in MERGING).
        """
        if self.command not in AVAILABLE_COMMANDS:
            return self._reject(CommandOutcome.UNKNOWN_COMMAND)
        if commenter != pull_request.author:
            return self._reject(CommandOutcome.UNAUTHORIZED)
        if not verdict.ready:
            return self._reject(CommandOutcome.NOT_APPROVED)
        self._move(CommandState.MERGING)
        return None

    def check_preconditions(self, pull_request: PullRequest) -> bool:
        """Fail fast on a PR that cannot merge. Returns True if it may."""
        error = merge_precondition_failure(pull_request)
        if error is None:
            return True
        self.error = error
        self._reject(CommandOutcome.PRECONDITION_FAILED)
        return False

    def merged(self) -> None:
        self._move(CommandState.DONE)
        self.outcome = CommandOutcome.MERGED

    def merge_failed(self, error: MergeRejectedError) -> None:
        self.error = error
        self._reject(CommandOutcome.MERGE_FAILED)
