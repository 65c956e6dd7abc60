"""Tests for command parsing and the merge state machine."""

import pytest
from conftest import review

from merge_gate.errors import MergeFailureReason, MergeRejectedError
from merge_gate.policy.approval import compute_verdict
from merge_gate.policy.commands import (
    CommandOutcome,
    CommandState,
    CommandStateMachine,
    merge_precondition_failure,
    parse_command,
)


@pytest.fixture
def ready_verdict(team_a, team_b):
    return compute_verdict(
        [review("alice", "APPROVED"), review("carol", "APPROVED")], set(), team_a, team_b
    )


@pytest.fixture
def pending_verdict(team_a, team_b):
    return compute_verdict([review("alice", "APPROVED")], set(), team_a, team_b)


class TestParseCommand:
    @pytest.mark.parametrize(
        "body,expected",
        [
            ("/merge", "/merge"),
            ("  /merge please  ", "/merge"),
            ("/merge\nnow", "/merge"),
            ("/deploy prod", "/deploy"),
            ("hello", None),
            ("please /merge", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse(self, body, expected) -> None:
        assert parse_command(body) == expected


class TestPreconditions:
    def test_conflicts(self, make_pr) -> None:
        error = merge_precondition_failure(make_pr(mergeable=False))
        assert error is not None
        assert error.reason is MergeFailureReason.CONFLICTS
        assert "conflicts" in str(error)

    def test_blocked_state(self, make_pr) -> None:
        error = merge_precondition_failure(make_pr(mergeable_state="blocked"))
        assert error is not None
        assert error.reason is MergeFailureReason.BLOCKED

    @pytest.mark.parametrize("mergeable", [True, None])
    def test_unknown_or_true_mergeable_passes(self, make_pr, mergeable) -> None:
        assert merge_precondition_failure(make_pr(mergeable=mergeable)) is None


class TestCommandStateMachine:
    def test_plain_comment_stays_idle(self) -> None:
        machine = CommandStateMachine()
        assert machine.receive("looks good to me") is False
        assert machine.state is CommandState.IDLE
        assert machine.outcome is CommandOutcome.NOT_A_COMMAND

    def test_unknown_command_rejected(self, make_pr, ready_verdict) -> None:
        machine = CommandStateMachine()
        assert machine.receive("/deploy") is True
        assert machine.state is CommandState.VALIDATING
        outcome = machine.validate("dave", make_pr(), ready_verdict)
        assert outcome is CommandOutcome.UNKNOWN_COMMAND
        assert machine.state is CommandState.REJECTED

    def test_non_author_rejected(self, make_pr, ready_verdict) -> None:
        machine = CommandStateMachine()
        machine.receive("/merge")
        assert machine.validate("mallory", make_pr(), ready_verdict) is CommandOutcome.UNAUTHORIZED

    def test_unknown_command_checked_before_author(self, make_pr, ready_verdict) -> None:
        machine = CommandStateMachine()
        machine.receive("/deploy")
        assert machine.validate("mallory", make_pr(), ready_verdict) is (
            CommandOutcome.UNKNOWN_COMMAND
        )

    def test_missing_approvals_rejected(self, make_pr, pending_verdict) -> None:
        machine = CommandStateMachine()
        machine.receive("/merge")
        assert machine.validate("dave", make_pr(), pending_verdict) is CommandOutcome.NOT_APPROVED

    def test_happy_path(self, make_pr, ready_verdict) -> None:
        machine = CommandStateMachine()
        machine.receive("/merge")
        assert machine.validate("dave", make_pr(), ready_verdict) is None
        assert machine.state is CommandState.MERGING
        assert machine.check_preconditions(make_pr()) is True
        machine.merged()
        assert machine.state is CommandState.DONE
        assert machine.outcome is CommandOutcome.MERGED

    def test_precondition_failure_rejects(self, make_pr, ready_verdict) -> None:
        machine = CommandStateMachine()
        machine.receive("/merge")
        machine.validate("dave", make_pr(), ready_verdict)
        assert machine.check_preconditions(make_pr(mergeable=False)) is False
        assert machine.state is CommandState.REJECTED
        assert machine.outcome is CommandOutcome.PRECONDITION_FAILED
        assert machine.error is not None

    def test_remote_failure_rejects(self, make_pr, ready_verdict) -> None:
        machine = CommandStateMachine()
        machine.receive("/merge")
        machine.validate("dave", make_pr(), ready_verdict)
        error = MergeRejectedError(MergeFailureReason.NOT_MERGEABLE, "nope", 405)
        machine.merge_failed(error)
        assert machine.state is CommandState.REJECTED
        assert machine.outcome is CommandOutcome.MERGE_FAILED
        assert machine.error is error

    def test_cannot_merge_without_validation(self) -> None:
        machine = CommandStateMachine()
        machine.receive("/merge")
        with pytest.raises(RuntimeError, match="Illegal command transition"):
            machine.merged()

    def test_terminal_states_are_final(self, make_pr, pending_verdict) -> None:
        machine = CommandStateMachine()
        machine.receive("/merge")
        machine.validate("dave", make_pr(), pending_verdict)
        with pytest.raises(RuntimeError):
            machine.merged()
