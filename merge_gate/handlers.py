"""Workflows run for each webhook delivery.

Every workflow re-fetches what it needs from GitHub; nothing is cached
between deliveries.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from . import messages
from .errors import GitHubAPIError, MergeFailureReason, MergeRejectedError
from .locks import PullRequestLocks
from .payloads import CommentCreated, PullRequestOpened, ReviewSubmitted
from .policy.approval import compute_verdict
from .policy.commands import CommandOutcome, CommandStateMachine
from .policy.models import (
    ApprovalVerdict,
    PullRequest,
    ReviewState,
    ReviewSubmission,
    Roster,
)
from .policy.status import format_status

logger = logging.getLogger(__name__)


class ReviewGateway(Protocol):
    """The GitHub calls the workflows depend on."""

    async def fetch_reviews(self, reviews_url: str) -> list[ReviewSubmission]: ...

    async def fetch_pull_request(self, pr_url: str) -> PullRequest: ...

    async def post_comment(self, comments_url: str, body: str) -> Any: ...

    async def merge_pull_request(self, pr_url: str, title: str, method: str) -> Any: ...


@dataclass
class WorkflowContext:
    """Everything a workflow needs besides the event itself."""

    gateway: ReviewGateway
    team_a: Roster
    team_b: Roster
    merge_method: str = "squash"
    locks: PullRequestLocks = field(default_factory=PullRequestLocks)


@dataclass
class WorkflowResult:
    """What a workflow did, echoed back in the webhook response."""

    workflow: str
    outcome: str
    comments: int = 0
    merged: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "workflow": self.workflow,
            "outcome": self.outcome,
            "comments": self.comments,
            "merged": self.merged,
        }


async def fetch_verdict(
    ctx: WorkflowContext, pr_url: str
) -> tuple[PullRequest, ApprovalVerdict]:
    """Fetch a pull request and compute its current verdict."""
    pull_request = await ctx.gateway.fetch_pull_request(pr_url)
    reviews = await ctx.gateway.fetch_reviews(pull_request.reviews_url)
    logger.info(
        f"PR #{pull_request.number}: {len(reviews)} review(s), requested reviewers: "
        f"{sorted(pull_request.requested_reviewers)}"
    )
    verdict = compute_verdict(
        reviews, pull_request.requested_reviewers, ctx.team_a, ctx.team_b
    )
    return pull_request, verdict


async def handle_pull_request_opened(
    event: PullRequestOpened, ctx: WorkflowContext
) -> WorkflowResult:
    """Post the welcome comment explaining the approval policy."""
    pr = event.pull_request
    logger.info(f"PR #{pr.number} opened by @{pr.author}")
    await ctx.gateway.post_comment(
        pr.comments_url, messages.welcome_message(pr.author, ctx.team_a, ctx.team_b)
    )
    return WorkflowResult(workflow="pull_request_opened", outcome="welcomed", comments=1)


async def handle_review_submitted(
    event: ReviewSubmitted, ctx: WorkflowContext
) -> WorkflowResult:
    """Report the new approval status after a review is submitted."""
    logger.info(f"@{event.reviewer} {event.state.value} on PR #{event.pr_number}")

    if event.state not in (ReviewState.APPROVED, ReviewState.CHANGES_REQUESTED):
        return WorkflowResult(workflow="review_submitted", outcome="no_action")

    async with ctx.locks.guard(event.pr_url):
        pr, verdict = await fetch_verdict(ctx, event.pr_url)
        status = format_status(verdict)

        if event.state is ReviewState.CHANGES_REQUESTED:
            body = messages.changes_requested_message(event.reviewer, status)
            outcome = "blocked"
        elif verdict.ready:
            body = messages.all_approved_message(pr.author, status)
            outcome = "ready"
        else:
            body = messages.approval_thanks_message(event.reviewer, status)
            outcome = "acknowledged"

        await ctx.gateway.post_comment(pr.comments_url, body)

    return WorkflowResult(workflow="review_submitted", outcome=outcome, comments=1)


async def handle_comment_created(
    event: CommentCreated, ctx: WorkflowContext
) -> WorkflowResult:
    """Run a slash command from a PR comment."""
    machine = CommandStateMachine()
    if not machine.receive(event.body):
        return WorkflowResult(
            workflow="comment_created", outcome=CommandOutcome.NOT_A_COMMAND.value
        )

    logger.info(f"{machine.command} by @{event.commenter} on PR #{event.issue_number}")

    async with ctx.locks.guard(event.pr_url):
        pr, verdict = await fetch_verdict(ctx, event.pr_url)
        status = format_status(verdict)

        rejection = machine.validate(event.commenter, pr, verdict)
        if rejection is CommandOutcome.UNKNOWN_COMMAND:
            body = messages.unknown_command_message(
                event.commenter, machine.command or "", status
            )
        elif rejection is CommandOutcome.UNAUTHORIZED:
            body = messages.unauthorized_message(event.commenter, pr.author, status)
        elif rejection is CommandOutcome.NOT_APPROVED:
            body = messages.not_approved_message(pr.author, status)
        else:
            body = await _merge(machine, pr, ctx)

        await ctx.gateway.post_comment(event.comments_url, body)

    assert machine.outcome is not None
    return WorkflowResult(
        workflow="comment_created",
        outcome=machine.outcome.value,
        comments=1,
        merged=machine.outcome is CommandOutcome.MERGED,
    )


async def _merge(
    machine: CommandStateMachine, pr: PullRequest, ctx: WorkflowContext
) -> str:
    """Attempt the merge and return the comment describing the result."""
    logger.info(
        f"Attempting merge of PR #{pr.number} "
        f"(state={pr.mergeable_state}, mergeable={pr.mergeable})"
    )

    if not machine.check_preconditions(pr):
        assert machine.error is not None
        logger.warning(f"Merge of PR #{pr.number} refused: {machine.error}")
        return messages.merge_failure_message(machine.error, pr)

    try:
        await ctx.gateway.merge_pull_request(
            pr.url, pr.merge_commit_title, ctx.merge_method
        )
    except MergeRejectedError as e:
        logger.error(f"Merge of PR #{pr.number} failed ({e.reason.value}): {e}")
        machine.merge_failed(e)
        return messages.merge_failure_message(e, pr)
    except (GitHubAPIError, httpx.HTTPError) as e:
        logger.exception(f"Merge of PR #{pr.number} failed")
        error = MergeRejectedError(MergeFailureReason.UNKNOWN, str(e))
        machine.merge_failed(error)
        return messages.merge_failure_message(error, pr)

    logger.info(f"Merged PR #{pr.number}")
    machine.merged()
    return messages.merge_success_message(pr.author)
