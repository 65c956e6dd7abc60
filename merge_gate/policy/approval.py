"""Approval engine: replays review history into a two-team verdict."""

import logging
from collections.abc import Collection, Iterable

from .models import (
    ApprovalVerdict,
    ReviewerState,
    ReviewState,
    ReviewSubmission,
    Roster,
    TeamVerdict,
)

logger = logging.getLogger(__name__)

# (approved, blocked) after each state; None leaves the reviewer untouched.
TRANSITIONS: dict[ReviewState, tuple[bool, bool] | None] = {
    ReviewState.APPROVED: (True, False),
    ReviewState.CHANGES_REQUESTED: (False, True),
    ReviewState.DISMISSED: (False, False),
    ReviewState.PENDING: (False, False),
    ReviewState.COMMENTED: None,
    ReviewState.UNKNOWN: None,
}


def replay_reviews(
    reviews: Iterable[ReviewSubmission],
    requested_reviewers: Collection[str],
) -> dict[str, ReviewerState]:
    """
    Fold an ordered review history into the net state of each reviewer.

    Reviews are applied in the order given. A reviewer whose re-review is
    currently requested is reset to neutral on every one of their events, so
    none of their earlier reviews count for this cycle.

    Args:
        reviews: Review submissions, oldest first.
        requested_reviewers: Logins with a pending re-review request.

    Returns:
        Mapping from login to its final state. Users without reviews are absent.
    """
    states: dict[str, ReviewerState] = {}

    for review in reviews:
        user = review.reviewer
        state = states.setdefault(user, ReviewerState())

        logger.debug(
            f"@{user}: {review.state.value} "
            f"(id: {review.review_id}, submitted: {review.submitted_at})"
        )

        if user in requested_reviewers:
            logger.debug(f"@{user} is in requested_reviewers, skipping old review")
            state.approved = False
            state.blocked = False
            continue

        if review.state is ReviewState.UNKNOWN:
            logger.warning(f"Unknown review state from @{user}: {review.raw_state!r}")

        transition = TRANSITIONS[review.state]
        if transition is not None:
            state.approved, state.blocked = transition

    return states


def _team_verdict(roster: Roster, states: dict[str, ReviewerState]) -> TeamVerdict:
    blocked_by = tuple(
        u for u in roster.members if u in states and states[u].blocked
    )
    approved_by = tuple(
        u
        for u in roster.members
        if u in states and states[u].approved and not states[u].blocked
    )
    return TeamVerdict(
        roster=roster,
        ok=bool(approved_by) and not blocked_by,
        approved_by=approved_by,
        blocked_by=blocked_by,
    )


def compute_verdict(
    reviews: Iterable[ReviewSubmission],
    requested_reviewers: Collection[str],
    team_a: Roster,
    team_b: Roster,
) -> ApprovalVerdict:
    """
    Compute the approval verdict for both rosters.

    A team passes when at least one of its members has a standing approval
    and none of its members has standing requested changes. Blockers are
    reported in roster order.
    """
    states = replay_reviews(reviews, requested_reviewers)
    verdict = ApprovalVerdict(
        team_a=_team_verdict(team_a, states),
        team_b=_team_verdict(team_b, states),
    )

    for team in verdict.teams:
        summary = f"{team.roster.name}: {'ok' if team.ok else 'missing'} "
        summary += ", ".join(team.approved_by) or "none"
        if team.blocked_by:
            summary += f" (blocked by: {', '.join(team.blocked_by)})"
        logger.info(summary)

    return verdict
