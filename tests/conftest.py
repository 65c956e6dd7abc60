"""Shared fixtures for merge-gate tests."""

from collections.abc import Callable
from typing import Any

import pytest

from merge_gate.policy.models import (
    PullRequest,
    ReviewState,
    ReviewSubmission,
    Roster,
)

PR_URL = "https://api.github.com/repos/acme/widgets/pulls/7"
COMMENTS_URL = "https://api.github.com/repos/acme/widgets/issues/7/comments"


def review(user: str, state: str, review_id: int | None = None) -> ReviewSubmission:
    return ReviewSubmission(
        reviewer=user, state=ReviewState[state], review_id=review_id, raw_state=state
    )


class FakeGateway:
    """Records every GitHub call a workflow makes."""

    def __init__(
        self,
        pull_request: PullRequest,
        reviews: list[ReviewSubmission] | None = None,
        merge_error: Exception | None = None,
    ) -> None:
        self.pull_request = pull_request
        self.reviews = reviews or []
        self.merge_error = merge_error
        self.fetched_prs: list[str] = []
        self.fetched_reviews: list[str] = []
        self.comments: list[tuple[str, str]] = []
        self.merges: list[tuple[str, str, str]] = []

    async def fetch_pull_request(self, pr_url: str) -> PullRequest:
        self.fetched_prs.append(pr_url)
        return self.pull_request

    async def fetch_reviews(self, reviews_url: str) -> list[ReviewSubmission]:
        self.fetched_reviews.append(reviews_url)
        return list(self.reviews)

    async def post_comment(self, comments_url: str, body: str) -> dict[str, Any]:
        self.comments.append((comments_url, body))
        return {"id": len(self.comments)}

    async def merge_pull_request(self, pr_url: str, title: str, method: str) -> dict[str, Any]:
        self.merges.append((pr_url, title, method))
        if self.merge_error is not None:
            raise self.merge_error
        return {"merged": True}


@pytest.fixture
def team_a() -> Roster:
    return Roster(name="Team A", members=("alice", "bob"))


@pytest.fixture
def team_b() -> Roster:
    return Roster(name="Team B", members=("carol",))


@pytest.fixture
def make_pr() -> Callable[..., PullRequest]:
    def _make(**overrides: Any) -> PullRequest:
        fields: dict[str, Any] = {
            "number": 7,
            "title": "Add widget",
            "author": "dave",
            "url": PR_URL,
            "comments_url": COMMENTS_URL,
            "reviews_url": f"{PR_URL}/reviews",
            "mergeable": True,
            "mergeable_state": "clean",
        }
        fields.update(overrides)
        return PullRequest(**fields)

    return _make


@pytest.fixture
def make_gateway(make_pr: Callable[..., PullRequest]) -> Callable[..., FakeGateway]:
    def _make(
        reviews: list[ReviewSubmission] | None = None,
        merge_error: Exception | None = None,
        **pr_overrides: Any,
    ) -> FakeGateway:
        return FakeGateway(make_pr(**pr_overrides), reviews, merge_error)

    return _make
