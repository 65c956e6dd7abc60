"""Typed records for the webhook payloads merge-gate reacts to.

Each record is parsed at the boundary; a missing field raises PayloadError
before any workflow runs.
"""

from dataclasses import dataclass
from typing import Any

from .errors import PayloadError
from .policy.models import PullRequest, ReviewState


def _require(payload: dict[str, Any], *path: str) -> Any:
    """Walk a nested payload, raising PayloadError if any key is missing."""
    value: Any = payload
    for key in path:
        if not isinstance(value, dict) or value.get(key) in (None, ""):
            raise PayloadError("Missing required payload field", field=".".join(path))
        value = value[key]
    return value


def parse_installation_id(payload: dict[str, Any]) -> int:
    """Return the app installation the delivery belongs to."""
    installation_id = _require(payload, "installation", "id")
    if not isinstance(installation_id, int):
        raise PayloadError("Installation id must be an integer", field="installation.id")
    return installation_id


@dataclass(frozen=True)
class PullRequestOpened:
    """pull_request webhook, action=opened."""

    installation_id: int
    pull_request: PullRequest

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "PullRequestOpened":
        _require(payload, "pull_request", "comments_url")
        _require(payload, "pull_request", "user", "login")
        return cls(
            installation_id=parse_installation_id(payload),
            pull_request=PullRequest.from_api(payload["pull_request"]),
        )


@dataclass(frozen=True)
class ReviewSubmitted:
    """pull_request_review webhook, action=submitted."""

    installation_id: int
    pr_number: int
    pr_url: str
    reviewer: str
    state: ReviewState

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ReviewSubmitted":
        return cls(
            installation_id=parse_installation_id(payload),
            pr_number=(payload.get("pull_request") or {}).get("number", 0),
            pr_url=_require(payload, "pull_request", "url"),
            reviewer=_require(payload, "review", "user", "login"),
            state=ReviewState.parse(payload["review"].get("state")),
        )


@dataclass(frozen=True)
class CommentCreated:
    """issue_comment webhook, action=created."""

    installation_id: int
    issue_number: int
    comments_url: str
    commenter: str
    body: str
    pr_url: str = ""

    @property
    def is_pull_request(self) -> bool:
        return bool(self.pr_url)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "CommentCreated":
        issue = payload.get("issue") or {}
        return cls(
            installation_id=parse_installation_id(payload),
            issue_number=issue.get("number", 0),
            comments_url=_require(payload, "issue", "comments_url"),
            commenter=_require(payload, "comment", "user", "login"),
            body=payload["comment"].get("body") or "",
            pr_url=(issue.get("pull_request") or {}).get("url", ""),
        )
