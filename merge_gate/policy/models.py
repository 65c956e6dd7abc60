"""Value types for the review policy."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ReviewState(Enum):
    """State of a single submitted review."""

    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    DISMISSED = "DISMISSED"
    COMMENTED = "COMMENTED"
    PENDING = "PENDING"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, raw: str | None) -> "ReviewState":
        """Parse a review state as GitHub spells it, in either case."""
        if not raw:
            return cls.UNKNOWN
        try:
            return cls(raw.upper())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class ReviewSubmission:
    """One historical review event on a pull request."""

    reviewer: str
    state: ReviewState
    submitted_at: datetime | None = None
    review_id: int | None = None
    raw_state: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ReviewSubmission":
        """Build a submission from a REST or webhook review object."""
        raw_state = data.get("state") or ""
        submitted_at_str = data.get("submitted_at")
        submitted_at = None
        if submitted_at_str:
            submitted_at = datetime.fromisoformat(
                submitted_at_str.replace("Z", "+00:00")
            )
        return cls(
            reviewer=(data.get("user") or {}).get("login", ""),
            state=ReviewState.parse(raw_state),
            submitted_at=submitted_at,
            review_id=data.get("id"),
            raw_state=raw_state,
        )


@dataclass
class ReviewerState:
    """Net review state of one user after replay."""

    approved: bool = False
    blocked: bool = False


@dataclass(frozen=True)
class Roster:
    """A named, ordered set of logins of which one must approve."""

    name: str
    members: tuple[str, ...] = ()

    def mentions(self) -> str:
        """Render the members as comma separated @-mentions."""
        return ", ".join(f"@{m}" for m in self.members)


@dataclass(frozen=True)
class TeamVerdict:
    """Approval outcome for one roster."""

    roster: Roster
    ok: bool
    approved_by: tuple[str, ...] = ()
    blocked_by: tuple[str, ...] = ()


@dataclass(frozen=True)
class ApprovalVerdict:
    """Approval outcome for both rosters on a pull request."""

    team_a: TeamVerdict
    team_b: TeamVerdict

    @property
    def team_a_ok(self) -> bool:
        return self.team_a.ok

    @property
    def team_b_ok(self) -> bool:
        return self.team_b.ok

    @property
    def team_a_blocked_by(self) -> tuple[str, ...]:
        return self.team_a.blocked_by

    @property
    def team_b_blocked_by(self) -> tuple[str, ...]:
        return self.team_b.blocked_by

    @property
    def teams(self) -> tuple[TeamVerdict, TeamVerdict]:
        return (self.team_a, self.team_b)

    @property
    def ready(self) -> bool:
        """Whether both rosters are satisfied."""
        return self.team_a.ok and self.team_b.ok


@dataclass(frozen=True)
class PullRequest:
    """The subset of a GitHub pull request the bot consumes."""

    number: int
    title: str
    author: str
    url: str
    comments_url: str
    reviews_url: str
    mergeable: bool | None = None
    mergeable_state: str = "unknown"
    requested_reviewers: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PullRequest":
        """Build a pull request from a REST or webhook pull request object."""
        url = data.get("url", "")
        reviews_url = data.get("reviews_url") or (f"{url}/reviews" if url else "")
        return cls(
            number=data.get("number", 0),
            title=data.get("title", ""),
            author=(data.get("user") or {}).get("login", ""),
            url=url,
            comments_url=data.get("comments_url", ""),
            reviews_url=reviews_url,
            mergeable=data.get("mergeable"),
            mergeable_state=data.get("mergeable_state") or "unknown",
            requested_reviewers=frozenset(
                r.get("login", "") for r in data.get("requested_reviewers") or []
            ),
        )

    @property
    def merge_commit_title(self) -> str:
        return f"{self.title} (#{self.number})"
