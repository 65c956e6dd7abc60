"""Routes webhook deliveries to workflows."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from .handlers import (
    ReviewGateway,
    WorkflowContext,
    WorkflowResult,
    handle_comment_created,
    handle_pull_request_opened,
    handle_review_submitted,
)
from .locks import PullRequestLocks
from .payloads import (
    CommentCreated,
    PullRequestOpened,
    ReviewSubmitted,
    parse_installation_id,
)
from .policy.models import Roster

logger = logging.getLogger(__name__)

GatewayFactory = Callable[[int], ReviewGateway]


@dataclass
class Route:
    """A workflow bound to one (event, action) pair."""

    parse: Callable[[dict[str, Any]], Any]
    handler: Callable[[Any, WorkflowContext], Awaitable[WorkflowResult]]


ROUTES: dict[tuple[str, str], Route] = {
    ("pull_request", "opened"): Route(
        PullRequestOpened.from_payload, handle_pull_request_opened
    ),
    ("pull_request_review", "submitted"): Route(
        ReviewSubmitted.from_payload, handle_review_submitted
    ),
    ("issue_comment", "created"): Route(
        CommentCreated.from_payload, handle_comment_created
    ),
}


@dataclass
class DispatchResult:
    """Outcome of one delivery."""

    status: str
    event: str | None
    action: str | None
    result: WorkflowResult | None = None
    reason: str | None = None

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "status": self.status,
            "event": self.event,
            "action": self.action,
        }
        if self.reason:
            data["reason"] = self.reason
        if self.result is not None:
            data.update(self.result.as_dict())
        return data


class Dispatcher:
    """Selects and runs the workflow for a webhook delivery."""

    def __init__(
        self,
        gateway_factory: GatewayFactory,
        team_a: Roster,
        team_b: Roster,
        merge_method: str = "squash",
        locks: PullRequestLocks | None = None,
    ) -> None:
        self.gateway_factory = gateway_factory
        self.team_a = team_a
        self.team_b = team_b
        self.merge_method = merge_method
        self.locks = locks or PullRequestLocks()

    async def dispatch(self, event: str | None, payload: dict[str, Any]) -> DispatchResult:
        """
        Handle one delivery.

        Raises:
            PayloadError: If the installation or a field the workflow needs
                is missing.
        """
        action = payload.get("action")
        installation_id = parse_installation_id(payload)
        logger.info(f"[{event}] action={action} installation={installation_id}")

        route = ROUTES.get((event or "", action or ""))
        if route is None:
            return DispatchResult(status="ignored", event=event, action=action)

        record = route.parse(payload)
        if isinstance(record, CommentCreated) and not record.is_pull_request:
            return DispatchResult(
                status="ignored", event=event, action=action, reason="not_a_pull_request"
            )

        ctx = WorkflowContext(
            gateway=self.gateway_factory(installation_id),
            team_a=self.team_a,
            team_b=self.team_b,
            merge_method=self.merge_method,
            locks=self.locks,
        )
        result = await route.handler(record, ctx)
        return DispatchResult(status="handled", event=event, action=action, result=result)
