"""GitHub REST API client for one installation."""

import logging
from typing import Any

import httpx

from ..errors import GitHubAPIError, MergeFailureReason, MergeRejectedError
from ..policy.models import PullRequest, ReviewSubmission
from .auth import GitHubAppAuth

logger = logging.getLogger(__name__)

REVIEWS_PER_PAGE = 100

PERMISSION_DENIED_MARKER = "Resource not accessible by integration"
RULE_MARKERS = ("rule", "protected branch", "blocked")


def classify_merge_failure(status_code: int | None, message: str) -> MergeFailureReason:
    """
    Map a failed merge response to a failure reason.

    Permission problems win over rule wording, and rule wording wins over
    a plain 405/409, since rulesets are also reported as 405.
    """
    lowered = message.lower()
    if status_code == 403 or PERMISSION_DENIED_MARKER in message:
        return MergeFailureReason.PERMISSION_DENIED
    if any(marker in lowered for marker in RULE_MARKERS):
        return MergeFailureReason.RULE_BLOCKED
    if status_code in (405, 409):
        return MergeFailureReason.NOT_MERGEABLE
    return MergeFailureReason.UNKNOWN


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.text


class GitHubAPI:
    """GitHub REST API client authenticated as an app installation."""

    def __init__(
        self,
        auth: GitHubAppAuth,
        installation_id: int,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize with the app auth handler and an installation ID."""
        self.auth = auth
        self.installation_id = installation_id
        self.http_client = http_client

    async def _headers(self) -> dict[str, str]:
        token = await self.auth.get_installation_token(self.installation_id)
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "merge-gate",
        }

    async def _request(
        self,
        method: str,
        url: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send an authenticated request, raising GitHubAPIError on non-2xx."""
        headers = await self._headers()

        should_close_client = self.http_client is None
        client = self.http_client or httpx.AsyncClient()

        try:
            response = await client.request(
                method, url, headers=headers, json=json, params=params
            )
        finally:
            if should_close_client:
                await client.aclose()

        if response.is_success:
            logger.info(f"{method} {url} → {response.status_code}")
            return response

        message = _error_message(response)
        logger.error(f"{method} {url} → {response.status_code} {message}")
        raise GitHubAPIError(message, status_code=response.status_code)

    async def fetch_reviews(self, reviews_url: str) -> list[ReviewSubmission]:
        """Fetch every review on a pull request, in the order GitHub lists them."""
        if not reviews_url:
            raise ValueError("fetch_reviews: reviews_url is empty")

        reviews: list[ReviewSubmission] = []
        url: str | None = reviews_url
        params: dict[str, Any] | None = {"per_page": REVIEWS_PER_PAGE}

        while url:
            response = await self._request("GET", url, params=params)
            reviews.extend(ReviewSubmission.from_api(r) for r in response.json())
            # The next link already carries per_page and page
            url = response.links.get("next", {}).get("url")
            params = None

        logger.info(f"Fetched {len(reviews)} review(s) from {reviews_url}")
        return reviews

    async def fetch_pull_request(self, pr_url: str) -> PullRequest:
        """Fetch a pull request, including its requested reviewers."""
        if not pr_url:
            raise ValueError("fetch_pull_request: pr_url is empty")
        response = await self._request("GET", pr_url)
        return PullRequest.from_api(response.json())

    async def post_comment(self, comments_url: str, body: str) -> dict[str, Any]:
        """Create a comment on an issue or pull request."""
        if not comments_url:
            raise ValueError("post_comment: comments_url is empty")
        response = await self._request("POST", comments_url, json={"body": body})
        return response.json()

    async def merge_pull_request(
        self, pr_url: str, title: str, method: str = "squash"
    ) -> dict[str, Any]:
        """
        Merge a pull request.

        Raises:
            MergeRejectedError: If GitHub refuses the merge or cannot be reached.
        """
        try:
            response = await self._request(
                "PUT",
                f"{pr_url}/merge",
                json={"commit_title": title, "merge_method": method},
            )
        except GitHubAPIError as e:
            reason = classify_merge_failure(e.status_code, e.api_message)
            raise MergeRejectedError(reason, str(e), status_code=e.status_code) from e
        except httpx.HTTPError as e:
            # Transport failures and installation token errors
            raise MergeRejectedError(MergeFailureReason.UNKNOWN, str(e)) from e
        return response.json()
