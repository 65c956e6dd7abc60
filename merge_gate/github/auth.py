"""GitHub App authentication."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

import httpx
import jwt

logger = logging.getLogger(__name__)


@dataclass
class CachedToken:
    """A cached installation token with expiration tracking."""

    token: str
    expires_at: float  # Unix timestamp


@dataclass
class GitHubAppAuth:
    """
    GitHub App authentication handler.

    Mints app JWTs and caches installation access tokens per installation.
    The cache is shared by every delivery in the process; concurrent refreshes
    of the same installation are not serialised, the last writer wins.
    """

    app_id: str
    private_key: str
    api_url: str = "https://api.github.com"
    clock: Callable[[], float] = time.time
    http_client: httpx.AsyncClient | None = None
    _token_cache: dict[int, CachedToken] = field(default_factory=dict)

    JWT_EXPIRATION_SECONDS: int = 600
    JWT_BACKDATE_SECONDS: int = 60
    TOKEN_REFRESH_BUFFER_SECONDS: int = 60

    def generate_jwt(self) -> str:
        """
        Generate a JWT for GitHub App authentication.

        Returns:
            A RS256-signed JWT valid for 10 minutes.
        """
        now = int(self.clock())
        payload = {
            # Issued in the past to allow for clock drift
            "iat": now - self.JWT_BACKDATE_SECONDS,
            "exp": now + self.JWT_EXPIRATION_SECONDS,
            "iss": self.app_id,
        }
        return jwt.encode(payload, self.private_key, algorithm="RS256")

    async def get_installation_token(self, installation_id: int) -> str:
        """
        Get an installation access token, minting a new one when needed.

        Args:
            installation_id: The GitHub App installation ID.

        Returns:
            An installation access token string.

        Raises:
            httpx.HTTPStatusError: If the token exchange fails.
        """
        cached = self._token_cache.get(installation_id)
        if cached and not self._is_token_expired(cached):
            return cached.token

        logger.info(f"Minting installation token for installation {installation_id}")
        app_jwt = self.generate_jwt()

        should_close_client = self.http_client is None
        client = self.http_client or httpx.AsyncClient()

        try:
            response = await client.post(
                f"{self.api_url}/app/installations/{installation_id}/access_tokens",
                headers={
                    "Authorization": f"Bearer {app_jwt}",
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": "2022-11-28",
                },
            )
            response.raise_for_status()

            data = response.json()
            token: str = data["token"]
            # Format: "2024-01-01T00:00:00Z"
            expires_at = datetime.fromisoformat(
                data["expires_at"].replace("Z", "+00:00")
            ).timestamp()

            self._token_cache[installation_id] = CachedToken(
                token=token,
                expires_at=expires_at,
            )
            return token
        finally:
            if should_close_client:
                await client.aclose()

    def _is_token_expired(self, cached: CachedToken) -> bool:
        """Check if a cached token is expired or within the refresh buffer."""
        return self.clock() >= cached.expires_at - self.TOKEN_REFRESH_BUFFER_SECONDS

    def invalidate_token(self, installation_id: int) -> None:
        self._token_cache.pop(installation_id, None)
