"""FastAPI server for merge-gate."""

import hashlib
import hmac
import logging
from typing import Any

from fastapi import FastAPI, Header, HTTPException, Request, status

from .config import Config
from .dispatcher import Dispatcher
from .errors import PayloadError
from .github.api import GitHubAPI
from .github.auth import GitHubAppAuth
from .locks import PullRequestLocks

logger = logging.getLogger(__name__)

app = FastAPI(
    title="merge-gate",
    description="GitHub App enforcing two-team approval before /merge",
    version="0.1.0",
)

# Global dependencies - set at startup
_config: Config | None = None
_dispatcher: Dispatcher | None = None


def build_dispatcher(config: Config, github_auth: GitHubAppAuth) -> Dispatcher:
    """Wire the dispatcher to GitHub for the given configuration."""
    return Dispatcher(
        gateway_factory=lambda installation_id: GitHubAPI(github_auth, installation_id),
        team_a=config.team_a,
        team_b=config.team_b,
        merge_method=config.merge_method,
        locks=PullRequestLocks(enabled=config.serialize_per_pr),
    )


def init_app(config: Config, dispatcher: Dispatcher) -> None:
    """Initialize the application with dependencies."""
    global _config, _dispatcher
    _config = config
    _dispatcher = dispatcher


def get_config() -> Config:
    """Get the application configuration."""
    if _config is None:
        raise RuntimeError("Application not initialized")
    return _config


def get_dispatcher() -> Dispatcher:
    """Get the event dispatcher."""
    if _dispatcher is None:
        raise RuntimeError("Application not initialized")
    return _dispatcher


def verify_webhook_signature(payload: bytes, signature: str, secret: str) -> bool:
    """Verify GitHub webhook HMAC-SHA256 signature."""
    if not signature or not signature.startswith("sha256="):
        return False

    expected = signature[7:]
    computed = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(computed, expected)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/webhook")
async def webhook_handler(
    request: Request,
    x_hub_signature_256: str | None = Header(None),
    x_github_event: str | None = Header(None),
) -> dict[str, Any]:
    """Handle incoming GitHub webhook events."""
    config = get_config()

    body = await request.body()
    if not verify_webhook_signature(
        body, x_hub_signature_256 or "", config.github_webhook_secret
    ):
        logger.warning("Invalid webhook signature")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook signature",
        )

    try:
        payload: dict[str, Any] = await request.json()
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON payload",
        ) from e

    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON payload",
        )

    try:
        result = await get_dispatcher().dispatch(x_github_event, payload)
    except PayloadError as e:
        logger.error(f"Rejected {x_github_event} delivery: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    except Exception as e:
        logger.exception(f"Error handling {x_github_event} event")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal Server Error",
        ) from e

    return result.as_dict()
