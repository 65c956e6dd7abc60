"""Entry point for merge-gate."""

import logging
import sys

import uvicorn
from dotenv import load_dotenv

from .config import Config
from .github.auth import GitHubAppAuth
from .server import app, build_dispatcher, init_app


def main() -> None:
    """Run the merge-gate server."""
    # Load .env from current working directory
    load_dotenv(".env", override=False)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger = logging.getLogger(__name__)

    try:
        config = Config.from_env()
    except (ValueError, OSError) as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    github_auth = GitHubAppAuth(
        app_id=config.github_app_id,
        private_key=config.github_private_key,
        api_url=config.github_api_url,
    )
    init_app(config, build_dispatcher(config, github_auth))

    logger.info(
        f"Requiring approval from '{config.team_a.name}' "
        f"({', '.join(config.team_a.members)}) and '{config.team_b.name}' "
        f"({', '.join(config.team_b.members)}); merge method {config.merge_method}"
    )
    logger.info(f"Starting merge-gate on {config.host}:{config.port}")

    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
