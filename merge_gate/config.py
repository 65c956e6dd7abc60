"""Application configuration from environment variables."""

import base64
import binascii
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .policy.models import Roster

logger = logging.getLogger(__name__)

MERGE_METHODS = ("squash", "merge", "rebase")

_TRUE_VALUES = ("1", "true", "yes", "on")


def _split_logins(value: str) -> tuple[str, ...]:
    return tuple(login.strip().lstrip("@") for login in value.split(",") if login.strip())


def load_roster_config(yaml_content: str) -> tuple[Roster, Roster]:
    """
    Parse a roster file into the two approver teams.

    Expected shape::

        teams:
          - name: Jump
            members: [alice, bob]
          - name: Anza
            members: [carol]
    """
    try:
        data: dict[str, Any] = yaml.safe_load(yaml_content) or {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse roster file: {e}")
        raise ConfigError(f"Invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("Roster file must be a mapping with a 'teams' list")

    teams_data = data.get("teams") or []
    if not isinstance(teams_data, list) or len(teams_data) != 2:
        raise ConfigError("Roster file must define exactly two teams")

    rosters = []
    for index, team in enumerate(teams_data):
        if not isinstance(team, dict):
            raise ConfigError(f"Team #{index + 1} must be a mapping")
        members = team.get("members") or []
        if not isinstance(members, list):
            raise ConfigError(f"Team #{index + 1} members must be a list")
        rosters.append(
            Roster(
                name=str(team.get("name") or f"Team {'AB'[index]}"),
                members=tuple(str(m).lstrip("@") for m in members),
            )
        )

    return rosters[0], rosters[1]


def decode_private_key(value: str) -> str:
    """Accept a PEM key either verbatim or base64-encoded."""
    if "-----BEGIN" in value:
        return value
    try:
        decoded = base64.b64decode(value, validate=True).decode("ascii")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ConfigError("GITHUB_PRIVATE_KEY is neither PEM nor base64 PEM") from e
    if "-----BEGIN" not in decoded:
        raise ConfigError("GITHUB_PRIVATE_KEY does not contain a PEM key")
    return decoded


@dataclass
class Config:
    """Application configuration."""

    github_app_id: str
    github_private_key: str
    github_webhook_secret: str
    team_a: Roster
    team_b: Roster
    merge_method: str = "squash"
    serialize_per_pr: bool = False
    github_api_url: str = "https://api.github.com"
    port: int = 8000
    host: str = "0.0.0.0"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        app_id = os.environ.get("GITHUB_APP_ID", "")
        if not app_id:
            raise ConfigError("GITHUB_APP_ID environment variable is required")

        webhook_secret = os.environ.get("GITHUB_WEBHOOK_SECRET", "")
        if not webhook_secret:
            raise ConfigError("GITHUB_WEBHOOK_SECRET environment variable is required")

        # GitHub Private Key - can be path or direct content
        private_key_path = os.environ.get("GITHUB_PRIVATE_KEY_PATH", "")
        private_key = os.environ.get("GITHUB_PRIVATE_KEY", "")

        if private_key_path:
            private_key = Path(private_key_path).read_text()
        elif not private_key:
            raise ConfigError(
                "GITHUB_PRIVATE_KEY or GITHUB_PRIVATE_KEY_PATH is required"
            )

        roster_file = os.environ.get("MERGE_GATE_ROSTER_FILE", "")
        if roster_file:
            team_a, team_b = load_roster_config(Path(roster_file).read_text())
        else:
            team_a = Roster(
                name=os.environ.get("MERGE_GATE_TEAM_A_NAME", "Team A"),
                members=_split_logins(os.environ.get("MERGE_GATE_TEAM_A", "")),
            )
            team_b = Roster(
                name=os.environ.get("MERGE_GATE_TEAM_B_NAME", "Team B"),
                members=_split_logins(os.environ.get("MERGE_GATE_TEAM_B", "")),
            )

        for roster in (team_a, team_b):
            if not roster.members:
                logger.warning(f"Roster '{roster.name}' is empty; it can never approve")

        merge_method = os.environ.get("MERGE_GATE_MERGE_METHOD", "squash").lower()
        if merge_method not in MERGE_METHODS:
            raise ConfigError(
                f"MERGE_GATE_MERGE_METHOD must be one of {', '.join(MERGE_METHODS)}"
            )

        return cls(
            github_app_id=app_id,
            github_private_key=decode_private_key(private_key),
            github_webhook_secret=webhook_secret,
            team_a=team_a,
            team_b=team_b,
            merge_method=merge_method,
            serialize_per_pr=os.environ.get("MERGE_GATE_SERIALIZE_PER_PR", "").lower()
            in _TRUE_VALUES,
            github_api_url=os.environ.get(
                "GITHUB_API_URL", "https://api.github.com"
            ).rstrip("/"),
            port=int(os.environ.get("PORT", "8000")),
            host=os.environ.get("HOST", "0.0.0.0"),
        )
