"""GitHub integration for merge-gate."""

from .api import GitHubAPI, classify_merge_failure
from .auth import GitHubAppAuth

__all__ = ["GitHubAppAuth", "GitHubAPI", "classify_merge_failure"]
