"""GitHub REST API access (issues and pull requests)."""
from mender.github.client import GitHubClient, resolve_repository

__all__ = ["GitHubClient", "resolve_repository"]
