"""HTTP client for the GitHub REST API."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from mender.config import get_config
from mender.errors import ConfigurationError
from mender.models import Issue
from mender.runner import CommandRunner
from mender.utils.logger import log_api_response, log_error, log_info, log_warning


class GitHubClient:
    """Issue lookup plus pull request lookup/creation for one repository."""

    def __init__(self, repo: str, token: Optional[str] = None,
                 api_url: Optional[str] = None, timeout: Optional[int] = None):
        config = get_config()
        if not repo or "/" not in repo:
            raise ConfigurationError(f"Repository must be given as owner/name, got {repo!r}")
        self.repo = repo
        self.owner = repo.split("/", 1)[0]
        self.token = token if token is not None else config.github_token
        self.api_url = (api_url or config.github_api_url).rstrip("/")
        self.timeout = timeout or config.github_timeout

    def _headers(self) -> Dict[str, str]:
        if not self.token:
            raise ConfigurationError("Missing GITHUB_TOKEN in environment")
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _url(self, suffix: str) -> str:
        return f"{self.api_url}/repos/{self.repo}/{suffix}"

    def _request(self, method: str, suffix: str, operation: str, **kwargs) -> requests.Response:
        try:
            resp = requests.request(method, self._url(suffix), headers=self._headers(),
                                    timeout=self.timeout, **kwargs)
            resp.raise_for_status()
        except requests.RequestException as e:
            resp_preview = None
            if getattr(e, "response", None) is not None:
                resp_preview = e.response.text[:500]
            log_error(f"GitHub {operation} failed", error=str(e), response=resp_preview)
            raise
        log_api_response(f"GitHub {operation}", resp.status_code)
        return resp

    # ── Issues ──────────────────────────────────────────────────

    def get_issue(self, number: str) -> Issue:
        data = self._request("GET", f"issues/{number}", "issue fetch").json()
        return Issue(number=str(data.get("number", number)),
                     title=data.get("title") or "",
                     body=data.get("body") or "")

    def list_labeled_issues(self, label: str) -> List[str]:
        """Open issue numbers carrying ``label`` in the tracker's order (pull requests excluded)."""
        items = self._request("GET", "issues", "labeled issue search",
                              params={"labels": label, "state": "open"}).json() or []
        return [str(item["number"]) for item in items if "pull_request" not in item]

    # ── Pull requests ───────────────────────────────────────────

    def find_existing_pr(self, branch: str) -> Optional[Dict[str, Any]]:
        """Return the first open PR whose head is ``owner:branch``, if any."""
        items = self._request("GET", "pulls", "pull request lookup",
                              params={"state": "open", "head": f"{self.owner}:{branch}"}).json() or []
        return items[0] if items else None

    def create_pull_request(self, head: str, base: str, title: str, body: str,
                            draft: bool = False) -> Dict[str, Any]:
        payload = {"title": title, "head": head, "base": base, "body": body, "draft": draft}
        data = self._request("POST", "pulls", "pull request creation", json=payload).json()
        log_info("Pull request created", number=data.get("number"), url=data.get("html_url"))
        return data

    def add_labels(self, number: int, labels: List[str]) -> bool:
        """Label an issue or PR. Failures are logged and reported as False."""
        if not labels:
            return True
        try:
            self._request("POST", f"issues/{number}/labels", "label addition",
                          json={"labels": labels})
        except requests.RequestException as e:
            log_warning("Could not apply labels", number=number, labels=labels, error=str(e))
            return False
        return True


def resolve_repository(explicit: Optional[str], runner: Optional[CommandRunner] = None) -> str:
    """Pick the target repository: explicit value, then config (REPO/GITHUB_REPOSITORY), then git remote."""
    if explicit:
        return explicit
    configured = get_config().repo
    if configured:
        return configured
    if runner is not None:
        from mender.git_tools import remote_repository

        remote = remote_repository(runner)
        if remote:
            log_info("Repository resolved from git remote", repo=remote)
            return remote
    raise ConfigurationError("Could not determine repository; set REPO or pass --repo")
