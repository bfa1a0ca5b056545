"""Publish node: branch, commit, lease-protected push, pull request."""

from typing import Any, Dict, List

from mender import git_tools
from mender.models import Attempt, Issue, RunOutcome
from mender.run_config import get_run_config
from mender.utils.audit import append_audit, audit_file
from mender.utils.logger import log_agent_progress, log_info
from mender.workspace import Workspace


def pr_title(issue: Issue) -> str:
    return f"Agent: {issue.title}"


def commit_message(issue: Issue) -> str:
    return f"Agent: {issue.title} (issue #{issue.number})"


def pr_body(issue: Issue, attempts: List[Attempt], scaffolded: List[str]) -> str:
    winner = attempts[-1] if attempts else None
    tests_line = (
        f"- Added tests first: {', '.join(scaffolded)}" if scaffolded else "- Tests were already in place"
    )
    lines = [
        f"Closes #{issue.number}",
        "",
        tests_line,
        f"- Applied fix ({winner.strategy} strategy)" if winner else "- Applied fix",
        "- Ran tests: passing",
        f"- Attempts used: {len(attempts)}",
    ]
    return "\n".join(lines) + "\n"


def untracked_artifacts(workspace: Workspace) -> List[str]:
    """Agent-owned files inside the checkout that must never be committed."""
    audit = audit_file()
    if audit is None or workspace.root not in audit.parents:
        return []
    return [workspace.relative(audit)]


def publish(state: Dict[str, Any]) -> Dict[str, Any]:
    """Commit to the per-issue branch and open a PR unless one is already open."""
    rc = get_run_config(state)
    runner = state["runner"]
    github = state["github"]
    issue: Issue = state["issue"]
    attempts = state.get("attempts") or []
    branch = rc.branch_for(issue.number)

    git_tools.checkout_branch(runner, branch)
    committed = git_tools.commit_all(runner, commit_message(issue),
                                     exclude=untracked_artifacts(state["workspace"]))
    git_tools.push_with_lease(runner, branch)

    existing = github.find_existing_pr(branch)
    if existing:
        pr_url = existing.get("html_url", "")
        log_info("[agent] PR already exists; skipping creation", branch=branch, url=pr_url)
        pr_created = False
    else:
        pr = github.create_pull_request(
            head=branch,
            base=state.get("base_branch") or rc.default_branch or "main",
            title=pr_title(issue),
            body=pr_body(issue, attempts, state.get("scaffolded") or []),
            draft=rc.pr_draft,
        )
        pr_url = pr.get("html_url", "")
        pr_created = True
        if rc.pr_labels and pr.get("number") is not None:
            github.add_labels(pr["number"], list(rc.pr_labels))

    log_agent_progress("Published", branch=branch, pr_url=pr_url, created=pr_created)
    append_audit({"event": "publish", "issue": issue.number, "branch": branch, "committed": committed,
                  "pr_created": pr_created, "pr_url": pr_url})
    return {
        **state,
        "branch": branch,
        "committed": committed,
        "pr_url": pr_url,
        "pr_created": pr_created,
        "outcome": RunOutcome.SUCCEEDED,
        "message": f"PR: {pr_url}" if pr_url else "Published",
    }


def finish(state: Dict[str, Any]) -> Dict[str, Any]:
    outcome = state.get("outcome")
    issue = state.get("issue")
    append_audit({"event": "outcome", "issue": issue.number if issue else None,
                  "outcome": outcome.value if outcome else None, "pr_url": state.get("pr_url")})
    log_info("[agent] Done", outcome=outcome.value if outcome else None, detail=state.get("message"))
    return {**state, "finished": True}
