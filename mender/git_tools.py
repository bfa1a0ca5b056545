"""Git operations on the workspace, executed through ``CommandRunner``."""
from __future__ import annotations

import re
from typing import Optional, Sequence

from mender.errors import CommandError
from mender.runner import CommandRunner
from mender.utils.logger import log_info, log_warning

_REMOTE_RE = re.compile(r"github\.com[:/](?P<owner>[^/\s]+)/(?P<name>[^/\s]+?)(?:\.git)?/?$")


def parse_remote_url(url: str) -> Optional[str]:
    """Extract ``owner/name`` from an https or ssh GitHub remote URL."""
    m = _REMOTE_RE.search((url or "").strip())
    if not m:
        return None
    return f"{m.group('owner')}/{m.group('name')}"


def remote_repository(runner: CommandRunner) -> Optional[str]:
    result = runner.capture(["git", "remote", "get-url", "origin"])
    if not result.ok:
        return None
    return parse_remote_url(result.output.strip())


def sync_default_branch(runner: CommandRunner, default_branch: str = "") -> str:
    """Fetch, check out the default branch and fast-forward it.

    With no explicit branch, ``main`` is tried first, then ``master``.
    Returns the branch that was checked out.
    """
    runner.run(["git", "fetch", "origin"])
    if default_branch:
        runner.run(["git", "checkout", default_branch])
        base = default_branch
    else:
        try:
            runner.run(["git", "checkout", "main"])
            base = "main"
        except CommandError:
            log_warning("[agent] main not available, falling back to master")
            runner.run(["git", "checkout", "master"])
            base = "master"
    runner.run(["git", "pull"])
    return base


def current_branch(runner: CommandRunner) -> str:
    result = runner.capture(["git", "rev-parse", "--abbrev-ref", "HEAD"])
    return result.output.strip() if result.ok else ""


def configure_identity(runner: CommandRunner, name: str, email: str) -> None:
    runner.run(["git", "config", "user.name", name])
    runner.run(["git", "config", "user.email", email])


def checkout_branch(runner: CommandRunner, branch: str) -> None:
    """Create or reset ``branch`` at the current HEAD and switch to it."""
    runner.run(["git", "checkout", "-B", branch])


def commit_all(runner: CommandRunner, message: str, exclude: Sequence[str] = ()) -> bool:
    """Stage everything except ``exclude`` and commit.

    Returns False when nothing ended up staged.
    """
    add = ["git", "add", "-A"]
    if exclude:
        add += ["--", "."] + [f":(exclude){path}" for path in exclude]
    runner.run(add)
    staged = runner.capture(["git", "diff", "--cached", "--name-only"])
    if staged.ok and not staged.output.strip():
        log_info("[agent] Nothing to commit")
        return False
    runner.run(["git", "commit", "-m", message])
    return True


def push_with_lease(runner: CommandRunner, branch: str) -> None:
    runner.run(["git", "push", "--force-with-lease", "-u", "origin", branch])
