"""Workspace preparation and tests-first scaffolding nodes."""

from typing import Any, Dict

from mender import git_tools
from mender.run_config import get_run_config
from mender.utils.audit import append_audit
from mender.utils.logger import log_agent_progress, log_info


def prepare_workspace(state: Dict[str, Any]) -> Dict[str, Any]:
    """Sync the default branch and set the bot identity (skipped with --no-sync)."""
    rc = get_run_config(state)
    runner = state["runner"]

    if not rc.sync_workspace:
        base = rc.default_branch or git_tools.current_branch(runner) or "main"
        log_info("[agent] Workspace sync skipped", base_branch=base)
        return {**state, "base_branch": base}

    base = git_tools.sync_default_branch(runner, rc.default_branch)
    git_tools.configure_identity(runner, rc.git_user_name, rc.git_user_email)
    log_info("[agent] Workspace ready", base_branch=base)
    return {**state, "base_branch": base}


def scaffold_tests(state: Dict[str, Any]) -> Dict[str, Any]:
    """Make sure every source unit has a test before any fix is attempted."""
    created = state["scaffolder"].ensure_tests(state.get("issue"))
    log_agent_progress("Scaffolded", created=created)
    append_audit({"event": "scaffold", "issue": state["issue"].number, "created": created})
    return {**state, "scaffolded": created}
