"""Issue selection node."""

from typing import Any, Dict

from mender.models import RunOutcome
from mender.run_config import get_run_config
from mender.utils.audit import append_audit
from mender.utils.logger import log_agent_progress, log_info


def fetch_issue(state: Dict[str, Any]) -> Dict[str, Any]:
    """Load the explicit issue, or the first open issue carrying the trigger label."""
    rc = get_run_config(state)
    github = state["github"]

    number = rc.issue_number
    if not number:
        numbers = github.list_labeled_issues(rc.trigger_label)
        if not numbers:
            log_info(f"[agent] No open issues labeled '{rc.trigger_label}'")
            append_audit({"event": "issue_selection", "label": rc.trigger_label, "issue": None})
            return {
                **state,
                "finished": True,
                "outcome": RunOutcome.NO_ISSUES_FOUND,
                "message": f"No open issues labeled '{rc.trigger_label}'",
            }
        number = numbers[0]
        log_info("[agent] Picked labeled issue", label=rc.trigger_label, issue=number, candidates=len(numbers))

    issue = github.get_issue(number)
    log_agent_progress("Init", issue=issue.number, title=issue.title)
    append_audit({"event": "issue_selection", "issue": issue.number, "title": issue.title})
    return {**state, "issue": issue, "finished": False, "attempts": [], "last_test_output": ""}
