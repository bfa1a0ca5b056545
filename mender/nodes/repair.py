"""Repair attempt nodes."""

from typing import Any, Dict

from mender.errors import RepairExhaustedError
from mender.models import RunOutcome
from mender.utils.audit import append_audit
from mender.utils.logger import log_agent_progress, log_error


def attempt_fix(state: Dict[str, Any]) -> Dict[str, Any]:
    """Run the next strategy slot and record the attempt."""
    loop = state["repair_loop"]
    attempts = list(state.get("attempts") or [])
    issue = state["issue"]

    attempt = loop.attempt(len(attempts) + 1, issue, state["workspace"], state.get("last_test_output", ""))
    attempts.append(attempt)
    append_audit({"event": "attempt", "issue": issue.number, **attempt.summary()})

    last_output = state.get("last_test_output", "")
    if attempt.test_output is not None:
        last_output = attempt.test_output
    return {**state, "attempts": attempts, "last_test_output": last_output}


def route_after_attempt(state: Dict[str, Any]) -> str:
    return state["repair_loop"].next_step(state.get("attempts") or [])


def mark_exhausted(state: Dict[str, Any]) -> Dict[str, Any]:
    """Terminal failure: every slot ran and the tests still fail."""
    attempts = state.get("attempts") or []
    issue = state["issue"]
    log_agent_progress("Exhausted", issue=issue.number, attempts=len(attempts))
    log_error("[agent] Repair budget exhausted",
              issue=issue.number,
              attempts=[a.summary() for a in attempts],
              last_test_output=(state.get("last_test_output") or "")[-1500:])
    append_audit({"event": "outcome", "issue": issue.number, "outcome": RunOutcome.FAILED.value,
                  "attempts": len(attempts)})
    raise RepairExhaustedError(attempts)
