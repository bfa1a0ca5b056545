"""Shared state type for the issue → tests → repair → PR pipeline."""

from __future__ import annotations

from typing import Any, List, TypedDict

from mender.models import Attempt, Issue, RunOutcome  # noqa: F401 – needed at runtime for TypedDict
from mender.run_config import RunConfig  # noqa: F401 – needed at runtime for TypedDict


class RepairState(TypedDict, total=False):
    # Per-run configuration (immutable, injected at graph invocation)
    run_config: RunConfig

    # Collaborators (workspace-bound, built once per run)
    workspace: Any
    runner: Any
    github: Any
    repair_loop: Any
    scaffolder: Any

    # Produced by fetch_issue
    issue: Issue
    finished: bool

    # Produced by prepare_workspace / scaffold_tests
    base_branch: str
    scaffolded: List[str]

    # Produced by attempt_fix
    attempts: List[Attempt]
    last_test_output: str

    # Produced by publish
    branch: str
    committed: bool
    pr_url: str
    pr_created: bool

    # Outputs / side info
    outcome: RunOutcome
    message: str
