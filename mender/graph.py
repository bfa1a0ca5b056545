"""Graph definition for the issue → tests → repair → PR pipeline.

This module wires the repair state machine using LangGraph:

    fetch_issue → prepare_workspace → scaffold_tests → attempt_fix ⟲
        → publish | exhausted → finish

The state is a plain dictionary carrying the run configuration, the
workspace-bound collaborators, the selected issue and the attempt history.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from langgraph.graph import END, StateGraph

from mender.github import GitHubClient, resolve_repository
from mender.nodes import (
    attempt_fix,
    fetch_issue,
    finish,
    mark_exhausted,
    prepare_workspace,
    publish,
    route_after_attempt,
    scaffold_tests,
)
from mender.repair import build_repair_loop
from mender.repair.loop import EXHAUSTED, NEXT_ATTEMPT, PUBLISH
from mender.run_config import RunConfig
from mender.runner import CommandRunner
from mender.scaffold import TestScaffolder
from mender.state import RepairState
from mender.workspace import Workspace


def build_graph():
    """Compile and return the LangGraph graph for this pipeline."""
    builder = StateGraph(RepairState)

    builder.set_entry_point("fetch_issue")
    builder.add_node("fetch_issue", fetch_issue)
    builder.add_node("prepare_workspace", prepare_workspace)
    builder.add_node("scaffold_tests", scaffold_tests)
    builder.add_node("attempt_fix", attempt_fix)
    builder.add_node("publish", publish)
    builder.add_node("exhausted", mark_exhausted)
    builder.add_node("finish", finish)

    builder.add_conditional_edges(
        "fetch_issue",
        lambda s: "finish" if s.get("finished") else "prepare_workspace",
        {"finish": "finish", "prepare_workspace": "prepare_workspace"},
    )
    builder.add_edge("prepare_workspace", "scaffold_tests")
    builder.add_edge("scaffold_tests", "attempt_fix")
    builder.add_conditional_edges(
        "attempt_fix",
        route_after_attempt,
        {PUBLISH: "publish", NEXT_ATTEMPT: "attempt_fix", EXHAUSTED: "exhausted"},
    )
    builder.add_edge("publish", "finish")
    builder.add_edge("exhausted", END)
    builder.add_edge("finish", END)

    return builder.compile()


def build_initial_state(
    run_config: RunConfig,
    *,
    workdir: Optional[str] = None,
    workspace: Optional[Workspace] = None,
    runner: Optional[CommandRunner] = None,
    github: Any = None,
    repair_loop: Any = None,
    scaffolder: Any = None,
    llm: Any = None,
) -> Dict[str, Any]:
    """Wire the collaborators for one run around a single workspace."""
    workspace = workspace or Workspace(workdir or Path.cwd())
    runner = runner or CommandRunner(workspace.root)
    if github is None:
        github = GitHubClient(resolve_repository(run_config.repo, runner))
    return {
        "run_config": run_config,
        "workspace": workspace,
        "runner": runner,
        "github": github,
        "repair_loop": repair_loop or build_repair_loop(run_config, runner, llm=llm),
        "scaffolder": scaffolder or TestScaffolder.from_run_config(workspace, run_config),
        "attempts": [],
        "last_test_output": "",
    }


def run_once(run_config: RunConfig, **kwargs: Any) -> Dict[str, Any]:
    """Build the graph and process exactly one issue."""
    state = build_initial_state(run_config, **kwargs)
    recursion_limit = 20 + 2 * run_config.total_attempts
    return build_graph().invoke(state, {"recursion_limit": recursion_limit})
