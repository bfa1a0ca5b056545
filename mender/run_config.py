"""Immutable per-run configuration.

``RunConfig`` captures the settings that steer a single invocation (which
issue, which branch, which test command, how many repair slots).  It is
built once before the graph runs and injected into
``RepairState["run_config"]`` so that every node reads its values without
touching the global singleton or ``os.environ``.

Credentials and model settings stay in the ``Config`` singleton accessed via
``get_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from mender.config import Config


@dataclass(frozen=True)
class RunConfig:
    """Immutable, per-run configuration."""

    # --- Target -------------------------------------------------------------
    repo: str = ""
    issue_number: Optional[str] = None
    trigger_label: str = "copilot"

    # --- Git ----------------------------------------------------------------
    default_branch: str = ""
    branch_prefix: str = "agent/issue-"
    git_user_name: str = "github-actions[bot]"
    git_user_email: str = "github-actions[bot]@users.noreply.github.com"
    sync_workspace: bool = True

    # --- Repair -------------------------------------------------------------
    test_command: str = "npm test"
    model_attempts: int = 2
    repair_context_globs: Tuple[str, ...] = ("test/*.js", "package.json")
    repair_context_max_chars: int = 60000
    heuristic_rules: Tuple[Dict[str, Any], ...] = ()

    # --- Scaffolding --------------------------------------------------------
    scaffold_mode: str = "auto"
    scaffold_source_glob: str = "test/*.js"
    scaffold_test_suffix: str = ".test"
    scaffold_test_template: str = "{parent}/{stem}.test{suffix}"

    # --- Pull request -------------------------------------------------------
    pr_draft: bool = False
    pr_labels: Tuple[str, ...] = ("agent", "auto-fix")

    @property
    def total_attempts(self) -> int:
        """Number of repair slots: one heuristic plus the model-backed ones."""
        return 1 + self.model_attempts

    def branch_for(self, issue_number: str) -> str:
        return f"{self.branch_prefix}{issue_number}"

    @property
    def owner(self) -> str:
        return self.repo.split("/", 1)[0] if self.repo else ""

    # ------------------------------------------------------------------
    # Factory helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_config(cls, config: Config, **overrides: Any) -> RunConfig:
        """Build a ``RunConfig`` from the current global ``Config``.

        Keyword overrides (typically CLI flags) replace the matching fields.
        """
        rc = cls(
            repo=config.repo,
            issue_number=config.issue_number or None,
            trigger_label=config.trigger_label,
            default_branch=config.default_branch,
            branch_prefix=config.branch_prefix,
            git_user_name=config.git_user_name,
            git_user_email=config.git_user_email,
            test_command=config.test_command,
            model_attempts=config.model_attempts,
            repair_context_globs=tuple(config.get_repair_context_globs()),
            repair_context_max_chars=config.repair_context_max_chars,
            heuristic_rules=tuple(config.get_heuristic_rules()),
            scaffold_mode=config.scaffold_mode,
            scaffold_source_glob=config.scaffold_source_glob,
            scaffold_test_suffix=config.scaffold_test_suffix,
            scaffold_test_template=config.scaffold_test_template,
            pr_draft=config.pr_draft,
            pr_labels=tuple(config.get_pr_labels()),
        )
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(rc, **overrides) if overrides else rc


def get_run_config(state: Dict[str, Any]) -> RunConfig:
    """Retrieve ``RunConfig`` from graph state, with fallback.

    If the state does not contain a ``run_config`` key (e.g. in tests), a
    ``RunConfig`` is built from the global ``Config`` singleton so that
    callers always receive a valid object.
    """
    rc = state.get("run_config")
    if rc is not None:
        return rc

    from mender.config import get_config

    return RunConfig.from_config(get_config())
