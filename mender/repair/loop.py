"""Ordered repair attempts with a test run after each.

``RepairLoop`` owns the strategy slots and the transition rule; the graph in
``mender.graph`` drives it one attempt at a time, while ``run`` offers the
same behaviour as a plain loop.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from mender.errors import ApplyError, ParseError, RepairExhaustedError
from mender.models import Attempt, Issue
from mender.repair.strategies import (
    HeuristicStrategy,
    ModelRepairStrategy,
    PatchStrategy,
    RepairContext,
    SignatureRule,
    DEFAULT_RULES,
)
from mender.runner import CommandRunner
from mender.utils.logger import log_agent_progress, log_error, log_info, log_warning
from mender.workspace import Workspace

PUBLISH = "publish"
NEXT_ATTEMPT = "attempt_fix"
EXHAUSTED = "exhausted"


class RepairLoop:
    """Runs strategies strictly in slot order, never concurrently."""

    def __init__(self, strategies: Sequence[PatchStrategy], runner: CommandRunner, test_command: str):
        if not strategies:
            raise ValueError("RepairLoop needs at least one strategy")
        self.strategies = list(strategies)
        self.runner = runner
        self.test_command = test_command

    @property
    def budget(self) -> int:
        return len(self.strategies)

    def attempt(self, ordinal: int, issue: Issue, workspace: Workspace,
                last_test_output: str = "") -> Attempt:
        """Apply slot ``ordinal`` (1-based) and run the tests.

        A ``ParseError`` or ``ApplyError`` fails the attempt without running
        the tests; ``ConfigurationError`` propagates to the caller.
        """
        strategy = self.strategies[ordinal - 1]
        log_agent_progress(f"Attempt({ordinal})", strategy=strategy.name, budget=self.budget)
        context = RepairContext(issue=issue, workspace=workspace,
                                last_test_output=last_test_output, ordinal=ordinal)
        try:
            result = strategy.apply(context)
        except (ParseError, ApplyError) as e:
            raw = getattr(e, "raw_response", "")
            log_error(f"[agent] Attempt {ordinal} ({strategy.name}) failed", error=str(e),
                      raw_response=raw[:1000] if raw else None)
            return Attempt(ordinal=ordinal, strategy=strategy.name, passed=False, error=str(e))

        if result.skipped:
            log_warning("[agent] Some model blocks were skipped", paths=list(result.skipped))
        if not result.changed:
            log_info(f"[agent] Attempt {ordinal} ({strategy.name}) made no change")

        test = self.runner.capture(self.test_command)
        changes = {c.path: c.content for c in result.changes}
        if test.ok:
            log_info(f"[agent] Tests pass after attempt {ordinal}", strategy=strategy.name)
            return Attempt(ordinal=ordinal, strategy=strategy.name, changes=changes, passed=True)
        log_warning(f"[agent] Tests still failing after attempt {ordinal}",
                    strategy=strategy.name, returncode=test.returncode)
        return Attempt(ordinal=ordinal, strategy=strategy.name, changes=changes,
                       passed=False, test_output=test.output)

    def next_step(self, attempts: Sequence[Attempt]) -> str:
        """Transition rule: pass → publish; fail with budget left → next attempt; else exhausted."""
        if attempts and attempts[-1].passed:
            return PUBLISH
        if len(attempts) < self.budget:
            return NEXT_ATTEMPT
        return EXHAUSTED

    def run(self, issue: Issue, workspace: Workspace, last_test_output: str = "") -> List[Attempt]:
        """Run attempts until one passes; raise ``RepairExhaustedError`` otherwise."""
        attempts: List[Attempt] = []
        while True:
            step = self.next_step(attempts)
            if step == PUBLISH:
                return attempts
            if step == EXHAUSTED:
                raise RepairExhaustedError(attempts)
            attempt = self.attempt(len(attempts) + 1, issue, workspace, last_test_output)
            if attempt.test_output is not None:
                last_test_output = attempt.test_output
            attempts.append(attempt)


def build_default_strategies(run_config, llm=None) -> List[PatchStrategy]:
    """Slot list ``[heuristic] + [model] * model_attempts``."""
    rules = [SignatureRule.from_dict(r) for r in run_config.heuristic_rules] or list(DEFAULT_RULES)
    strategies: List[PatchStrategy] = [HeuristicStrategy(rules)]
    if run_config.model_attempts > 0:
        model = ModelRepairStrategy(
            context_globs=run_config.repair_context_globs,
            max_context_chars=run_config.repair_context_max_chars,
            llm=llm,
        )
        strategies.extend([model] * run_config.model_attempts)
    return strategies


def build_repair_loop(run_config, runner: CommandRunner, llm=None,
                      strategies: Optional[Sequence[PatchStrategy]] = None) -> RepairLoop:
    return RepairLoop(strategies or build_default_strategies(run_config, llm=llm),
                      runner, run_config.test_command)
