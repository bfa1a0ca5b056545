"""Patch strategies.

Each strategy implements ``PatchStrategy``: ``propose`` computes the new file
contents in memory and returns a validated ``PatchResult``; ``apply`` writes
that result to the workspace. Strategies are ordered from cheapest
(deterministic, offline) to most expensive (a model call per attempt).
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from mender.errors import ApplyError, ConfigurationError
from mender.models import FileChange, Issue, PatchResult
from mender.repair.diff_apply import apply_unified_diff
from mender.repair.parser import DiffBlock, parse_model_output
from mender.repair.prompts import repair_prompt
from mender.utils.logger import log_debug, log_info, log_warning
from mender.workspace import Workspace

# ---------------------------------------------------------------------------
# Base protocol
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RepairContext:
    """Everything a strategy may look at for one attempt."""

    issue: Issue
    workspace: Workspace
    last_test_output: str = ""
    ordinal: int = 1


class PatchStrategy(abc.ABC):
    """Abstract base for patch strategies."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Short machine-readable name for audit logs."""

    @abc.abstractmethod
    def propose(self, context: RepairContext) -> PatchResult:
        """Compute the change without touching the workspace.

        Returns an empty ``PatchResult`` as the no-change signal. Raises
        ``ParseError``/``ApplyError`` when the attempt cannot produce a
        usable change and ``ConfigurationError`` when it can never run.
        """

    def apply(self, context: RepairContext) -> PatchResult:
        result = self.propose(context)
        for change in result.changes:
            context.workspace.write(change.path, change.content)
        if result.changed:
            log_info(f"[agent] {self.name} wrote changes", files=list(result.paths))
        return result


# ---------------------------------------------------------------------------
# Strategy 1 – Signature heuristic (offline)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SignatureRule:
    """Replace ``buggy`` with ``fixed`` inside the function introduced by ``signature``.

    The rule is armed on the line containing ``signature`` and stays armed
    until the buggy expression is found or another top-level declaration
    starts. ``issue_keywords``, when given, restrict the rule to issues
    mentioning at least one of them.
    """

    path: str
    signature: str
    buggy: str
    fixed: str
    issue_keywords: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SignatureRule:
        return cls(
            path=data["path"],
            signature=data["signature"],
            buggy=data["buggy"],
            fixed=data["fixed"],
            issue_keywords=tuple(data.get("issue_keywords") or ()),
        )

    def applies_to(self, issue: Issue) -> bool:
        if not self.issue_keywords:
            return True
        text = issue.text.lower()
        return any(k.lower() in text for k in self.issue_keywords)


DEFAULT_RULES: Tuple[SignatureRule, ...] = (
    SignatureRule(
        path="test/utils.js",
        signature="export function sub",
        buggy="return a + b",
        fixed="return a - b",
    ),
)

_DECLARATION_STARTS = ("export ", "function ", "class ", "const ", "let ", "var ")


def rewrite_signature(content: str, rule: SignatureRule) -> Tuple[str, int]:
    """Return the rewritten content and the number of lines changed."""
    out: List[str] = []
    armed = False
    opened = False
    depth = 0
    hits = 0
    for line in content.splitlines(keepends=True):
        if not armed and rule.signature in line:
            armed, opened, depth = True, False, 0
        elif armed and line.lstrip().startswith(_DECLARATION_STARTS):
            armed = False
        if not armed:
            out.append(line)
            continue
        if rule.buggy in line:
            line = line.replace(rule.buggy, rule.fixed, 1)
            hits += 1
            armed = False
        else:
            # the body ends where its braces balance
            depth += line.count("{") - line.count("}")
            opened = opened or "{" in line
            if opened and depth <= 0:
                armed = False
        out.append(line)
    return "".join(out), hits


class HeuristicStrategy(PatchStrategy):
    """Fast path for known bug signatures. Silent no-change for anything else."""

    def __init__(self, rules: Optional[Iterable[SignatureRule]] = None):
        self.rules: Tuple[SignatureRule, ...] = tuple(rules) if rules is not None else DEFAULT_RULES

    @property
    def name(self) -> str:
        return "heuristic"

    def propose(self, context: RepairContext) -> PatchResult:
        ws = context.workspace
        changes: Dict[str, str] = {}
        for rule in self.rules:
            if not ws.exists(rule.path):
                raise ConfigurationError(f"Missing {rule.path}")
            if not rule.applies_to(context.issue):
                log_debug("Heuristic rule not relevant for issue", path=rule.path, signature=rule.signature)
                continue
            current = changes.get(rule.path, ws.read(rule.path))
            updated, hits = rewrite_signature(current, rule)
            if hits:
                log_info("[agent] Heuristic signature matched", path=rule.path, lines=hits)
                changes[rule.path] = updated
            else:
                log_info("[agent] Heuristic did not match; leaving file untouched",
                         path=rule.path, signature=rule.signature)
                log_debug("Heuristic target preview", path=rule.path, content=current[:800])
        return PatchResult(
            strategy=self.name,
            changes=tuple(FileChange(path=p, content=c) for p, c in changes.items()),
        )


# ---------------------------------------------------------------------------
# Strategy 2 – Model-backed repair
# ---------------------------------------------------------------------------


def build_snapshot(workspace: Workspace, globs: Sequence[str], max_chars: int) -> str:
    """Concatenate matching files in FILE-block form, stopping at ``max_chars``."""
    parts: List[str] = []
    used = 0
    omitted: List[str] = []
    seen = set()
    for pattern in globs:
        for rel in workspace.glob(pattern):
            if rel in seen:
                continue
            seen.add(rel)
            block = f"=== FILE: {rel} ===\n{workspace.read(rel).rstrip()}\n=== END ===\n"
            if used + len(block) > max_chars:
                omitted.append(rel)
                continue
            parts.append(block)
            used += len(block)
    if omitted:
        parts.append(f"[omitted for size: {', '.join(omitted)}]\n")
    return "\n".join(parts)


class ModelRepairStrategy(PatchStrategy):
    """Ask the language model for a fix and validate what comes back."""

    def __init__(self, context_globs: Sequence[str] = ("test/*.js", "package.json"),
                 max_context_chars: int = 60000, llm: Any = None):
        self.context_globs = tuple(context_globs)
        self.max_context_chars = max_context_chars
        self._llm = llm

    @property
    def name(self) -> str:
        return "model"

    def _get_llm(self):
        if self._llm is None:
            from mender.llm_factory import get_langchain_llm

            self._llm = get_langchain_llm()
        return self._llm

    def propose(self, context: RepairContext) -> PatchResult:
        chain = repair_prompt | self._get_llm()
        snapshot = build_snapshot(context.workspace, self.context_globs, self.max_context_chars)
        response = chain.invoke({
            "issue_number": context.issue.number,
            "issue_text": context.issue.text,
            "test_output": context.last_test_output or "<no test output>",
            "snapshot": snapshot,
        })
        raw = response.content if hasattr(response, "content") else str(response)
        log_debug("Model repair response", attempt=context.ordinal, content_preview=raw[:300])

        parsed = parse_model_output(raw)
        if isinstance(parsed, DiffBlock):
            return PatchResult(strategy=self.name, changes=apply_unified_diff(context.workspace, parsed.text))

        changes: Dict[str, str] = {}
        skipped: List[str] = []
        for block in parsed:
            try:
                known = context.workspace.exists(block.path)
            except ApplyError as e:
                log_warning("[agent] Skipping FILE block with invalid path", path=block.path, error=str(e))
                skipped.append(block.path)
                continue
            if not known:
                log_warning("[agent] Skipping FILE block for unknown path", path=block.path)
                skipped.append(block.path)
                continue
            changes[context.workspace.relative(context.workspace.resolve(block.path))] = block.content
        return PatchResult(
            strategy=self.name,
            changes=tuple(FileChange(path=p, content=c) for p, c in changes.items()),
            skipped=tuple(skipped),
        )
