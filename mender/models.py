"""Value types shared by the issue source, strategies, repair loop and publish step."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class Issue:
    number: str
    title: str
    body: str = ""

    @property
    def text(self) -> str:
        """Title and body as one block, used for keyword checks and prompts."""
        return f"{self.title}\n{self.body}".strip()


@dataclass(frozen=True)
class FileChange:
    path: str
    content: str


@dataclass(frozen=True)
class PatchResult:
    """Validated outcome of one strategy: every entry is a final file state."""

    strategy: str
    changes: Tuple[FileChange, ...] = ()
    skipped: Tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.changes)

    @property
    def paths(self) -> Tuple[str, ...]:
        return tuple(c.path for c in self.changes)


@dataclass(frozen=True)
class Attempt:
    ordinal: int
    strategy: str
    changes: Dict[str, str] = field(default_factory=dict)
    passed: bool = False
    test_output: Optional[str] = None
    error: Optional[str] = None

    def summary(self) -> Dict[str, object]:
        return {
            "ordinal": self.ordinal,
            "strategy": self.strategy,
            "passed": self.passed,
            "files": sorted(self.changes),
            "error": self.error,
        }


class RunOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    NO_ISSUES_FOUND = "no_issues_found"
    FAILED = "failed"
