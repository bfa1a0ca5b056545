"""Nodes subpackage (issue fetch, workspace prep, scaffolding, repair, publish)."""

from .fetch import fetch_issue
from .prepare import prepare_workspace, scaffold_tests
from .repair import attempt_fix, mark_exhausted, route_after_attempt
from .publish import finish, publish

__all__ = [
    "fetch_issue",
    "prepare_workspace",
    "scaffold_tests",
    "attempt_fix",
    "mark_exhausted",
    "route_after_attempt",
    "publish",
    "finish",
]
