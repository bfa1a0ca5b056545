"""Tests-first scaffolding.

Before any repair attempt, every source unit matched by the source glob must
have a test file. Missing tests come from a fixed template registered for
that source path or, when allowed, from the language model. Existing test
files are never overwritten.
"""
from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Callable, Dict, List, Optional

from mender.errors import ScaffoldError
from mender.models import Issue
from mender.repair.prompts import scaffold_messages
from mender.utils.logger import log_info, log_warning
from mender.workspace import Workspace

UTILS_TEST_TEMPLATE = """import test from "node:test";
import assert from "node:assert/strict";
import { add, sub } from "./utils.js";

test("add works", () => {
  assert.equal(add(5, 2), 7);
});

test("sub works", () => {
  assert.equal(sub(5, 2), 3);
  assert.equal(sub(2, 5), -3);
});
"""

DEFAULT_TEMPLATES: Dict[str, str] = {
    "test/utils.js": UTILS_TEST_TEMPLATE,
}

_FENCE = re.compile(r"```[^\n]*\n(.*?)```", re.DOTALL)


def extract_code(raw: str) -> str:
    """First fenced code block if present, else the whole response."""
    m = _FENCE.search(raw or "")
    code = m.group(1) if m else (raw or "")
    return code.strip()


class TestScaffolder:
    """Writes the missing test file for each source unit."""

    __test__ = False  # keep pytest from collecting this class

    def __init__(
        self,
        workspace: Workspace,
        source_glob: str = "test/*.js",
        test_suffix: str = ".test",
        test_template: str = "{parent}/{stem}.test{suffix}",
        mode: str = "auto",
        templates: Optional[Dict[str, str]] = None,
        complete: Optional[Callable[[List[Dict[str, str]]], str]] = None,
    ):
        self.workspace = workspace
        self.source_glob = source_glob
        self.test_suffix = test_suffix
        self.test_template = test_template
        self.mode = mode
        self.templates = dict(DEFAULT_TEMPLATES if templates is None else templates)
        self._complete = complete

    @classmethod
    def from_run_config(cls, workspace: Workspace, run_config, **kwargs) -> TestScaffolder:
        return cls(
            workspace,
            source_glob=run_config.scaffold_source_glob,
            test_suffix=run_config.scaffold_test_suffix,
            test_template=run_config.scaffold_test_template,
            mode=run_config.scaffold_mode,
            **kwargs,
        )

    def _is_test(self, rel_path: str) -> bool:
        return PurePosixPath(rel_path).stem.endswith(self.test_suffix)

    def source_units(self) -> List[str]:
        return [p for p in self.workspace.glob(self.source_glob) if not self._is_test(p)]

    def test_path_for(self, source_path: str) -> str:
        p = PurePosixPath(source_path)
        path = self.test_template.format(parent=p.parent.as_posix(), stem=p.stem, suffix=p.suffix)
        return str(PurePosixPath(path))

    def _generate(self, source_path: str, test_path: str, issue: Optional[Issue]) -> str:
        if self._complete is None:
            from mender.llm_factory import chat_completion

            self._complete = chat_completion
        messages = scaffold_messages(
            source_path,
            self.workspace.read(source_path),
            test_path,
            issue.text if issue else "",
        )
        raw = self._complete(messages)
        code = extract_code(raw)
        if not code:
            raise ScaffoldError(f"Model returned no test code for {source_path}", raw_response=raw or "")
        return code + "\n"

    def content_for(self, source_path: str, test_path: str, issue: Optional[Issue]) -> str:
        template = self.templates.get(source_path)
        if template is not None and self.mode in ("auto", "template"):
            return template
        if self.mode == "template":
            raise ScaffoldError(f"No test template registered for {source_path}")
        return self._generate(source_path, test_path, issue)

    def ensure_tests(self, issue: Optional[Issue] = None) -> List[str]:
        """Create every missing test file. Returns the paths written (empty when all exist)."""
        created: List[str] = []
        units = self.source_units()
        if not units:
            log_warning("[agent] No source units matched", glob=self.source_glob)
        for source in units:
            test_path = self.test_path_for(source)
            if self.workspace.exists(test_path):
                log_info("[agent] Tests already exist.", test=test_path)
                continue
            log_info("[agent] Creating tests first...", source=source, test=test_path)
            self.workspace.write(test_path, self.content_for(source, test_path, issue))
            created.append(test_path)
        return created
