"""Pytest configuration and fixtures for mender-agent tests."""

import os
import pytest
from typing import Dict, List, Optional
from unittest.mock import MagicMock

# Add the project root to the Python path
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from mender.config import reload_config  # noqa: E402
from mender.models import Issue  # noqa: E402
from mender.runner import CommandResult  # noqa: E402
from mender.workspace import Workspace  # noqa: E402

BUGGY_UTILS = """export function add(a, b) {
  return a + b;
}

export function sub(a, b) {
  return a + b;
}
"""

FIXED_UTILS = """export function add(a, b) {
  return a + b;
}

export function sub(a, b) {
  return a - b;
}
"""

FAILING_TEST_OUTPUT = """✖ sub works
  AssertionError [ERR_ASSERTION]: Expected values to be strictly equal:
  7 !== 3
"""

TEST_ENV = {
    "GITHUB_TOKEN": "test-github-token",
    "REPO": "acme/widgets",
    "OPENAI_API_KEY": "test-openai-key",
    "AUDIT_ENABLED": "false",
}

CLEARED_ENV = (
    "GITHUB_REPOSITORY",
    "ISSUE_NUMBER",
    "TRIGGER_LABEL",
    "DEFAULT_BRANCH",
    "BRANCH_PREFIX",
    "TEST_COMMAND",
    "MODEL_REPAIR_ENABLED",
    "MODEL_REPAIR_ATTEMPTS",
    "HEURISTIC_RULES_JSON",
    "SCAFFOLD_MODE",
    "PR_DRAFT",
    "PR_LABELS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Give every test a known configuration with auditing off."""
    for key in CLEARED_ENV:
        monkeypatch.delenv(key, raising=False)
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    config = reload_config()
    yield config
    monkeypatch.undo()
    reload_config()


class FakeRunner:
    """Records commands; returns scripted results for test runs."""

    def __init__(self, test_results: Optional[List[CommandResult]] = None,
                 captures: Optional[Dict[str, CommandResult]] = None,
                 failing: Optional[List[str]] = None,
                 test_command: str = "npm test"):
        self.calls: List[str] = []
        self.test_results = list(test_results or [])
        self.captures = dict(captures or {})
        self.failing = list(failing or [])
        self.test_command = test_command

    @staticmethod
    def _text(cmd) -> str:
        return cmd if isinstance(cmd, str) else " ".join(cmd)

    def run(self, cmd) -> None:
        from mender.errors import CommandError

        text = self._text(cmd)
        self.calls.append(text)
        if text in self.failing:
            raise CommandError(cmd, 1)

    def capture(self, cmd) -> CommandResult:
        text = self._text(cmd)
        self.calls.append(text)
        if text == self.test_command:
            if not self.test_results:
                raise AssertionError("Unexpected extra test run")
            return self.test_results.pop(0)
        if text in self.captures:
            return self.captures[text]
        if text == "git diff --cached --name-only":
            return CommandResult(ok=True, returncode=0, output="test/utils.js\n")
        return CommandResult(ok=True, returncode=0, output="")

    @property
    def test_runs(self) -> int:
        return self.calls.count(self.test_command)

    def commands(self, prefix: str) -> List[str]:
        return [c for c in self.calls if c.startswith(prefix)]


def passing() -> CommandResult:
    return CommandResult(ok=True, returncode=0, output="✔ add works\n✔ sub works\n")


def failing(output: str = FAILING_TEST_OUTPUT) -> CommandResult:
    return CommandResult(ok=False, returncode=1, output=output)


@pytest.fixture
def repo_dir(tmp_path):
    """A minimal Node project with the classic buggy ``sub``."""
    (tmp_path / "test").mkdir()
    (tmp_path / "test" / "utils.js").write_text(BUGGY_UTILS, encoding="utf-8")
    (tmp_path / "package.json").write_text(
        '{\n  "name": "widgets",\n  "type": "module",\n  "scripts": {"test": "node --test"}\n}\n',
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture
def workspace(repo_dir):
    return Workspace(repo_dir)


@pytest.fixture
def sample_issue():
    return Issue(number="7", title="sub returns the wrong result",
                 body="sub(5, 2) should be 3 but returns 7.")


@pytest.fixture
def unrelated_issue():
    return Issue(number="12", title="Arithmetic helpers misbehave",
                 body="Something about our math helpers looks off in production.")


@pytest.fixture
def mock_github(sample_issue):
    """GitHub client double with no existing PRs."""
    github = MagicMock()
    github.repo = "acme/widgets"
    github.owner = "acme"
    github.get_issue.return_value = sample_issue
    github.list_labeled_issues.return_value = [sample_issue.number]
    github.find_existing_pr.return_value = None
    github.create_pull_request.return_value = {
        "number": 42,
        "html_url": "https://github.com/acme/widgets/pull/42",
    }
    github.add_labels.return_value = True
    return github
