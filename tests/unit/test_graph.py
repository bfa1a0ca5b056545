"""Tests for the repair graph wiring."""

import pytest
from unittest.mock import MagicMock

from conftest import FakeRunner, FIXED_UTILS, failing, passing
from mender.errors import RepairExhaustedError
from mender.graph import build_graph, build_initial_state
from mender.models import RunOutcome
from mender.run_config import RunConfig


def run(state):
    return build_graph().invoke(state, {"recursion_limit": 50})


@pytest.fixture
def run_config():
    return RunConfig(repo="acme/widgets", sync_workspace=False, model_attempts=0)


class TestGraphStructure:
    def test_graph_nodes(self):
        graph = build_graph()
        nodes = set(graph.get_graph().nodes)

        for name in ("fetch_issue", "prepare_workspace", "scaffold_tests", "attempt_fix",
                     "publish", "exhausted", "finish"):
            assert name in nodes


class TestNoIssue:
    def test_no_labeled_issue_finishes_cleanly(self, workspace, mock_github, run_config):
        mock_github.list_labeled_issues.return_value = []
        runner = FakeRunner()

        result = run(build_initial_state(run_config, workspace=workspace, runner=runner, github=mock_github))

        assert result["outcome"] == RunOutcome.NO_ISSUES_FOUND
        assert result["finished"] is True
        assert runner.calls == []
        mock_github.get_issue.assert_not_called()
        assert not workspace.exists("test/utils.test.js")


class TestHappyPath:
    def test_heuristic_fix_is_published(self, workspace, mock_github, run_config):
        runner = FakeRunner(test_results=[passing()])

        result = run(build_initial_state(run_config, workspace=workspace, runner=runner, github=mock_github))

        assert result["outcome"] == RunOutcome.SUCCEEDED
        assert result["scaffolded"] == ["test/utils.test.js"]
        assert workspace.read("test/utils.js") == FIXED_UTILS
        assert runner.commands("git checkout -B") == ["git checkout -B agent/issue-7"]
        assert runner.commands("git push") == ["git push --force-with-lease -u origin agent/issue-7"]
        kwargs = mock_github.create_pull_request.call_args.kwargs
        assert kwargs["title"] == "Agent: sub returns the wrong result"
        assert kwargs["base"] == "main"
        assert "#7" in kwargs["body"]
        assert "Added tests first: test/utils.test.js" in kwargs["body"]
        mock_github.add_labels.assert_called_once_with(42, ["agent", "auto-fix"])
        assert result["pr_url"] == "https://github.com/acme/widgets/pull/42"

    def test_explicit_issue_skips_label_scan(self, workspace, mock_github):
        rc = RunConfig(repo="acme/widgets", issue_number="7", sync_workspace=False, model_attempts=0)

        run(build_initial_state(rc, workspace=workspace, runner=FakeRunner(test_results=[passing()]),
                                github=mock_github))

        mock_github.list_labeled_issues.assert_not_called()
        mock_github.get_issue.assert_called_once_with("7")

    def test_sync_runs_before_scaffolding(self, workspace, mock_github):
        rc = RunConfig(repo="acme/widgets", model_attempts=0)
        runner = FakeRunner(test_results=[passing()])

        run(build_initial_state(rc, workspace=workspace, runner=runner, github=mock_github))

        assert runner.calls[:5] == [
            "git fetch origin",
            "git checkout main",
            "git pull",
            "git config user.name github-actions[bot]",
            "git config user.email github-actions[bot]@users.noreply.github.com",
        ]


class TestPublishIdempotence:
    def test_existing_pr_skips_creation(self, workspace, mock_github, run_config):
        mock_github.find_existing_pr.return_value = {"number": 5, "html_url": "https://github.com/acme/widgets/pull/5"}

        result = run(build_initial_state(run_config, workspace=workspace,
                                         runner=FakeRunner(test_results=[passing()]), github=mock_github))

        mock_github.create_pull_request.assert_not_called()
        mock_github.add_labels.assert_not_called()
        assert result["pr_created"] is False
        assert result["pr_url"] == "https://github.com/acme/widgets/pull/5"
        mock_github.find_existing_pr.assert_called_once_with("agent/issue-7")


class TestExhausted:
    def test_exhaustion_publishes_nothing(self, workspace, mock_github, run_config):
        runner = FakeRunner(test_results=[failing()])

        with pytest.raises(RepairExhaustedError) as exc:
            run(build_initial_state(run_config, workspace=workspace, runner=runner, github=mock_github))

        assert len(exc.value.attempts) == 1
        assert runner.commands("git push") == []
        assert runner.commands("git commit") == []
        mock_github.find_existing_pr.assert_not_called()
        mock_github.create_pull_request.assert_not_called()


class TestFinish:
    @pytest.mark.parametrize("outcome", [RunOutcome.SUCCEEDED, RunOutcome.NO_ISSUES_FOUND])
    def test_finish_logs_outcome_and_message(self, outcome):
        from mender.nodes import finish

        result = finish({"outcome": outcome, "issue": None, "message": "PR: https://x/pull/1"})

        assert result["finished"] is True
        assert result["message"] == "PR: https://x/pull/1"
