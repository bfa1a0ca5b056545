"""Tests for the command-line entry point and its exit codes."""

import pytest
from unittest.mock import patch

import main
from mender.errors import ConfigurationError, RepairExhaustedError
from mender.models import Attempt, RunOutcome


class TestExitCodes:
    @patch("main.run_once")
    def test_success(self, mock_run):
        mock_run.return_value = {"outcome": RunOutcome.SUCCEEDED, "message": "PR: u"}

        assert main.main([]) == 0

    @patch("main.run_once")
    def test_no_issue_is_success(self, mock_run):
        mock_run.return_value = {"outcome": RunOutcome.NO_ISSUES_FOUND, "message": "none"}

        assert main.main(["--label", "bot"]) == 0

    @patch("main.run_once")
    def test_exhausted(self, mock_run, capsys):
        mock_run.side_effect = RepairExhaustedError([
            Attempt(1, "heuristic", test_output="boom"),
            Attempt(2, "model", error="Response contains neither a diff block nor FILE blocks"),
        ])

        assert main.main([]) == 1
        err = capsys.readouterr().err
        assert "attempt 2 [model]" in err
        assert "boom" in err

    @patch("main.run_once")
    def test_configuration_error_during_run(self, mock_run):
        mock_run.side_effect = ConfigurationError("Missing test/utils.js")

        assert main.main([]) == 2

    @patch("main.run_once")
    def test_validation_failure(self, mock_run, monkeypatch):
        from mender.config import reload_config

        monkeypatch.setenv("GITHUB_TOKEN", "")
        reload_config()

        assert main.main([]) == 2
        mock_run.assert_not_called()


class TestArguments:
    @patch("main.run_once")
    def test_flags_reach_run_config(self, mock_run, monkeypatch):
        mock_run.return_value = {"outcome": RunOutcome.SUCCEEDED, "message": "ok"}

        main.main(["--issue", "9", "--repo", "octo/cat", "--no-sync", "--draft",
                   "--test-command", "make test", "--workdir", "/tmp/x"])

        rc = mock_run.call_args.args[0]
        assert rc.issue_number == "9"
        assert rc.repo == "octo/cat"
        assert rc.sync_workspace is False
        assert rc.pr_draft is True
        assert rc.test_command == "make test"
        assert mock_run.call_args.kwargs["workdir"] == "/tmp/x"
