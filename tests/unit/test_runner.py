"""Tests for external command execution."""

import pytest
from unittest.mock import patch, Mock

from mender.errors import CommandError
from mender.runner import CommandRunner


class TestCapture:
    def test_merges_stdout_and_stderr(self, tmp_path):
        result = CommandRunner(tmp_path).capture("echo out; echo err 1>&2; exit 3")

        assert result.ok is False
        assert result.returncode == 3
        assert "out" in result.output
        assert "err" in result.output

    def test_success(self, tmp_path):
        result = CommandRunner(tmp_path).capture(["echo", "hi"])

        assert result.ok is True
        assert result.output.strip() == "hi"

    def test_runs_in_workspace_root(self, tmp_path):
        (tmp_path / "marker.txt").write_text("x")

        result = CommandRunner(tmp_path).capture("ls")

        assert "marker.txt" in result.output


class TestRun:
    def test_raises_on_failure(self, tmp_path):
        with pytest.raises(CommandError) as exc:
            CommandRunner(tmp_path).run(["sh", "-c", "exit 4"])

        assert exc.value.returncode == 4
        assert exc.value.command == "sh -c exit 4"

    @patch("mender.runner.subprocess.run")
    def test_argument_lists_are_not_shell_parsed(self, mock_run, tmp_path):
        mock_run.return_value = Mock(returncode=0)

        CommandRunner(tmp_path).run(["git", "commit", "-m", "Agent: fix; rm -rf /"])

        args, kwargs = mock_run.call_args
        assert args[0] == ["git", "commit", "-m", "Agent: fix; rm -rf /"]
        assert kwargs["shell"] is False
        assert kwargs["cwd"] == str(tmp_path)
