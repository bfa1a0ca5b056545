"""External command execution.

Two modes are offered:

- ``run``: output streams to the console; a non-zero exit raises
  ``CommandError``. Used for state-changing commands (git).
- ``capture``: stdout and stderr are merged into one text and returned along
  with the success flag. Never raises on exit status. Used for test runs.

Every command runs with the workspace root as its working directory.
"""
from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Union

from mender.errors import CommandError
from mender.utils.logger import log_debug, log_info

Command = Union[str, Sequence[str]]


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    returncode: int
    output: str


class CommandRunner:
    """Runs commands inside one working directory."""

    def __init__(self, cwd: Union[str, Path]):
        self.cwd = Path(cwd)

    @staticmethod
    def _shell(cmd: Command) -> bool:
        return isinstance(cmd, str)

    @staticmethod
    def _display(cmd: Command) -> str:
        return cmd if isinstance(cmd, str) else " ".join(cmd)

    def run(self, cmd: Command) -> None:
        """Run a command inheriting stdout/stderr; raise on failure."""
        log_info(f"[agent] $ {self._display(cmd)}")
        completed = subprocess.run(
            cmd if self._shell(cmd) else list(cmd),
            cwd=str(self.cwd),
            shell=self._shell(cmd),
        )
        if completed.returncode != 0:
            raise CommandError(cmd, completed.returncode)

    def capture(self, cmd: Command) -> CommandResult:
        """Run a command, capture merged output, report success."""
        log_debug("Capturing command", command=self._display(cmd), cwd=str(self.cwd))
        completed = subprocess.run(
            cmd if self._shell(cmd) else list(cmd),
            cwd=str(self.cwd),
            shell=self._shell(cmd),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
        return CommandResult(
            ok=completed.returncode == 0,
            returncode=completed.returncode,
            output=completed.stdout or "",
        )
