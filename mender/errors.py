"""Exception hierarchy for the mender agent."""
from typing import Optional, Sequence


class MenderError(Exception):
    """Base class for all agent errors."""


class ConfigurationError(MenderError):
    """A required credential, setting or file is missing. Never retried."""


class ParseError(MenderError):
    """Model output matched neither accepted shape."""

    def __init__(self, message: str, raw_response: str = ""):
        super().__init__(message)
        self.raw_response = raw_response


class ApplyError(MenderError):
    """A parsed patch could not be applied to the workspace."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ScaffoldError(MenderError):
    """A required test file could not be produced."""

    def __init__(self, message: str, raw_response: str = ""):
        super().__init__(message)
        self.raw_response = raw_response


class CommandError(MenderError):
    """A state-changing external command exited non-zero."""

    def __init__(self, command: Sequence[str], returncode: int, output: str = ""):
        cmd = " ".join(command) if not isinstance(command, str) else command
        super().__init__(f"Command failed ({returncode}): {cmd}")
        self.command = cmd
        self.returncode = returncode
        self.output = output


class RepairExhaustedError(MenderError):
    """Every repair slot ran and the tests still fail."""

    def __init__(self, attempts):
        self.attempts = list(attempts)
        last = self.attempts[-1] if self.attempts else None
        tail = ""
        if last is not None:
            tail = f"; last strategy {last.strategy}"
        super().__init__(f"Repair budget exhausted after {len(self.attempts)} attempt(s){tail}")

    @property
    def last_test_output(self) -> str:
        for attempt in reversed(self.attempts):
            if attempt.test_output:
                return attempt.test_output
        return ""
