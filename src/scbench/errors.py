"""Exception hierarchy for the benchmark orchestrator.

Configuration and install errors abort a whole invocation. Environment,
execution and validation errors are captured per runtime by the runner.
"""

from __future__ import annotations

from typing import Any


class BenchError(Exception):
    """Base exception for all scbench errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ConfigurationError(BenchError):
    """Invalid or missing request fields, or a malformed config file."""


class RuntimeUnavailableError(BenchError):
    """The runtime binary is missing or fails its version check."""

    def __init__(self, runtime: str, reason: str = "not available") -> None:
        super().__init__(f"Runtime {runtime} is {reason}", {"runtime": runtime})
        self.runtime = runtime


class InstallError(BenchError):
    """The workspace dependency install step exited non-zero."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message, {"returncode": returncode})
        self.returncode = returncode
        self.stderr = stderr


class HarnessError(BenchError):
    """The harness subprocess failed or produced unusable output.

    Attributes:
        command: Argument list that was executed.
        returncode: Exit status, or None if the process was killed.
        stderr: Captured standard error.
        stdout: Captured standard output.
    """

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        returncode: int | None = None,
        stderr: str = "",
        stdout: str = "",
    ) -> None:
        super().__init__(message, {"command": command, "returncode": returncode})
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout


class ResultValidationError(BenchError):
    """A result record (or harness output) does not match the schema."""
