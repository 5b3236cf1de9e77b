from __future__ import annotations

import logging
import os
import subprocess
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Mapping, Optional, Sequence


@dataclass(slots=True)
class CommandResult:
    """Represents the outcome of an external command execution."""

    command: Sequence[str]
    return_code: Optional[int]
    duration: float
    tool_available: bool
    exception: Optional[BaseException] = None

    def succeeded(self) -> bool:
        """Return True when the command finished successfully."""
        return self.return_code == 0 and self.tool_available

    def describe_failure(self) -> str:
        """Return a short human readable reason for a failed command."""
        if not self.tool_available:
            return f"executable file not found: {self.command[0]}"
        if self.return_code is None:
            return str(self.exception) if self.exception else "unknown error"
        return f"exit status {self.return_code}"


def format_command(command: Sequence[str]) -> str:
    """Render an argument vector the way it is echoed before execution."""
    return " ".join(command)


class CommandRunner:
    """Thin wrapper over subprocess that streams output and records execution metadata.

    Output of the child process goes straight to this process' stdout/stderr.
    ``env`` passed to :meth:`run` is layered on top of the current process
    environment instead of replacing it.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        trace_stream: Optional[IO[str]] = None,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.trace_stream = trace_stream

    def trace(self, command: Sequence[str], display: Optional[str] = None) -> None:
        """Echo the command to stdout before it runs."""
        stream = self.trace_stream or sys.stdout
        stream.write(f"+ {display or format_command(command)}\n")
        stream.flush()

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        """Execute a command to completion and capture exit status, timings, and failures."""
        start = time.time()
        merged_env = {**os.environ, **env} if env else None
        try:
            self.logger.debug("Executing command: %s (cwd=%s)", command[0], cwd)
            completed = subprocess.run(
                list(command),
                cwd=str(cwd) if cwd else None,
                env=merged_env,
            )
            duration = time.time() - start
            return CommandResult(
                command=command,
                return_code=completed.returncode,
                duration=duration,
                tool_available=True,
            )
        except FileNotFoundError as exc:
            duration = time.time() - start
            self.logger.error("Command not found: %s", command[0])
            return CommandResult(
                command=command,
                return_code=None,
                duration=duration,
                tool_available=False,
                exception=exc,
            )
        except OSError as exc:
            duration = time.time() - start
            self.logger.error("Command execution failed: %s", exc)
            return CommandResult(
                command=command,
                return_code=None,
                duration=duration,
                tool_available=True,
                exception=exc,
            )
