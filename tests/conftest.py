"""Shared fixtures for plugin tests."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pytest

from drone_buildah.common.command_runner import CommandResult


class FakeRunner:
    """Records commands instead of spawning them.

    ``failures`` maps a subcommand (e.g. ``"pull"``) to the exit code it returns.
    """

    def __init__(self, failures: Optional[Dict[str, int]] = None) -> None:
        self.failures = dict(failures or {})
        self.commands: List[List[str]] = []
        self.traces: List[str] = []
        self.envs: List[Dict[str, str]] = []

    def trace(self, command: Sequence[str], display: Optional[str] = None) -> None:
        self.traces.append(display or " ".join(command))

    def run(self, command: Sequence[str], *, env: Optional[Dict[str, str]] = None) -> CommandResult:
        self.commands.append(list(command))
        self.envs.append(dict(env or {}))
        return_code = self.failures.get(subcommand(command), 0)
        return CommandResult(command=command, return_code=return_code, duration=0.0, tool_available=True)

    def subcommands(self) -> List[str]:
        return [subcommand(command) for command in self.commands]


def subcommand(command: Sequence[str]) -> str:
    """Return the first non-flag token after the executable, skipping flag values."""
    tokens = list(command[1:])
    while tokens and tokens[0].startswith("--"):
        tokens = tokens[2:]
    return tokens[0] if tokens else ""


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()
