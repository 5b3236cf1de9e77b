"""Exceptions raised by the plugin runtime.

Every fatal condition of a run surfaces as a :class:`PluginError` subclass
whose message names the failing step.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..common.command_runner import CommandResult
    from .sequencer import CommandStep


class PluginError(RuntimeError):
    """Base class for fatal plugin failures."""


class ConfigurationError(PluginError):
    """Plugin settings could not be loaded or validated."""


class SetupError(PluginError):
    """Preparing the rootless environment or writing credential files failed."""


class AuthenticationError(PluginError):
    """Registry login failed."""


class CommandError(PluginError):
    """A fatal step of the command sequence failed."""

    def __init__(self, step: "CommandStep", result: Optional["CommandResult"] = None) -> None:
        self.step = step
        self.result = result
        reason = result.describe_failure() if result else "unknown error"
        super().__init__(f"error running {step.name}: {reason}")
