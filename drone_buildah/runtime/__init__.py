"""Runtime helpers for preparing and running rootless image builds."""

from .environment import BuildEnvironment, prepare_environment
from .credentials import describe_credentials, registry_login, write_auth_config
from .commands import build_arguments, inject_env_build_args
from .sequencer import CommandSequencer, CommandStep, SequenceResult, StepPolicy, plan_steps
from .errors import AuthenticationError, CommandError, ConfigurationError, PluginError, SetupError

__all__ = [
    "BuildEnvironment",
    "prepare_environment",
    "describe_credentials",
    "registry_login",
    "write_auth_config",
    "build_arguments",
    "inject_env_build_args",
    "CommandSequencer",
    "CommandStep",
    "SequenceResult",
    "StepPolicy",
    "plan_steps",
    "AuthenticationError",
    "CommandError",
    "ConfigurationError",
    "PluginError",
    "SetupError",
]
