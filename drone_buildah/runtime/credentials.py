"""Registry authentication: auth.json materialization and `login`."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from ..common.command_runner import format_command
from ..common.models import Login, DEFAULT_EXECUTABLE
from .commands import command_login
from .environment import BuildEnvironment
from .errors import AuthenticationError, SetupError
from .sequencer import CommandSequencer, CommandStep, Runner

logger = logging.getLogger(__name__)

AUTH_FILE_NAME = "auth.json"
AUTH_FILE_VARIABLE = "REGISTRY_AUTH_FILE"
MASK = "******"


def write_auth_config(login: Login, environment: BuildEnvironment) -> Optional[Path]:
    """
    Write the raw auth config to ``auth.json`` and point the build tool at it.

    Returns:
        Path of the written file, or None when no auth config was supplied.

    Raises:
        SetupError: When the file cannot be written.
    """
    if not login.config:
        return None

    auth_path = environment.config_dir / AUTH_FILE_NAME
    try:
        fd = os.open(auth_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(login.config)
        auth_path.chmod(0o600)
    except OSError as exc:
        raise SetupError(f"error writing {AUTH_FILE_NAME}: {exc}") from exc

    environment.set(AUTH_FILE_VARIABLE, str(auth_path))
    logger.info("Config written to %s", auth_path)
    return auth_path


def masked_login_command(login: Login, executable: str = DEFAULT_EXECUTABLE) -> str:
    """Render the login command for tracing with the password hidden."""
    command = command_login(login, executable)
    password_index = command.index("-p") + 1
    command[password_index] = MASK
    return format_command(command)


def registry_login(
    login: Login,
    runner: Runner,
    environment: BuildEnvironment,
    executable: str = DEFAULT_EXECUTABLE,
) -> bool:
    """
    Log into the registry when a password is configured.

    Returns:
        True when a login was performed.

    Raises:
        AuthenticationError: When the login command fails.
    """
    if not login.password:
        return False

    step = CommandStep(
        "login",
        command_login(login, executable),
        display=masked_login_command(login, executable),
    )
    result = CommandSequencer(runner, env=environment.variables).run_step(step)
    if not result.succeeded():
        raise AuthenticationError(f"error authenticating: {result.describe_failure()}")
    return True


def describe_credentials(login: Login) -> str:
    if login.password:
        return "Detected registry credentials"
    if login.config:
        return "Detected registry credentials file"
    return "Registry credentials or Docker config not provided. Guest mode enabled."
