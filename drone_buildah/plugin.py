"""Rootless image build driver for one plugin invocation."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Mapping, Optional

from .common.command_runner import CommandRunner
from .common.models import Plugin
from .runtime.commands import inject_env_build_args
from .runtime.credentials import describe_credentials, registry_login, write_auth_config
from .runtime.environment import BuildEnvironment, prepare_environment
from .runtime.sequencer import CommandSequencer, SequenceResult, plan_steps
from .utils.repository_utils import discover_remote_url


class BuildahPlugin:
    """Prepare a rootless environment, authenticate, then build, tag and push an image."""

    def __init__(
        self,
        config: Plugin,
        command_runner: Optional[CommandRunner] = None,
        environ: Optional[Mapping[str, str]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.command_runner = command_runner or CommandRunner()
        self.environ = os.environ if environ is None else environ
        self.logger = logger or logging.getLogger(__name__)

    def exec(self, now: Optional[datetime] = None) -> SequenceResult:
        """
        Run the whole plugin step.

        Args:
            now: Timestamp for the ``created`` auto-label (defaults to the current time).

        Returns:
            Results of every executed command.

        Raises:
            PluginError: On any fatal setup, login or command failure.
        """
        environment = prepare_environment(self.config.resolved_config_dir())
        self.authenticate(environment)

        build = self.config.build
        if build.auto_label and not build.remote:
            build.remote = discover_remote_url(build.context) or ""

        inject_env_build_args(build, self.environ)

        steps = plan_steps(
            build,
            executable=self.config.executable,
            skip_push=self.config.skip_push,
            cleanup=self.config.cleanup,
            now=now,
        )
        self.logger.debug("Planned %d commands", len(steps))

        sequencer = CommandSequencer(self.command_runner, env=environment.variables, logger=self.logger)
        return sequencer.run(steps)

    def authenticate(self, environment: BuildEnvironment) -> None:
        login = self.config.login
        write_auth_config(login, environment)
        registry_login(login, self.command_runner, environment, self.config.executable)
        self.logger.info("%s", describe_credentials(login))
