from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Protocol, Sequence

from ..common.command_runner import CommandResult
from ..common.models import Build, DEFAULT_EXECUTABLE
from . import commands
from .errors import CommandError


class StepPolicy(Enum):
    """How a failed step affects the rest of the sequence."""
    FATAL = "fatal"
    TOLERANT = "tolerant"


@dataclass(slots=True)
class CommandStep:
    """One external command together with its failure policy."""

    name: str
    command: List[str]
    policy: StepPolicy = StepPolicy.FATAL
    failure_message: Optional[str] = None
    display: Optional[str] = None

    @property
    def tolerant(self) -> bool:
        return self.policy is StepPolicy.TOLERANT


@dataclass(slots=True)
class SequenceResult:
    """Outcome of running a command sequence to completion."""

    results: List[CommandResult] = field(default_factory=list)
    tolerated_failures: List[CommandStep] = field(default_factory=list)


class Runner(Protocol):
    """Protocol implemented by command runners used by the sequencer."""

    def trace(self, command: Sequence[str], display: Optional[str] = None) -> None:
        ...

    def run(self, command: Sequence[str], *, env: Optional[Dict[str, str]] = None) -> CommandResult:
        ...


def plan_steps(
    build: Build,
    *,
    executable: str = DEFAULT_EXECUTABLE,
    skip_push: bool = False,
    cleanup: bool = False,
    now: Optional[datetime] = None,
) -> List[CommandStep]:
    """
    Return the ordered steps of a plugin run.

    version, info, one pull per cache-from image, the build, then tag (and
    push unless ``skip_push``) per tag, and finally rmi when ``cleanup`` is set.
    Pull and rmi failures are tolerated; everything else aborts the run.
    """
    steps = [
        CommandStep("version", commands.command_version(executable)),
        CommandStep("info", commands.command_info(executable)),
    ]

    for image in build.cache_from:
        steps.append(
            CommandStep(
                "pull",
                commands.command_pull(image, executable),
                policy=StepPolicy.TOLERANT,
                failure_message=f"Could not pull cache-from image {image}. Ignoring...",
            )
        )

    steps.append(CommandStep("build", commands.command_build(build, executable, now=now)))

    for tag in build.tags:
        steps.append(CommandStep("tag", commands.command_tag(build, tag, executable)))
        if not skip_push:
            steps.append(CommandStep("push", commands.command_push(build, tag, executable)))

    if cleanup:
        steps.append(
            CommandStep(
                "rmi",
                commands.command_rmi(build.name, executable),
                policy=StepPolicy.TOLERANT,
                failure_message=f"Could not remove image {build.name}. Ignoring...",
            )
        )

    return steps


class CommandSequencer:
    """Run command steps one after another, stopping at the first fatal failure."""

    def __init__(
        self,
        runner: Runner,
        env: Optional[Dict[str, str]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.runner = runner
        self.env = dict(env or {})
        self.logger = logger or logging.getLogger(__name__)

    def run_step(self, step: CommandStep) -> CommandResult:
        self.runner.trace(step.command, display=step.display)
        return self.runner.run(step.command, env=self.env)

    def run(self, steps: Sequence[CommandStep]) -> SequenceResult:
        """
        Execute ``steps`` in order.

        Raises:
            CommandError: When a fatal step fails. Already executed steps are not rolled back.
        """
        outcome = SequenceResult()

        for step in steps:
            result = self.run_step(step)
            outcome.results.append(result)
            if result.succeeded():
                continue

            if step.tolerant:
                self.logger.warning("%s", step.failure_message or f"Step {step.name} failed. Ignoring...")
                outcome.tolerated_failures.append(step)
                continue

            self.logger.debug("Stopping sequence after failed step %s", step.name)
            raise CommandError(step, result)

        return outcome
