"""Rootless storage configuration for the build tool."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from ..common.models import default_config_dir
from .errors import SetupError

logger = logging.getLogger(__name__)

STORAGE_DRIVER = "vfs"
ISOLATION = "rootless"
STORAGE_CONF_NAME = "storage.conf"

STORAGE_CONF_TEMPLATE = """[storage]
driver = "{driver}"
runroot = "/tmp/buildah-run-{uid}"
graphroot = "/tmp/buildah-graph-{uid}"
"""


@dataclass(slots=True)
class BuildEnvironment:
    """Environment variables and files every spawned build command relies on."""

    config_dir: Path
    storage_conf_path: Path
    variables: Dict[str, str] = field(default_factory=dict)

    def set(self, key: str, value: str) -> None:
        self.variables[key] = value


def render_storage_conf(uid: int) -> str:
    return STORAGE_CONF_TEMPLATE.format(driver=STORAGE_DRIVER, uid=uid)


def prepare_environment(config_dir: Optional[Path] = None, uid: Optional[int] = None) -> BuildEnvironment:
    """
    Write storage.conf for unprivileged builds and return the matching environment.

    The current process environment is left untouched; callers hand
    ``BuildEnvironment.variables`` to the command runner instead.

    Args:
        config_dir: Directory to write storage.conf into (defaults to ~/.config/containers).
        uid: User id embedded in the run/graph roots (defaults to the current user).

    Raises:
        SetupError: When the directory or the file cannot be created.
    """
    config_dir = Path(config_dir) if config_dir else default_config_dir()
    uid = os.getuid() if uid is None else uid

    try:
        config_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
    except OSError as exc:
        raise SetupError(f"error creating storage config directory: {exc}") from exc

    storage_conf_path = config_dir / STORAGE_CONF_NAME
    try:
        storage_conf_path.write_text(render_storage_conf(uid), encoding="utf-8")
        storage_conf_path.chmod(0o600)
    except OSError as exc:
        raise SetupError(f"error writing {STORAGE_CONF_NAME}: {exc}") from exc

    logger.debug("Wrote storage configuration to %s", storage_conf_path)

    return BuildEnvironment(
        config_dir=config_dir,
        storage_conf_path=storage_conf_path,
        variables={
            "STORAGE_DRIVER": STORAGE_DRIVER,
            "BUILDAH_ISOLATION": ISOLATION,
            "CONTAINERS_STORAGE_CONF": str(storage_conf_path),
        },
    )
