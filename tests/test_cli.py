"""Tests for the drone-buildah command line entry point."""

from __future__ import annotations

from pathlib import Path

import pytest

from drone_buildah import cli
from drone_buildah.common.models import Plugin
from drone_buildah.runtime.errors import CommandError
from drone_buildah.runtime.sequencer import CommandStep, SequenceResult


class RecordingPlugin:
    instances: list["RecordingPlugin"] = []
    error: Exception | None = None

    def __init__(self, config: Plugin) -> None:
        self.config = config
        RecordingPlugin.instances.append(self)

    def exec(self) -> SequenceResult:
        if RecordingPlugin.error:
            raise RecordingPlugin.error
        return SequenceResult()


@pytest.fixture(autouse=True)
def recording_plugin(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> type[RecordingPlugin]:
    RecordingPlugin.instances = []
    RecordingPlugin.error = None
    monkeypatch.setattr(cli, "BuildahPlugin", RecordingPlugin)
    monkeypatch.chdir(tmp_path)
    for name in ("PLUGIN_REPO", "PLUGIN_DRY_RUN", "PLUGIN_TAGS", "PLUGIN_EXECUTABLE"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return RecordingPlugin


def test_main_success(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLUGIN_REPO", "registry.local/app")

    assert cli.main([]) == 0

    config = RecordingPlugin.instances[0].config
    assert config.build.repo == "registry.local/app"
    assert config.skip_push is False


def test_dry_run_and_executable_flags() -> None:
    assert cli.main(["--dry-run", "--executable", "/opt/buildah"]) == 0

    config = RecordingPlugin.instances[0].config
    assert config.skip_push is True
    assert config.executable == "/opt/buildah"


def test_env_file_is_loaded(tmp_path: Path) -> None:
    env_file = tmp_path / "plugin.env"
    env_file.write_text("PLUGIN_TAGS=v1,v2\n", encoding="utf-8")

    assert cli.main(["--env-file", str(env_file)]) == 0

    assert RecordingPlugin.instances[0].config.build.tags == ["v1", "v2"]


def test_plugin_error_exits_with_one() -> None:
    RecordingPlugin.error = CommandError(CommandStep("build", ["buildah", "bud"]))

    assert cli.main([]) == 1


def test_invalid_config_file_exits_with_one(tmp_path: Path) -> None:
    assert cli.main(["--config", str(tmp_path / "missing.yaml")]) == 1
    assert RecordingPlugin.instances == []
