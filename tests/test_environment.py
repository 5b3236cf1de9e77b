"""Tests for rootless environment preparation and registry credentials."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from conftest import FakeRunner
from drone_buildah.common.models import Login
from drone_buildah.runtime.credentials import (
    AUTH_FILE_VARIABLE,
    describe_credentials,
    registry_login,
    write_auth_config,
)
from drone_buildah.runtime.environment import prepare_environment
from drone_buildah.runtime.errors import AuthenticationError, SetupError


def test_prepare_environment_writes_storage_conf(tmp_path: Path) -> None:
    config_dir = tmp_path / "home" / ".config" / "containers"

    environment = prepare_environment(config_dir, uid=1000)

    conf = environment.storage_conf_path.read_text(encoding="utf-8")
    assert environment.storage_conf_path == config_dir / "storage.conf"
    assert 'driver = "vfs"' in conf
    assert 'runroot = "/tmp/buildah-run-1000"' in conf
    assert 'graphroot = "/tmp/buildah-graph-1000"' in conf
    assert stat.S_IMODE(environment.storage_conf_path.stat().st_mode) == 0o600
    assert environment.variables == {
        "STORAGE_DRIVER": "vfs",
        "BUILDAH_ISOLATION": "rootless",
        "CONTAINERS_STORAGE_CONF": str(config_dir / "storage.conf"),
    }


def test_prepare_environment_does_not_touch_process_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CONTAINERS_STORAGE_CONF", raising=False)

    prepare_environment(tmp_path)

    assert "CONTAINERS_STORAGE_CONF" not in os.environ


def test_prepare_environment_fails_when_dir_is_a_file(tmp_path: Path) -> None:
    blocker = tmp_path / "containers"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(SetupError, match="error creating storage config directory"):
        prepare_environment(blocker)


def test_prepare_environment_fails_when_storage_conf_unwritable(tmp_path: Path) -> None:
    (tmp_path / "storage.conf").mkdir()

    with pytest.raises(SetupError, match="error writing storage.conf"):
        prepare_environment(tmp_path)


def test_write_auth_config(tmp_path: Path) -> None:
    environment = prepare_environment(tmp_path)
    login = Login(config='{"auths": {}}')

    auth_path = write_auth_config(login, environment)

    assert auth_path == tmp_path / "auth.json"
    assert auth_path.read_text(encoding="utf-8") == '{"auths": {}}'
    assert stat.S_IMODE(auth_path.stat().st_mode) == 0o600
    assert environment.variables[AUTH_FILE_VARIABLE] == str(auth_path)


def test_write_auth_config_skipped_without_config(tmp_path: Path) -> None:
    environment = prepare_environment(tmp_path)

    assert write_auth_config(Login(), environment) is None
    assert AUTH_FILE_VARIABLE not in environment.variables


def test_write_auth_config_fails_when_path_unwritable(tmp_path: Path) -> None:
    environment = prepare_environment(tmp_path)
    (tmp_path / "auth.json").mkdir()

    with pytest.raises(SetupError, match="error writing auth.json"):
        write_auth_config(Login(config="{}"), environment)

    assert AUTH_FILE_VARIABLE not in environment.variables


def test_login_masks_password_in_trace(tmp_path: Path) -> None:
    runner = FakeRunner()
    environment = prepare_environment(tmp_path)
    login = Login(registry="registry.local", username="ci", password="s3cret")

    assert registry_login(login, runner, environment) is True

    assert runner.commands == [["buildah", "login", "-u", "ci", "-p", "s3cret", "registry.local"]]
    assert runner.traces == ["buildah login -u ci -p ****** registry.local"]
    assert runner.envs[0]["STORAGE_DRIVER"] == "vfs"


def test_login_failure_is_fatal(tmp_path: Path) -> None:
    runner = FakeRunner(failures={"login": 1})
    environment = prepare_environment(tmp_path)

    with pytest.raises(AuthenticationError, match="error authenticating: exit status 1"):
        registry_login(Login(username="ci", password="bad"), runner, environment)


def test_login_skipped_without_password(tmp_path: Path) -> None:
    runner = FakeRunner()

    assert registry_login(Login(username="ci"), runner, prepare_environment(tmp_path)) is False
    assert runner.commands == []


def test_describe_credentials() -> None:
    assert describe_credentials(Login(password="x")) == "Detected registry credentials"
    assert describe_credentials(Login(config="{}")) == "Detected registry credentials file"
    assert "Guest mode enabled" in describe_credentials(Login())
