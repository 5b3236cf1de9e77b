"""Argument vectors for every build tool subcommand the plugin runs."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Mapping, Optional

from ..common.models import Build, Login, DEFAULT_EXECUTABLE
from .environment import STORAGE_DRIVER

LABEL_PREFIX = "org.opencontainers.image"
PROXY_KEYS = ("http_proxy", "https_proxy", "no_proxy")


def command_version(executable: str = DEFAULT_EXECUTABLE) -> List[str]:
    return [executable, "version"]


def command_info(executable: str = DEFAULT_EXECUTABLE) -> List[str]:
    return [executable, "info"]


def command_pull(image: str, executable: str = DEFAULT_EXECUTABLE) -> List[str]:
    return [executable, "--storage-driver", STORAGE_DRIVER, "pull", image]


def command_login(login: Login, executable: str = DEFAULT_EXECUTABLE) -> List[str]:
    # buildah login has no email option; Login.email is informational only.
    return [executable, "login", "-u", login.username, "-p", login.password, login.registry]


def command_build(build: Build, executable: str = DEFAULT_EXECUTABLE, now: Optional[datetime] = None) -> List[str]:
    return [executable, *build_arguments(build, now=now)]


def command_tag(build: Build, tag: str, executable: str = DEFAULT_EXECUTABLE) -> List[str]:
    return [executable, "tag", build.name, f"{build.repo}:{tag}"]


def command_push(build: Build, tag: str, executable: str = DEFAULT_EXECUTABLE) -> List[str]:
    return [executable, "push", f"{build.repo}:{tag}"]


def command_rmi(name: str, executable: str = DEFAULT_EXECUTABLE) -> List[str]:
    return [executable, "rmi", name]


def auto_labels(build: Build, now: Optional[datetime] = None) -> List[str]:
    """Return the OCI labels generated for ``build``, already namespaced."""
    created = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    entries = [
        f"created={created.strftime('%Y-%m-%dT%H:%M:%SZ')}",
        f"revision={build.name}",
        f"source={build.remote}",
        f"url={build.link}",
    ]
    entries.extend(build.label_schema)
    return [f"{LABEL_PREFIX}.{entry}" for entry in entries]


def build_arguments(build: Build, now: Optional[datetime] = None) -> List[str]:
    """
    Translate a build configuration into the build subcommand's arguments.

    The result never includes the executable. ``-f <dockerfile>`` always
    directly follows the subcommand and the context path is always the last
    token.

    Args:
        build: Build configuration. Env-derived build args must already be injected.
        now: Timestamp used for the ``created`` auto-label (defaults to the current time).
    """
    args = [
        "--storage-driver", STORAGE_DRIVER,
        "bud",
        "-f", build.dockerfile,
        "--format", "docker",
    ]

    if build.squash:
        args.append("--squash")
    if build.compress:
        args.append("--compress")
    if build.pull:
        args.append("--pull=true")
    if build.no_cache:
        args.append("--no-cache")
    for image in build.cache_from:
        args.extend(["--cache-from", image])
    for arg in build.args:
        args.extend(["--build-arg", arg])
    for host in build.add_host:
        args.extend(["--add-host", host])
    if build.target:
        args.extend(["--target", build.target])
    if build.quiet:
        args.append("--quiet")

    if build.layers:
        args.append("--layers=true")
        if build.s3_local_cache_dir:
            args.extend(["--s3-local-cache-dir", build.s3_local_cache_dir])
            optional = (
                ("--s3-bucket", build.s3_bucket),
                ("--s3-endpoint", build.s3_endpoint),
                ("--s3-region", build.s3_region),
                ("--s3-key", build.s3_key),
                ("--s3-secret", build.s3_secret),
            )
            for flag, value in optional:
                if value:
                    args.extend([flag, value])
            if build.s3_use_ssl:
                args.append("--s3-use-ssl=true")

    if build.auto_label:
        for label in auto_labels(build, now=now):
            args.extend(["--label", label])
    for label in build.labels:
        args.extend(["--label", label])

    args.extend(["-t", build.name])
    args.append(build.context)
    return args


def lookup_env_value(key: str, environ: Mapping[str, str]) -> str:
    """Read ``key`` from the environment, falling back to its upper-case form."""
    value = environ.get(key, "")
    if value:
        return value
    return environ.get(key.upper(), "")


def has_build_arg(build: Build, key: str) -> bool:
    # Bare prefix match: NO_PROXY_EXTRA=1 also counts as a no_proxy arg.
    prefix = key.lower()
    return any(arg.lower().startswith(prefix) for arg in build.args)


def add_env_build_arg(build: Build, key: str, environ: Mapping[str, str]) -> bool:
    """
    Append ``key=value`` and ``KEY=value`` build args when the variable is set.

    Nothing is added when an existing arg already starts with ``key``
    (case-insensitive), so repeated calls never duplicate an entry.

    Returns:
        True when new build args were appended.
    """
    value = lookup_env_value(key, environ)
    if not value or has_build_arg(build, key):
        return False

    build.args.append(f"{key}={value}")
    if key != key.upper():
        build.args.append(f"{key.upper()}={value}")
    return True


def inject_env_build_args(build: Build, environ: Mapping[str, str]) -> None:
    """Add proxy settings and the ``args_env`` variables to the build args."""
    for key in PROXY_KEYS:
        add_env_build_arg(build, key, environ)
    for key in build.args_env:
        add_env_build_arg(build, key, environ)
