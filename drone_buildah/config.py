"""Plugin settings loaded from the CI environment and optional config files."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .common.models import Build, Login, Plugin, DEFAULT_EXECUTABLE, DEFAULT_IMAGE_NAME
from .runtime.errors import ConfigurationError

# Field name -> environment variables checked in order, first non-empty wins.
ENV_VARIABLES: Dict[str, Tuple[str, ...]] = {
    "registry": ("PLUGIN_REGISTRY", "DOCKER_REGISTRY"),
    "username": ("PLUGIN_USERNAME", "DOCKER_USERNAME"),
    "password": ("PLUGIN_PASSWORD", "DOCKER_PASSWORD"),
    "email": ("PLUGIN_EMAIL", "DOCKER_EMAIL"),
    "auth_config": ("PLUGIN_CONFIG", "DOCKER_PLUGIN_CONFIG"),
    "dockerfile": ("PLUGIN_DOCKERFILE",),
    "context": ("PLUGIN_CONTEXT",),
    "tags": ("PLUGIN_TAGS", "PLUGIN_TAG"),
    "build_args": ("PLUGIN_BUILD_ARGS",),
    "build_args_from_env": ("PLUGIN_BUILD_ARGS_FROM_ENV",),
    "target": ("PLUGIN_TARGET",),
    "squash": ("PLUGIN_SQUASH",),
    "pull_image": ("PLUGIN_PULL_IMAGE",),
    "cache_from": ("PLUGIN_CACHE_FROM",),
    "compress": ("PLUGIN_COMPRESS",),
    "repo": ("PLUGIN_REPO",),
    "custom_labels": ("PLUGIN_CUSTOM_LABELS",),
    "label_schema": ("PLUGIN_LABEL_SCHEMA",),
    "auto_label": ("PLUGIN_AUTO_LABEL",),
    "no_cache": ("PLUGIN_NO_CACHE",),
    "add_host": ("PLUGIN_ADD_HOST",),
    "quiet": ("PLUGIN_QUIET",),
    "s3_local_cache_dir": ("PLUGIN_S3_LOCAL_CACHE_DIR",),
    "s3_bucket": ("PLUGIN_S3_BUCKET",),
    "s3_endpoint": ("PLUGIN_S3_ENDPOINT",),
    "s3_region": ("PLUGIN_S3_REGION",),
    "s3_key": ("PLUGIN_S3_KEY",),
    "s3_secret": ("PLUGIN_S3_SECRET",),
    "s3_use_ssl": ("PLUGIN_S3_USE_SSL",),
    "layers": ("PLUGIN_LAYERS",),
    "dry_run": ("PLUGIN_DRY_RUN",),
    "purge": ("PLUGIN_PURGE",),
    "executable": ("PLUGIN_EXECUTABLE",),
    "config_dir": ("PLUGIN_CONFIG_DIR",),
    "commit_sha": ("DRONE_COMMIT_SHA",),
    "remote_url": ("DRONE_REMOTE_URL",),
    "commit_link": ("DRONE_COMMIT_LINK",),
}

LIST_FIELDS = (
    "tags",
    "build_args",
    "build_args_from_env",
    "cache_from",
    "custom_labels",
    "label_schema",
    "add_host",
)


def split_list(value: Any) -> Any:
    """Split comma separated (or JSON array) strings into lists."""
    if not isinstance(value, str):
        return value
    stripped = value.strip()
    if stripped.startswith("["):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            pass
    return [item.strip() for item in stripped.split(",") if item.strip()]


class PluginSettings(BaseModel):
    """Flat plugin parameters as exposed to pipeline authors."""

    model_config = ConfigDict(extra="forbid")

    # Registry settings
    registry: str = ""
    username: str = ""
    password: str = ""
    email: str = ""
    auth_config: str = Field(default="", description="Raw contents of auth.json")

    # Build settings
    dockerfile: str = "Dockerfile"
    context: str = "."
    tags: List[str] = Field(default_factory=lambda: ["latest"])
    build_args: List[str] = Field(default_factory=list)
    build_args_from_env: List[str] = Field(default_factory=list)
    target: str = ""
    squash: bool = False
    pull_image: bool = True
    cache_from: List[str] = Field(default_factory=list)
    compress: bool = False
    repo: str = ""
    custom_labels: List[str] = Field(default_factory=list)
    label_schema: List[str] = Field(default_factory=list)
    auto_label: bool = True
    no_cache: bool = False
    add_host: List[str] = Field(default_factory=list)
    quiet: bool = False

    # Layer cache settings
    layers: bool = False
    s3_local_cache_dir: str = ""
    s3_bucket: str = ""
    s3_endpoint: str = ""
    s3_region: str = ""
    s3_key: str = ""
    s3_secret: str = ""
    s3_use_ssl: bool = False

    # Execution settings
    dry_run: bool = Field(default=False, description="Build and tag but skip pushing.")
    purge: bool = Field(default=True, description="Remove the built image at the end of the run.")
    executable: str = DEFAULT_EXECUTABLE
    config_dir: Optional[Path] = None

    # CI metadata
    commit_sha: str = DEFAULT_IMAGE_NAME
    remote_url: str = ""
    commit_link: str = ""

    @field_validator(*LIST_FIELDS, mode="before")
    @classmethod
    def _split_lists(cls, value: Any) -> Any:
        return split_list(value)

    @field_validator("tags")
    @classmethod
    def _validate_tags(cls, tags: List[str]) -> List[str]:
        if not tags:
            raise ValueError("At least one tag is required.")
        return tags

    @field_validator("commit_sha")
    @classmethod
    def _default_commit_sha(cls, value: str) -> str:
        return value.strip() or DEFAULT_IMAGE_NAME

    def to_plugin(self) -> Plugin:
        """Map the flat settings onto the plugin data model."""
        return Plugin(
            login=Login(
                registry=self.registry,
                username=self.username,
                password=self.password,
                email=self.email,
                config=self.auth_config,
            ),
            build=Build(
                remote=self.remote_url,
                name=self.commit_sha,
                dockerfile=self.dockerfile,
                context=self.context,
                tags=list(self.tags),
                args=list(self.build_args),
                args_env=list(self.build_args_from_env),
                target=self.target,
                squash=self.squash,
                pull=self.pull_image,
                cache_from=list(self.cache_from),
                compress=self.compress,
                repo=self.repo,
                label_schema=list(self.label_schema),
                auto_label=self.auto_label,
                labels=list(self.custom_labels),
                link=self.commit_link,
                no_cache=self.no_cache,
                add_host=list(self.add_host),
                quiet=self.quiet,
                s3_local_cache_dir=self.s3_local_cache_dir,
                s3_bucket=self.s3_bucket,
                s3_endpoint=self.s3_endpoint,
                s3_region=self.s3_region,
                s3_key=self.s3_key,
                s3_secret=self.s3_secret,
                s3_use_ssl=self.s3_use_ssl,
                layers=self.layers,
            ),
            skip_push=self.dry_run,
            cleanup=self.purge,
            executable=self.executable,
            config_dir=self.config_dir,
        )


def settings_from_env(environ: Mapping[str, str]) -> Dict[str, str]:
    """Collect raw setting values from environment variables, skipping empty ones."""
    values: Dict[str, str] = {}
    for field_name, variables in ENV_VARIABLES.items():
        for variable in variables:
            value = environ.get(variable, "")
            if value:
                values[field_name] = value
                break
    return values


def read_config_file(path: str | Path) -> Dict[str, Any]:
    """Load raw settings from a YAML or JSON file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Plugin config file not found: {path}")

    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    elif suffix == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
    else:
        raise ValueError(f"Unsupported plugin config format: {suffix}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Plugin config file {path} must contain a mapping.")
    return data


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    config_file: Optional[str | Path] = None,
) -> PluginSettings:
    """
    Build plugin settings from an optional config file overlaid with environment variables.

    Raises:
        ConfigurationError: When the file cannot be read or the values are invalid.
    """
    environ = os.environ if environ is None else environ
    data: Dict[str, Any] = {}

    if config_file:
        try:
            data.update(read_config_file(config_file))
        except (OSError, ValueError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"error reading config file: {exc}") from exc

    data.update(settings_from_env(environ))

    try:
        return PluginSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid plugin settings: {exc}") from exc


__all__ = ["PluginSettings", "ENV_VARIABLES", "load_settings", "read_config_file", "settings_from_env"]
