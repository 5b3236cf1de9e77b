"""Shared data models describing a single plugin invocation."""
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

DEFAULT_EXECUTABLE = "buildah"
DEFAULT_IMAGE_NAME = "00000000"


def default_config_dir() -> Path:
    """Directory holding storage.conf and auth.json for rootless builds."""
    return Path.home() / ".config" / "containers"


class Login(BaseModel):
    """Registry login parameters."""

    registry: str = Field(default="", description="Registry address")
    username: str = Field(default="", description="Registry username")
    password: str = Field(default="", description="Registry password")
    email: str = Field(default="", description="Registry email")
    config: str = Field(default="", description="Raw auth config (auth.json contents)")


class Build(BaseModel):
    """Image build parameters.

    ``args`` is appended to in place when proxy and env-sourced build args
    are injected before the build command is assembled.
    """

    remote: str = Field(default="", description="Git remote URL")
    name: str = Field(default=DEFAULT_IMAGE_NAME, description="Default image name, usually the commit SHA")
    dockerfile: str = Field(default="Dockerfile", description="Path to the Dockerfile")
    context: str = Field(default=".", description="Build context path")
    tags: List[str] = Field(default_factory=lambda: ["latest"])
    args: List[str] = Field(default_factory=list, description="KEY=VALUE build args")
    args_env: List[str] = Field(default_factory=list, description="Build arg names read from the environment")
    target: str = ""
    squash: bool = False
    pull: bool = True
    cache_from: List[str] = Field(default_factory=list)
    compress: bool = False
    repo: str = Field(default="", description="Repository images are tagged and pushed to")
    label_schema: List[str] = Field(default_factory=list, description="Extra OCI label entries (key=value)")
    auto_label: bool = True
    labels: List[str] = Field(default_factory=list, description="Explicit labels, emitted unprefixed")
    link: str = Field(default="", description="Link to the source commit")
    no_cache: bool = False
    add_host: List[str] = Field(default_factory=list)
    quiet: bool = False
    s3_local_cache_dir: str = ""
    s3_bucket: str = ""
    s3_endpoint: str = ""
    s3_region: str = ""
    s3_key: str = ""
    s3_secret: str = ""
    s3_use_ssl: bool = False
    layers: bool = False


class Plugin(BaseModel):
    """Complete configuration of one plugin run."""

    login: Login = Field(default_factory=Login)
    build: Build = Field(default_factory=Build)
    skip_push: bool = Field(default=False, description="Skip pushing tags (dry run)")
    cleanup: bool = Field(default=True, description="Remove the built image when done")
    executable: str = DEFAULT_EXECUTABLE
    config_dir: Optional[Path] = Field(
        default=None,
        description="Directory for storage.conf and auth.json (defaults to ~/.config/containers)",
    )

    def resolved_config_dir(self) -> Path:
        return self.config_dir or default_config_dir()
