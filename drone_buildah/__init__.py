"""Drone plugin that builds and publishes container images with rootless buildah."""

__version__ = "0.1.0"
