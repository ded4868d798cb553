"""Build backend interfaces and implementations."""

from __future__ import annotations

from gsbuild.models import BuildConfig

from .base import BuildBackend, MountSpec
from .docker import DockerBackend
from .host import HostBackend


def select_backend(config: BuildConfig) -> BuildBackend:
    if config.delegated:
        return DockerBackend()
    return HostBackend()


__all__ = [
    "BuildBackend",
    "DockerBackend",
    "HostBackend",
    "MountSpec",
    "select_backend",
]
