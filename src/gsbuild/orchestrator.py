"""Top-level build entry point: report the configuration, pick a backend, run it."""

from __future__ import annotations

import logging
from pathlib import Path

from gsbuild.backends import BuildBackend, select_backend
from gsbuild.models import APP_NAME, BuildConfig, BuildResult

logger = logging.getLogger(__name__)


def describe(config: BuildConfig) -> list[str]:
    lines = [
        f"  kernel := {config.kernel}",
        f"  arch := {config.arch}",
        f"  cpu := {config.cpu}",
    ]
    if config.docker_command:
        lines.append(f"  docker command := {config.docker_command}")
    if config.docker_image:
        lines.append(f"  docker image := {config.docker_image}")
    lines.append(f"  install tools := {'yes' if config.install_tools else 'no'}")
    lines.append(f"  download deps := {'yes' if config.download_deps else 'no'}")
    return lines


def build(
    config: BuildConfig,
    *,
    project_dir: Path,
    backend: BuildBackend | None = None,
) -> BuildResult:
    backend = backend or select_backend(config)
    logger.info("Building %s...", APP_NAME)
    logger.info("")
    for line in describe(config):
        logger.info(line)

    backend.prepare(config, project_dir)
    try:
        return backend.execute(config, project_dir)
    finally:
        backend.cleanup(config, project_dir)
