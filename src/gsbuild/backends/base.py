"""Protocol for build execution backends."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from gsbuild.models import BuildConfig, BuildResult


@dataclass(frozen=True, slots=True)
class MountSpec:
    source: Path
    target: str
    read_only: bool = False


class BuildBackend(Protocol):
    name: str

    def mount_plan(self, config: BuildConfig, project_dir: Path) -> tuple[MountSpec, ...]:
        """Return deterministic host/build-environment mount mapping."""

    def prepare(self, config: BuildConfig, project_dir: Path) -> None:
        """Check and prepare backend runtime resources."""

    def execute(self, config: BuildConfig, project_dir: Path) -> BuildResult:
        """Run the build and return the published artifact."""

    def cleanup(self, config: BuildConfig, project_dir: Path) -> None:
        """Release backend runtime resources."""
