"""Build directly on the host, in this process."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from gsbuild.backends.base import MountSpec
from gsbuild.errors import ConfigurationError
from gsbuild.models import BuildConfig, BuildResult
from gsbuild.observability import StructuredLogger
from gsbuild.pipeline import run_pipeline
from gsbuild.toolchain import ToolchainEnv


@dataclass(slots=True)
class HostBackend:
    name: str = "host"
    env: ToolchainEnv | None = None
    jobs: int | None = None
    events: StructuredLogger | None = None

    def mount_plan(self, config: BuildConfig, project_dir: Path) -> tuple[MountSpec, ...]:
        return (MountSpec(source=project_dir, target=str(project_dir)),)

    def prepare(self, config: BuildConfig, project_dir: Path) -> None:
        if not project_dir.is_dir():
            raise ConfigurationError(
                "Project directory does not exist.",
                context={"backend": self.name, "path": str(project_dir)},
            )

    def execute(self, config: BuildConfig, project_dir: Path) -> BuildResult:
        return run_pipeline(
            config,
            project_dir=project_dir,
            env=self.env,
            jobs=self.jobs,
            events=self.events,
        )

    def cleanup(self, config: BuildConfig, project_dir: Path) -> None:
        pass
