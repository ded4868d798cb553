"""Core typed dataclasses for build configuration, toolchain state and results."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from gsbuild.errors import ConfigurationError, UsageError

StaticLinkMode = Literal["none", "static", "static-pie"]

APP_NAME = "gitstatusd"
ENV_PREFIX = "GSBUILD_"

_ENV_KEYS = (
    "kernel",
    "arch",
    "cpu",
    "docker_command",
    "docker_image",
    "install_tools",
    "download_deps",
)


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """Resolved build configuration.

    Instances are only produced by the platform resolver or by :meth:`from_env`, so
    ``kernel`` and ``cpu`` are never empty.
    """

    kernel: str
    arch: str
    cpu: str
    docker_command: str | None = None
    docker_image: str | None = None
    install_tools: bool = False
    download_deps: bool = False

    def __post_init__(self) -> None:
        if not self.kernel or not self.cpu or not self.arch:
            raise ConfigurationError(
                "BuildConfig requires non-empty kernel, arch and cpu.",
                context={"kernel": self.kernel, "arch": self.arch, "cpu": self.cpu},
            )
        if self.docker_image and not self.docker_command:
            raise UsageError("cannot use -i without -d")

    @property
    def delegated(self) -> bool:
        return bool(self.docker_command)

    def to_env(self) -> dict[str, str]:
        """Flatten into ``GSBUILD_*`` variables; booleans become ``"1"`` or ``""``."""
        values: dict[str, str] = {
            "kernel": self.kernel,
            "arch": self.arch,
            "cpu": self.cpu,
            "docker_command": self.docker_command or "",
            "docker_image": self.docker_image or "",
            "install_tools": "1" if self.install_tools else "",
            "download_deps": "1" if self.download_deps else "",
        }
        return {f"{ENV_PREFIX}{key.upper()}": values[key] for key in _ENV_KEYS}

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> BuildConfig:
        missing = [
            f"{ENV_PREFIX}{key.upper()}"
            for key in ("kernel", "arch", "cpu")
            if not env.get(f"{ENV_PREFIX}{key.upper()}")
        ]
        if missing:
            raise ConfigurationError(
                "Delegated build environment is incomplete.",
                hint="The container must be started by the gsbuild host process.",
                context={"missing": ", ".join(missing)},
            )

        def get(key: str) -> str:
            return env.get(f"{ENV_PREFIX}{key.upper()}", "")

        return cls(
            kernel=get("kernel"),
            arch=get("arch"),
            cpu=get("cpu"),
            docker_command=get("docker_command") or None,
            docker_image=get("docker_image") or None,
            install_tools=bool(get("install_tools")),
            download_deps=bool(get("download_deps")),
        )


@dataclass(frozen=True, slots=True)
class KernelProfile:
    """Static, per-kernel tool selection. Nothing here is probed."""

    cc: str = "cc"
    cxx: str = "g++"
    make: str = "make"
    reproducible: bool = True
    static: bool = True
    iconv: bool = False


@dataclass(slots=True)
class ToolchainFlags:
    compiler: str
    cxx: str
    make: str
    cflags: list[str] = field(default_factory=list)
    ldflags: list[str] = field(default_factory=list)
    static_link_mode: StaticLinkMode = "none"
    accepted: list[str] = field(default_factory=list)
    cmake_flags: list[str] = field(default_factory=list)
    include_dirs: list[str] = field(default_factory=list)
    library_dirs: list[str] = field(default_factory=list)
    ldlibs: list[str] = field(default_factory=list)

    @property
    def static_link_flag(self) -> str | None:
        if self.static_link_mode == "static-pie":
            return "-static-pie"
        if self.static_link_mode == "static":
            return "-static"
        return None


@dataclass(frozen=True, slots=True)
class DependencySpec:
    name: str
    version: str
    sha256: str
    cache_path: Path
    source_url: str
    temp_path: Path

    @property
    def archive_root(self) -> str:
        """Top-level directory name inside the tarball."""
        return f"{self.name}-{self.version}"


@dataclass(frozen=True, slots=True)
class BuildResult:
    config: BuildConfig
    artifact: Path
    artifact_sha256: str
    report_path: Path | None = None
    events_path: Path | None = None
