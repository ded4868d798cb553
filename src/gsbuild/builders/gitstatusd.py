"""gitstatusd compile, static link and strip."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from gsbuild.builders.base import BuildContext, join_flags
from gsbuild.models import APP_NAME
from gsbuild.process import run_command

logger = logging.getLogger(__name__)

OUTPUT_DIR = "usrbin"
CXX_DEFINES: tuple[str, ...] = ("-DGITSTATUS_ZERO_NSEC", "-D_GNU_SOURCE", "-D_GLIBCXX_ASSERTIONS")


def temp_binary_path(project_dir: Path) -> Path:
    return project_dir / OUTPUT_DIR / f"{APP_NAME}.tmp"


def published_binary_path(project_dir: Path) -> Path:
    return project_dir / OUTPUT_DIR / APP_NAME


@dataclass(slots=True)
class GitstatusdBuilder:
    libgit2_dir: Path
    name: str = APP_NAME

    def cxxflags(self, ctx: BuildContext) -> list[str]:
        flags = list(ctx.toolchain.cflags)
        flags.append(f"-I{self.libgit2_dir / 'include'}")
        flags.extend(f"-I{path}" for path in ctx.toolchain.include_dirs)
        flags.extend(CXX_DEFINES)
        return flags

    def ldflags(self, ctx: BuildContext) -> list[str]:
        flags = list(ctx.toolchain.ldflags)
        flags.append(f"-L{self.libgit2_dir / 'build'}")
        flags.extend(f"-L{path}" for path in ctx.toolchain.library_dirs)
        if ctx.toolchain.static_link_flag is not None:
            flags.append(ctx.toolchain.static_link_flag)
        return flags

    def make_env(self, ctx: BuildContext) -> dict[str, str]:
        return {
            "APPNAME": f"{APP_NAME}.tmp",
            "OBJDIR": str(ctx.workdir / "gitstatus"),
            "CXX": ctx.toolchain.cxx,
            "CXXFLAGS": join_flags(ctx.env.cxxflags, self.cxxflags(ctx)),
            "LDFLAGS": join_flags(ctx.env.ldflags, self.ldflags(ctx)),
            "LDLIBS": " ".join(ctx.toolchain.ldlibs),
        }

    def build(self, ctx: BuildContext) -> Path:
        logger.info("Building %s ...", self.name)
        run_command(
            [ctx.toolchain.make, "-C", str(ctx.project_dir), "-j", str(ctx.jobs)],
            env=ctx.subprocess_env(**self.make_env(ctx)),
            operation="build_gitstatusd",
            capture=False,
        )
        binary = temp_binary_path(ctx.project_dir)
        run_command(["strip", str(binary)], operation="strip")
        return binary
