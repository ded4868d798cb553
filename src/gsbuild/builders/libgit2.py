"""libgit2 static library builder."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from gsbuild.builders.base import BuildContext, join_flags
from gsbuild.errors import CompileError
from gsbuild.models import DependencySpec
from gsbuild.process import run_command

logger = logging.getLogger(__name__)

# No network, no crypto backend, bundled fallbacks over system libraries.
CMAKE_FEATURE_FLAGS: tuple[str, ...] = (
    "-DCMAKE_BUILD_TYPE=None",
    "-DZERO_NSEC=ON",
    "-DTHREADSAFE=ON",
    "-DUSE_BUNDLED_ZLIB=ON",
    "-DREGEX_BACKEND=builtin",
    "-DUSE_HTTP_PARSER=builtin",
    "-DUSE_SSH=OFF",
    "-DUSE_HTTPS=OFF",
    "-DBUILD_CLAR=OFF",
    "-DUSE_GSSAPI=OFF",
    "-DUSE_NTLMCLIENT=OFF",
    "-DBUILD_SHARED_LIBS=OFF",
)


@dataclass(slots=True)
class Libgit2Builder:
    dependency: DependencySpec
    tarball: Path
    name: str = "libgit2"

    def source_dir(self, ctx: BuildContext) -> Path:
        return ctx.workdir / "libgit2"

    def cflags(self, ctx: BuildContext) -> list[str]:
        flags = list(ctx.toolchain.cflags)
        flags.extend(f"-I{path}" for path in ctx.toolchain.include_dirs)
        flags.extend(["-O3", "-DNDEBUG"])
        return flags

    def cmake_command(self, ctx: BuildContext) -> list[str]:
        return [
            "cmake",
            *CMAKE_FEATURE_FLAGS,
            "-G",
            "Unix Makefiles",
            *ctx.toolchain.cmake_flags,
            "..",
        ]

    def build(self, ctx: BuildContext) -> Path:
        source_dir = self.source_dir(ctx)
        logger.info("Building %s %s ...", self.name, self.dependency.version)
        run_command(
            ["tar", "-xzf", str(self.tarball)],
            cwd=ctx.workdir,
            operation="unpack",
            error=CompileError,
        )
        unpacked = ctx.workdir / self.dependency.archive_root
        if not unpacked.is_dir():
            raise CompileError(
                "Dependency tarball has an unexpected layout.",
                context={"expected": self.dependency.archive_root, "tarball": str(self.tarball)},
            )
        unpacked.rename(source_dir)

        build_dir = source_dir / "build"
        build_dir.mkdir()
        env = ctx.subprocess_env(CFLAGS=join_flags(ctx.env.cflags, self.cflags(ctx)))
        run_command(
            self.cmake_command(ctx),
            cwd=build_dir,
            env=env,
            operation="configure_libgit2",
            capture=False,
        )
        run_command(
            ["make", "-j", str(ctx.jobs), "VERBOSE=1"],
            cwd=build_dir,
            env=env,
            operation="build_libgit2",
            capture=False,
        )
        return source_dir
