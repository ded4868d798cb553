"""Compiler flag discovery by trial compilation.

Each candidate flag is compiled (or linked) against an empty program with ``-Werror``.
A flag that the compiler rejects is dropped silently: the outcome of a probe never
fails the build, it only shapes the accepted flag set.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from gsbuild.errors import ToolMissingError
from gsbuild.models import BuildConfig, ToolchainFlags
from gsbuild.process import run_command, try_command
from gsbuild.toolchain.kernels import kernel_profile

logger = logging.getLogger(__name__)

PROBE_SOURCE = "int main() {}\n"

ProbeTarget = Literal["cflags", "ldflags", "static-pie"]


@dataclass(frozen=True, slots=True)
class FlagProbe:
    name: str
    args: tuple[str, ...]
    target: ProbeTarget
    link: bool = False
    # Flags added on success when they differ from the probed ones; ``{workdir}`` expands.
    retain: tuple[str, ...] = ()

    def retained(self, workdir: Path) -> tuple[str, ...]:
        if not self.retain:
            return self.args
        return tuple(flag.format(workdir=workdir) for flag in self.retain)


FLAG_PROBES: tuple[FlagProbe, ...] = (
    FlagProbe(
        name="file-prefix-map",
        args=("-ffile-prefix-map=x=y",),
        target="cflags",
        retain=("-ffile-prefix-map={workdir}/=",),
    ),
    FlagProbe(name="stack-clash-protection", args=("-fstack-clash-protection",), target="cflags"),
    FlagProbe(name="cf-protection", args=("-fcf-protection",), target="cflags"),
    FlagProbe(
        name="relro",
        args=("-Wl,-O1,--sort-common,--as-needed,-z,relro,-z,now",),
        target="ldflags",
        link=True,
    ),
    FlagProbe(
        name="static-pie",
        args=("-fpie", "-static-pie"),
        target="static-pie",
        link=True,
    ),
)


@dataclass(frozen=True, slots=True)
class ToolchainEnv:
    """Compiler overrides taken from the invoking environment."""

    cc: str | None = None
    cxx: str | None = None
    # Raw strings, prepended unsplit to the generated flags.
    cflags: str = ""
    cxxflags: str = ""
    ldflags: str = ""

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> ToolchainEnv:
        environ = os.environ if environ is None else environ
        return cls(
            cc=environ.get("CC") or None,
            cxx=environ.get("CXX") or None,
            cflags=environ.get("CFLAGS", ""),
            cxxflags=environ.get("CXXFLAGS", ""),
            ldflags=environ.get("LDFLAGS", ""),
        )


def probe_flag(
    compiler: str,
    flags: tuple[str, ...],
    *,
    workdir: Path,
    link: bool = False,
) -> bool:
    """Return True when *compiler* accepts *flags* for an empty translation unit."""
    source = workdir / "cc-test.c"
    if not source.exists():
        source.write_text(PROBE_SOURCE, encoding="utf-8")
    output = workdir / ("cc-test" if link else "cc-test.o")
    for stale in (workdir / "cc-test", workdir / "cc-test.o"):
        stale.unlink(missing_ok=True)

    argv = [compiler, *flags, "-Werror"]
    if not link:
        argv.append("-c")
    argv.extend([str(source), "-o", str(output)])
    return try_command(argv, cwd=workdir) is not None


def base_cflags(config: BuildConfig) -> list[str]:
    arch_flag = "-mcpu" if config.cpu in ("powerpc64", "powerpc64le") else "-march"
    flags = [f"{arch_flag}={config.cpu}"]
    if config.arch != "e2k":
        flags.append("-fno-plt")
    flags.extend(["-D_FORTIFY_SOURCE=2", "-Wformat", "-Werror=format-security", "-fpie"])
    return flags


def probe_toolchain(
    config: BuildConfig,
    *,
    workdir: Path,
    env: ToolchainEnv | None = None,
    probes: tuple[FlagProbe, ...] = FLAG_PROBES,
) -> ToolchainFlags:
    env = env or ToolchainEnv.from_environ()
    profile = kernel_profile(config.kernel)
    compiler = env.cc or profile.cc

    toolchain = ToolchainFlags(
        compiler=compiler,
        cxx=env.cxx or profile.cxx,
        make=profile.make,
        cflags=base_cflags(config),
    )

    static_pie = False
    for probe in probes:
        accepted = probe_flag(compiler, probe.args, workdir=workdir, link=probe.link)
        logger.debug("probe %s: %s", probe.name, "accepted" if accepted else "rejected")
        if not accepted:
            continue
        toolchain.accepted.append(probe.name)
        if probe.target == "cflags":
            toolchain.cflags.extend(probe.retained(workdir))
        elif probe.target == "ldflags":
            toolchain.ldflags.extend(probe.retained(workdir))
        else:
            static_pie = True

    for stale in (workdir / "cc-test.c", workdir / "cc-test", workdir / "cc-test.o"):
        stale.unlink(missing_ok=True)

    if config.cpu == "x86-64":
        toolchain.cflags.append("-mtune=generic")

    if profile.static:
        toolchain.static_link_mode = "static-pie" if static_pie else "static"

    toolchain.cmake_flags.append(
        f"-DENABLE_REPRODUCIBLE_BUILDS={'ON' if profile.reproducible else 'OFF'}"
    )
    if profile.iconv:
        _link_iconv(toolchain, workdir=workdir)
    return toolchain


def _link_iconv(toolchain: ToolchainFlags, *, workdir: Path) -> None:
    prefix = iconv_prefix()
    lib_dir = workdir / "lib"
    lib_dir.mkdir(exist_ok=True)
    os.symlink(prefix / "lib" / "libiconv.a", lib_dir / "libiconv.a")
    toolchain.include_dirs.append(str(prefix / "include"))
    toolchain.library_dirs.append(str(lib_dir))
    toolchain.ldlibs.append("-liconv")
    toolchain.cmake_flags.append("-DUSE_ICONV=ON")
    logger.debug("linking iconv from %s", prefix)


def iconv_prefix() -> Path:
    """MacPorts' static libiconv if present, else Homebrew's keg."""
    macports = Path("/opt/local")
    if (macports / "lib" / "libiconv.a").exists():
        return macports
    completed = run_command(
        ["brew", "--prefix"],
        operation="iconv",
        error=ToolMissingError,
    )
    brew_prefix = completed.stdout.decode("utf-8").strip()
    return Path(brew_prefix) / "opt" / "libiconv"
