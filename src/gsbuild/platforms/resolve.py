"""Architecture, CPU and kernel normalization plus delegation defaults."""

from __future__ import annotations

import os
import platform
import re

from gsbuild.errors import ToolMissingError, UnsupportedPlatformError, UsageError
from gsbuild.models import BuildConfig
from gsbuild.process import which

CPU_BY_ARCH: dict[str, str] = {
    "armel": "armv5",
    "armv6l": "armv6",
    "armhf": "armv6",
    "armv7l": "armv7",
    "arm64": "armv8-a",
    "aarch64": "armv8-a",
    "ppc64": "powerpc64le",
    "ppc64le": "powerpc64le",
    "riscv64": "rv64imafdc",
    "loongarch64": "loongarch64",
    "x86_64": "x86-64",
    "amd64": "x86-64",
    "x86": "i586",
    "s390x": "z900",
    "e2k": "native",
    # These name the CPU directly.
    "i386": "i386",
    "i586": "i586",
    "i686": "i686",
}

# The delegated child runs gsbuild itself, so default images must carry Python.
_PYTHON_ALPINE = "python:3.12-alpine3.20"

DOCKER_IMAGE_BY_ARCH: dict[str, str] = {
    "x86_64": _PYTHON_ALPINE,
    "x86": f"i386/{_PYTHON_ALPINE}",
    "i386": f"i386/{_PYTHON_ALPINE}",
    "i586": f"i386/{_PYTHON_ALPINE}",
    "i686": f"i386/{_PYTHON_ALPINE}",
    "armv6l": f"arm32v6/{_PYTHON_ALPINE}",
    "armhf": f"arm32v6/{_PYTHON_ALPINE}",
    "armv7l": f"arm32v7/{_PYTHON_ALPINE}",
    "aarch64": f"arm64v8/{_PYTHON_ALPINE}",
    "ppc64": f"ppc64le/{_PYTHON_ALPINE}",
    "ppc64le": f"ppc64le/{_PYTHON_ALPINE}",
    "s390x": f"s390x/{_PYTHON_ALPINE}",
}

BSD_LIKE_KERNELS = frozenset({"freebsd", "openbsd", "netbsd", "darwin", "dragonfly"})
WINDOWS_KERNEL_PREFIXES = ("msys_nt-", "mingw32_nt-", "mingw64_nt-", "cygwin_nt-")

WINDOWS_KERNEL_PATTERN = re.compile(r"[^-]+-[0-9]+\.[0-9]+(-.*)?")
WINDOWS_KERNEL_TRUNCATE = re.compile(r"^([^-]*-[0-9]*\.[0-9]*)")


def host_arch() -> str:
    return platform.machine()


def host_kernel() -> str:
    return os.uname().sysname if hasattr(os, "uname") else platform.system()


def normalize_arch(arch: str) -> str:
    return arch.lower()


def infer_cpu(arch: str) -> str:
    cpu = CPU_BY_ARCH.get(arch)
    if cpu is None:
        raise UnsupportedPlatformError(
            "unable to infer target CPU architecture",
            hint="Please specify explicitly with `-c CPU`.",
            context={"arch": arch},
        )
    return cpu


def is_windows_kernel(kernel: str) -> bool:
    return kernel.startswith(WINDOWS_KERNEL_PREFIXES)


def normalize_kernel(kernel: str) -> str:
    """Lower-case *kernel* and truncate Windows-like values to ``name-MAJOR.MINOR``."""
    kernel = kernel.lower()
    if kernel == "linux" or kernel in BSD_LIKE_KERNELS:
        return kernel
    if is_windows_kernel(kernel):
        match = None
        if WINDOWS_KERNEL_PATTERN.fullmatch(kernel):
            match = WINDOWS_KERNEL_TRUNCATE.match(kernel)
        if match is None:
            raise UnsupportedPlatformError(
                "unsupported kernel, sorry!",
                context={"kernel": kernel},
            )
        return match.group(1)
    raise UnsupportedPlatformError("unsupported kernel, sorry!", context={"kernel": kernel})


def infer_docker_image(arch: str) -> str:
    image = DOCKER_IMAGE_BY_ARCH.get(arch)
    if image is None:
        raise UnsupportedPlatformError(
            "unable to infer docker image",
            hint="Please specify explicitly with `-i IMAGE`.",
            context={"arch": arch},
        )
    return image


def ensure_docker_command(command: str) -> None:
    if "/" in command:
        if not (os.path.isfile(command) and os.access(command, os.X_OK)):
            raise ToolMissingError(f"not an executable file: {command}")
    elif which(command) is None:
        raise ToolMissingError(f"command not found: {command}")


def resolve_config(
    *,
    arch: str | None = None,
    cpu: str | None = None,
    kernel: str | None = None,
    docker_command: str | None = None,
    docker_image: str | None = None,
    install_tools: bool = False,
    download_deps: bool = False,
) -> BuildConfig:
    """Resolve raw CLI values and host defaults into a validated :class:`BuildConfig`."""
    if docker_image and not docker_command:
        raise UsageError("cannot use -i without -d")

    arch = normalize_arch(arch or host_arch())
    if not cpu:
        cpu = infer_cpu(arch)
    kernel = normalize_kernel(kernel or host_kernel())

    if kernel == "linux":
        if docker_command:
            ensure_docker_command(docker_command)
            if not docker_image:
                docker_image = infer_docker_image(arch)
    elif kernel in BSD_LIKE_KERNELS:
        if docker_command:
            raise UnsupportedPlatformError(f"docker (-d) is not supported on {kernel}")
    else:
        if docker_command:
            raise UnsupportedPlatformError("docker (-d) is not supported on windows")
        if install_tools and kernel.startswith("cygwin_nt-"):
            raise UnsupportedPlatformError("-s is not supported on cygwin")

    return BuildConfig(
        kernel=kernel,
        arch=arch,
        cpu=cpu,
        docker_command=docker_command or None,
        docker_image=docker_image or None,
        install_tools=install_tools,
        download_deps=download_deps,
    )
