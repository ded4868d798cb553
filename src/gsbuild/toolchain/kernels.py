"""Static per-kernel tool selection."""

from __future__ import annotations

from gsbuild.errors import ConfigurationError
from gsbuild.models import KernelProfile

KERNEL_PROFILES: dict[str, KernelProfile] = {
    "linux": KernelProfile(),
    "freebsd": KernelProfile(cc="clang", cxx="clang++", make="gmake"),
    "dragonfly": KernelProfile(cxx="clang++12", make="gmake"),
    "openbsd": KernelProfile(cxx="eg++", make="gmake"),
    "netbsd": KernelProfile(make="gmake"),
    "darwin": KernelProfile(reproducible=False, static=False, iconv=True),
}

_WINDOWS_PROFILE = KernelProfile()
_WINDOWS_PREFIXES = ("msys", "mingw", "cygwin")


def kernel_profile(kernel: str) -> KernelProfile:
    profile = KERNEL_PROFILES.get(kernel)
    if profile is not None:
        return profile
    if kernel.startswith(_WINDOWS_PREFIXES):
        return _WINDOWS_PROFILE
    raise ConfigurationError(f"unhandled kernel: {kernel}")
