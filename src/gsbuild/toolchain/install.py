"""Build tool installation recipes for ``-s``."""

from __future__ import annotations

import logging

from gsbuild.errors import ConfigurationError, ToolMissingError
from gsbuild.process import run_command, try_command, which

logger = logging.getLogger(__name__)

Recipe = tuple[tuple[str, ...], ...]

APK_RECIPE: Recipe = (
    ("apk", "update"),
    ("apk", "add", "binutils", "cmake", "gcc", "g++", "git", "make", "musl-dev", "perl-utils"),
)
APT_RECIPE: Recipe = (
    ("apt-get", "update"),
    ("apt-get", "install", "-y", "binutils", "cmake", "gcc", "g++", "make", "wget"),
)
PKG_RECIPE: Recipe = (("pkg", "install", "-y", "cmake", "gmake", "binutils", "git", "perl5", "wget"),)
PKG_ADD_RECIPE: Recipe = (("pkg_add", "cmake", "gmake", "gcc", "g++", "git", "wget"),)
PKGIN_RECIPE: Recipe = (("pkgin", "-y", "install", "cmake", "gmake", "binutils", "git"),)
MACPORTS_RECIPE: Recipe = (("sudo", "port", "-N", "install", "libiconv", "cmake", "wget"),)
PACMAN_RECIPE: Recipe = (
    ("pacman", "-Syu", "--noconfirm"),
    ("pacman", "-S", "--needed", "--noconfirm", "binutils", "cmake", "gcc", "git", "make", "perl"),
)
BREW_FORMULAE: tuple[str, ...] = ("libiconv", "cmake", "git", "wget")


def install_recipe(kernel: str) -> Recipe:
    """Return the package manager commands that provision build tools on *kernel*."""
    if kernel == "linux":
        if which("apk") is not None:
            return APK_RECIPE
        if which("apt-get") is not None:
            return APT_RECIPE
        raise ToolMissingError("-s is not supported on this system", installable=False)
    if kernel in ("freebsd", "dragonfly"):
        return PKG_RECIPE
    if kernel == "openbsd":
        return PKG_ADD_RECIPE
    if kernel == "netbsd":
        return PKGIN_RECIPE
    if kernel == "darwin":
        return _darwin_recipe()
    if kernel.startswith(("msys", "mingw")):
        return PACMAN_RECIPE
    raise ConfigurationError(f"unhandled kernel: {kernel}")


def install_build_tools(kernel: str) -> None:
    recipe = install_recipe(kernel)
    logger.info("Installing build tools...")
    for argv in recipe:
        run_command(argv, operation="install_tools", error=ToolMissingError, capture=False)


def _darwin_recipe() -> Recipe:
    if which("make") is None or which("gcc") is None:
        raise ToolMissingError(
            "please run 'xcode-select --install' and retry",
            installable=False,
        )
    if which("port") is not None:
        return MACPORTS_RECIPE
    if which("brew") is not None:
        recipe: list[tuple[str, ...]] = []
        for formula in BREW_FORMULAE:
            installed = try_command(["brew", "ls", "--version", formula]) is not None
            recipe.append(("brew", "upgrade" if installed else "install", formula))
        return tuple(recipe)
    raise ToolMissingError("please install MacPorts or Homebrew and retry", installable=False)
