"""Presence checks for the external commands a build needs."""

from __future__ import annotations

from gsbuild.errors import ToolMissingError
from gsbuild.models import ToolchainFlags
from gsbuild.process import which

REQUIRED_COMMANDS: tuple[str, ...] = (
    "ar",
    "cmake",
    "git",
    "ld",
    "ln",
    "mkdir",
    "rm",
    "strip",
    "tar",
)


def required_commands(toolchain: ToolchainFlags) -> tuple[str, ...]:
    return (toolchain.compiler, *REQUIRED_COMMANDS, toolchain.make)


def require_tools(commands: tuple[str, ...], *, install_tools: bool) -> None:
    """Fail on the first absent command.

    After ``-s`` every command should have been installed, so a miss is reported as an
    internal error instead of asking the user to install it.
    """
    for command in commands:
        if which(command) is not None:
            continue
        if install_tools:
            raise ToolMissingError(
                f"{command} not found",
                installable=False,
                hint="This is a bug in the tool installation recipe for this system.",
                context={"command": command},
            )
        raise ToolMissingError(
            f"command not found: {command}",
            hint="Install it or rerun with -s to install build tools automatically.",
            context={"command": command},
        )
