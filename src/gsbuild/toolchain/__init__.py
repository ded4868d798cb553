"""Toolchain discovery, tool presence checks and build tool installation."""

from .install import install_build_tools, install_recipe
from .kernels import KERNEL_PROFILES, kernel_profile
from .probe import FLAG_PROBES, FlagProbe, ToolchainEnv, probe_flag, probe_toolchain
from .tools import REQUIRED_COMMANDS, require_tools, required_commands

__all__ = [
    "FLAG_PROBES",
    "FlagProbe",
    "KERNEL_PROFILES",
    "REQUIRED_COMMANDS",
    "ToolchainEnv",
    "install_build_tools",
    "install_recipe",
    "kernel_profile",
    "probe_flag",
    "probe_toolchain",
    "require_tools",
    "required_commands",
]
