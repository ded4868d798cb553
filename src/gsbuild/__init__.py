"""Public package entrypoint for the gitstatusd build orchestrator."""

from .errors import (
    BuildError,
    BuildInterrupted,
    CompileError,
    ConfigurationError,
    DelegationError,
    DependencyFetchError,
    ErrorCode,
    IntegrityError,
    SmokeTestFailure,
    ToolMissingError,
    UnsupportedPlatformError,
    UsageError,
)
from .models import BuildConfig, BuildResult, DependencySpec, ToolchainFlags
from .orchestrator import build
from .platforms import resolve_config

__all__ = [
    "BuildConfig",
    "BuildError",
    "BuildInterrupted",
    "BuildResult",
    "CompileError",
    "ConfigurationError",
    "DelegationError",
    "DependencyFetchError",
    "DependencySpec",
    "ErrorCode",
    "IntegrityError",
    "SmokeTestFailure",
    "ToolMissingError",
    "ToolchainFlags",
    "UnsupportedPlatformError",
    "UsageError",
    "build",
    "resolve_config",
]
