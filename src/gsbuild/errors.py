"""Typed build error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used by the CLI and the build report."""

    USAGE = "E_USAGE"
    UNSUPPORTED_PLATFORM = "E_UNSUPPORTED_PLATFORM"
    TOOL_MISSING = "E_TOOL_MISSING"
    CONFIGURATION = "E_CONFIGURATION"
    DEPENDENCY_FETCH = "E_DEPENDENCY_FETCH"
    INTEGRITY = "E_INTEGRITY"
    COMPILE = "E_COMPILE"
    SMOKE_TEST = "E_SMOKE_TEST"
    DELEGATION = "E_DELEGATION"
    INTERRUPTED = "E_INTERRUPTED"


class BuildError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            width = max(len(k) for k in self.context)
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k.ljust(width)}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class UsageError(BuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.USAGE, hint=hint, context=context)


class UnsupportedPlatformError(BuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.UNSUPPORTED_PLATFORM, hint=hint, context=context)


class ToolMissingError(BuildError):
    """A required external command is absent.

    ``installable`` is False when ``-s`` was requested and the tool should already have
    been installed, which makes the failure an internal one rather than a user action item.
    """

    installable: bool

    def __init__(
        self,
        message: str,
        *,
        installable: bool = True,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.TOOL_MISSING, hint=hint, context=context)
        self.installable = installable


class ConfigurationError(BuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CONFIGURATION, hint=hint, context=context)


class DependencyFetchError(BuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.DEPENDENCY_FETCH, hint=hint, context=context)


class IntegrityError(BuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.INTEGRITY, hint=hint, context=context)


class CompileError(BuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.COMPILE, hint=hint, context=context)


class SmokeTestFailure(BuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.SMOKE_TEST, hint=hint, context=context)


class DelegationError(BuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.DELEGATION, hint=hint, context=context)


class BuildInterrupted(BuildError):
    """Raised from a signal handler so scoped cleanup runs before the process exits."""

    signum: int

    def __init__(self, signum: int) -> None:
        super().__init__(
            "Build interrupted by signal.",
            code=ErrorCode.INTERRUPTED,
            context={"signal": str(signum)},
        )
        self.signum = signum


__all__ = [
    "BuildError",
    "BuildInterrupted",
    "CompileError",
    "ConfigurationError",
    "DelegationError",
    "DependencyFetchError",
    "ErrorCode",
    "IntegrityError",
    "SmokeTestFailure",
    "ToolMissingError",
    "UnsupportedPlatformError",
    "UsageError",
]
