"""Typed interfaces for the dependency and application builders."""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from gsbuild.models import BuildConfig, ToolchainFlags
from gsbuild.toolchain.probe import ToolchainEnv

DEFAULT_JOBS = 8


def detect_jobs() -> int:
    return os.cpu_count() or DEFAULT_JOBS


def join_flags(user: str, flags: Sequence[str]) -> str:
    """Prepend the user's raw flag string to *flags* without re-splitting it."""
    generated = " ".join(flags)
    if not user.strip():
        return generated
    return f"{user} {generated}" if generated else user


@dataclass(frozen=True, slots=True)
class BuildContext:
    config: BuildConfig
    toolchain: ToolchainFlags
    env: ToolchainEnv
    workdir: Path
    project_dir: Path
    jobs: int = DEFAULT_JOBS

    def subprocess_env(self, **overrides: str) -> dict[str, str]:
        merged = dict(os.environ)
        merged.update(overrides)
        return merged


class Builder(Protocol):
    name: str

    def build(self, ctx: BuildContext) -> Path:
        """Compile and return the path of the produced output."""
