"""Shared test fixtures."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from gsbuild.models import BuildConfig


@pytest.fixture
def linux_config() -> BuildConfig:
    return BuildConfig(kernel="linux", arch="x86_64", cpu="x86-64")


@pytest.fixture
def available_commands(monkeypatch: pytest.MonkeyPatch) -> set[str]:
    """Pretend only the commands added to the returned set are on PATH."""
    commands: set[str] = set()
    monkeypatch.setattr(
        "gsbuild.process.shutil.which",
        lambda name: f"/usr/bin/{name}" if name in commands else None,
    )
    return commands


@pytest.fixture
def hashlib_digests(monkeypatch: pytest.MonkeyPatch) -> None:
    """Compute tarball hashes in-process instead of through shasum/sha256sum."""

    def compute(path: Path, **_: object) -> str:
        return hashlib.sha256(path.read_bytes()).hexdigest()

    monkeypatch.setattr("gsbuild.fetch.digest.compute_sha256", compute)
