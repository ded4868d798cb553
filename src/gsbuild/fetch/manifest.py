"""Dependency manifest (``build.info``) parser."""

from __future__ import annotations

import shlex
from pathlib import Path

from gsbuild.errors import ConfigurationError
from gsbuild.models import APP_NAME, DependencySpec

MANIFEST_NAME = "build.info"
DEPS_DIR = "deps"

SOURCE_URLS: dict[str, str] = {
    "libgit2": "https://github.com/romkatv/libgit2/archive/{version}.tar.gz",
}


def parse_manifest(raw: str) -> dict[str, str]:
    """Parse shell-style ``name=value`` assignments, ignoring comments and blank lines."""
    values: dict[str, str] = {}
    for lineno, line in enumerate(raw.splitlines(), start=1):
        try:
            tokens = shlex.split(line, comments=True)
        except ValueError as exc:
            raise ConfigurationError(
                "Invalid manifest line.",
                context={"line": str(lineno), "reason": str(exc)},
            ) from exc
        for token in tokens:
            name, sep, value = token.partition("=")
            if not sep or not name.isidentifier():
                raise ConfigurationError(
                    "Invalid manifest assignment.",
                    context={"line": str(lineno), "token": token},
                )
            values[name] = value
    return values


def read_manifest(project_dir: Path) -> dict[str, str]:
    path = project_dir / MANIFEST_NAME
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigurationError(
            "Dependency manifest does not exist.",
            context={"path": str(path)},
        ) from exc
    return parse_manifest(raw)


def dependency_spec(
    manifest: dict[str, str],
    *,
    name: str,
    project_dir: Path,
) -> DependencySpec:
    version = manifest.get(f"{name}_version", "")
    if not version:
        raise ConfigurationError(f"{name}_version not set")
    sha256 = manifest.get(f"{name}_sha256", "")
    if not sha256:
        raise ConfigurationError(f"{name}_sha256 not set")

    deps_dir = project_dir / DEPS_DIR
    return DependencySpec(
        name=name,
        version=version,
        sha256=sha256,
        cache_path=deps_dir / f"{name}-{version}.tar.gz",
        source_url=SOURCE_URLS[name].format(version=version),
        temp_path=deps_dir / f"{APP_NAME}.{name}.tmp",
    )
