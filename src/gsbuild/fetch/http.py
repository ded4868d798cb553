"""Integrity-enforced dependency tarball retrieval."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from gsbuild.errors import DependencyFetchError
from gsbuild.fetch.digest import DIGEST_TOOLS, DigestTool, verify_sha256
from gsbuild.models import DependencySpec
from gsbuild.process import try_command, which

logger = logging.getLogger(__name__)

# Tried in order; BusyBox wget rejects --no-config.
WGET_VARIANTS: tuple[tuple[str, ...], ...] = (
    ("wget", "--no-config", "-qO-", "--"),
    ("wget", "-qO-", "--"),
)


def download(url: str, *, dest: Path, install_tools: bool = False) -> None:
    """Stream *url* into *dest*, trying each wget variant until one succeeds."""
    if which("wget") is None:
        if install_tools:
            raise DependencyFetchError("wget not found", hint="wget should have been installed by -s.")
        raise DependencyFetchError("command not found: wget")

    dest.parent.mkdir(parents=True, exist_ok=True)
    for variant in WGET_VARIANTS:
        with dest.open("wb") as out:
            completed = try_command([*variant, url], stdout=out)
        if completed is not None:
            return
        logger.debug("%s failed for %s", " ".join(variant), url)

    dest.unlink(missing_ok=True)
    raise DependencyFetchError(
        "failed to download dependency tarball",
        hint="Check network access, or place the tarball under deps/ manually.",
        context={
            "url": url,
            "wget": which("wget") or "",
            "deps_dir": str(dest.parent),
            "deps_dir_writable": str(os.access(dest.parent, os.W_OK)),
        },
    )


def fetch_dependency(
    spec: DependencySpec,
    *,
    download_deps: bool,
    install_tools: bool = False,
    display_name: str | None = None,
    tools: tuple[DigestTool, ...] = DIGEST_TOOLS,
) -> Path:
    """Return the verified cache path of *spec*, downloading it first when allowed.

    The tarball only becomes visible at its cache path through an atomic rename, and its
    hash is checked on every call whether it was just downloaded or already cached.
    """
    display_name = display_name or str(spec.cache_path)
    if not spec.cache_path.exists():
        if not download_deps:
            raise DependencyFetchError(
                f"file not found: {display_name}",
                hint="Rerun with -w to download dependencies automatically.",
            )
        logger.info("Downloading %s ...", spec.source_url)
        download(spec.source_url, dest=spec.temp_path, install_tools=install_tools)
        os.replace(spec.temp_path, spec.cache_path)

    verify_sha256(spec.cache_path, expected=spec.sha256, display_name=display_name, tools=tools)
    return spec.cache_path
