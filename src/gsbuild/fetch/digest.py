"""SHA-256 computation through whichever command-line hashing tool is available."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from gsbuild.errors import IntegrityError
from gsbuild.process import try_command, which

logger = logging.getLogger(__name__)

SHA256_HEX_LENGTH = 64
SHA256_PATTERN = re.compile(r"^[0-9a-f]{64}$")


@dataclass(frozen=True, slots=True)
class DigestTool:
    command: str
    args: tuple[str, ...]
    field: Literal["first", "last"] = "first"
    # hashalot also installs a `sha256` binary; its output is shorter and unrelated.
    reject_short: bool = False

    def digest(self, path: Path) -> str | None:
        completed = try_command([self.command, *self.args, str(path)], input=b"")
        if completed is None:
            return None
        output = completed.stdout.decode("utf-8", "replace").strip()
        if self.reject_short and len(output) < SHA256_HEX_LENGTH:
            return None
        return normalize_digest(output, field=self.field)


def normalize_digest(output: str, *, field: Literal["first", "last"] = "first") -> str | None:
    """Reduce a tool's output line to a bare lower-case hex digest."""
    parts = output.split()
    if not parts:
        return None
    candidate = parts[0] if field == "first" else parts[-1]
    # shasum and sha256sum prefix the line with a backslash for escaped file names.
    candidate = candidate.lstrip("\\").lower()
    if not SHA256_PATTERN.fullmatch(candidate):
        return None
    return candidate


DIGEST_TOOLS: tuple[DigestTool, ...] = (
    DigestTool(command="shasum", args=("-b", "-a", "256", "--")),
    DigestTool(command="sha256sum", args=("-b", "--")),
    DigestTool(command="sha256", args=("--",), field="last", reject_short=True),
)


def compute_sha256(path: Path, *, tools: tuple[DigestTool, ...] = DIGEST_TOOLS) -> str:
    for tool in tools:
        if which(tool.command) is None:
            continue
        digest = tool.digest(path)
        if digest is not None:
            logger.debug("sha256 of %s via %s: %s", path, tool.command, digest)
            return digest
    raise IntegrityError(
        "command not found: shasum or sha256sum",
        hint="Install a SHA-256 tool so the dependency tarball can be verified.",
        context={"file": str(path)},
    )


def verify_sha256(
    path: Path,
    *,
    expected: str,
    display_name: str | None = None,
    tools: tuple[DigestTool, ...] = DIGEST_TOOLS,
) -> str:
    actual = compute_sha256(path, tools=tools)
    if actual != expected:
        raise IntegrityError(
            "sha256 mismatch",
            hint="Delete the tarball and refetch it, or update the pinned hash.",
            context={
                "file": display_name or str(path),
                "expected": expected,
                "actual": actual,
            },
        )
    return actual
