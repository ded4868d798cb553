"""Subprocess helpers shared by every build phase."""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import IO

from gsbuild.errors import BuildError, CompileError

logger = logging.getLogger(__name__)

STDERR_TAIL = 2000


def which(command: str) -> str | None:
    return shutil.which(command)


def run_command(
    argv: Sequence[str],
    *,
    operation: str,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    input: bytes | None = None,
    error: type[BuildError] = CompileError,
    capture: bool = True,
) -> subprocess.CompletedProcess[bytes]:
    """Run *argv* and raise *error* with the stderr tail when it exits non-zero.

    With ``capture=False`` the command's output streams straight to the terminal, which
    is what long compiler runs want.
    """
    command = [str(arg) for arg in argv]
    logger.debug("+ %s", " ".join(command))
    try:
        completed = subprocess.run(
            command,
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            input=input,
            capture_output=capture,
            check=False,
        )
    except OSError as exc:
        raise error(
            f"cannot run {command[0]}.",
            context={"operation": operation, "command": " ".join(command), "reason": str(exc)},
        ) from exc
    if completed.returncode != 0:
        stderr = completed.stderr or b""
        raise error(
            f"{command[0]} failed.",
            context={
                "operation": operation,
                "command": " ".join(command),
                "returncode": str(completed.returncode),
                "stderr": stderr[-STDERR_TAIL:].decode("utf-8", "replace").strip(),
            },
        )
    return completed


def try_command(
    argv: Sequence[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    input: bytes | None = None,
    stdout: IO[bytes] | None = None,
) -> subprocess.CompletedProcess[bytes] | None:
    """Run *argv* quietly and return the result, or None when it fails or cannot start.

    Output is captured unless *stdout* names a file to stream it into.
    """
    command = [str(arg) for arg in argv]
    try:
        completed = subprocess.run(
            command,
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            input=input,
            stdout=subprocess.PIPE if stdout is None else stdout,
            stderr=subprocess.PIPE,
            check=False,
        )
    except OSError as exc:
        logger.debug("cannot run %s: %s", command[0], exc)
        return None
    if completed.returncode != 0:
        return None
    return completed
