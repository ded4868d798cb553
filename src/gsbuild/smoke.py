"""Functional validation of a freshly built gitstatusd.

The daemon speaks a line-oriented protocol: request fields are separated by the unit
separator (``0x1f``) and each request ends with the record separator (``0x1e``). Two
literal exchanges are checked, one against a throwaway repository and one against an
empty path.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from gsbuild.errors import SmokeTestFailure
from gsbuild.process import run_command

logger = logging.getLogger(__name__)

US = "\x1f"
RS = "\x1e"
REQUEST_ID = "hello"

FIXTURE_BRANCH = "master"
FIXTURE_USER_NAME = "Your Name"
FIXTURE_USER_EMAIL = "you@example.com"


@dataclass(frozen=True, slots=True)
class SmokeFixture:
    path: Path
    home: Path
    branch: str = FIXTURE_BRANCH


def git_env(home: Path) -> dict[str, str]:
    """Environment that keeps git away from the host's system and user configuration."""
    env = dict(os.environ)
    for key in ("GIT_DIR", "GIT_WORK_TREE", "GIT_CONFIG_GLOBAL", "GIT_CONFIG_SYSTEM"):
        env.pop(key, None)
    env.update(
        {
            "HOME": str(home),
            "XDG_CONFIG_HOME": str(home),
            "GIT_CONFIG_NOSYSTEM": "1",
        }
    )
    return env


def create_fixture(workdir: Path, *, branch: str = FIXTURE_BRANCH) -> SmokeFixture:
    repo = workdir / "repo"
    repo.mkdir()
    (workdir / ".gitconfig").write_text(
        f"[init]\n  defaultBranch = {branch}\n",
        encoding="utf-8",
    )
    env = git_env(workdir)
    for argv in (
        ["git", "init"],
        ["git", "config", "user.name", FIXTURE_USER_NAME],
        ["git", "config", "user.email", FIXTURE_USER_EMAIL],
        [
            "git",
            "commit",
            "--allow-empty",
            "--allow-empty-message",
            "--no-gpg-sign",
            "-m",
            "",
        ],
    ):
        run_command(argv, cwd=repo, env=env, operation="smoke_fixture", error=SmokeTestFailure)
    return SmokeFixture(path=repo, home=workdir, branch=branch)


def encode_request(path: str) -> bytes:
    return f"{REQUEST_ID}{US}{path}{RS}".encode()


def parse_response(raw: bytes) -> list[str]:
    """Return the fields of the first response record."""
    record = raw.decode("utf-8", "replace").split(RS, 1)[0]
    return record.split(US)


def check_repo_response(fields: list[str], *, fixture: SmokeFixture) -> None:
    ok = (
        len(fields) >= 4
        and fields[0] == REQUEST_ID
        and fields[1] == "1"
        and fields[2].rstrip("/").endswith(f"/{fixture.path.name}")
        and fixture.branch in fields[3:]
    )
    if not ok:
        raise SmokeTestFailure(
            "invalid gitstatusd response for a git repo",
            context={"response": _printable(fields)},
        )


def check_non_repo_response(fields: list[str]) -> None:
    if len(fields) < 2 or fields[0] != REQUEST_ID or fields[1] != "0":
        raise SmokeTestFailure(
            "invalid gitstatusd response for a non-repo",
            context={"response": _printable(fields)},
        )


def query(binary: Path, path: str) -> list[str]:
    completed = run_command(
        [str(binary)],
        input=encode_request(path),
        operation="smoke_test",
        error=SmokeTestFailure,
    )
    return parse_response(completed.stdout)


def run_smoke_test(binary: Path, *, workdir: Path) -> SmokeFixture:
    logger.info("Testing %s ...", binary.name)
    fixture = create_fixture(workdir)
    check_repo_response(query(binary, str(fixture.path)), fixture=fixture)
    check_non_repo_response(query(binary, ""))
    return fixture


def _printable(fields: list[str]) -> str:
    return "<US>".join(fields)
