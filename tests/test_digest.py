import hashlib
import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pytest

from gsbuild.errors import IntegrityError
from gsbuild.fetch import compute_sha256, normalize_digest, verify_sha256

DIGEST = "9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08"


def test_normalize_digest_strips_escape_prefix_and_lowercases() -> None:
    assert normalize_digest(f"\\{DIGEST.upper()} *weird\\nname") == DIGEST


def test_normalize_digest_reads_last_field_for_bsd_output() -> None:
    assert normalize_digest(f"SHA256 (file.tar.gz) = {DIGEST}", field="last") == DIGEST


def test_normalize_digest_rejects_non_hex() -> None:
    assert normalize_digest("not-a-digest file") is None
    assert normalize_digest("") is None


def test_compute_sha256_falls_back_to_sha256sum(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    available_commands: set[str],
) -> None:
    available_commands.add("sha256sum")
    calls = _fake_tools(monkeypatch, {"sha256sum": f"{DIGEST} *file\n"})

    assert compute_sha256(tmp_path / "file") == DIGEST
    assert [call[0] for call in calls] == ["sha256sum"]


def test_compute_sha256_uses_bsd_sha256(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    available_commands: set[str],
) -> None:
    available_commands.add("sha256")
    _fake_tools(monkeypatch, {"sha256": f"SHA256 (file) = {DIGEST}\n"})

    assert compute_sha256(tmp_path / "file") == DIGEST


def test_compute_sha256_ignores_short_hashalot_output(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    available_commands: set[str],
) -> None:
    available_commands.add("sha256")
    _fake_tools(monkeypatch, {"sha256": "3b1f0ca7\n"})

    with pytest.raises(IntegrityError) as excinfo:
        compute_sha256(tmp_path / "file")

    assert "command not found: shasum or sha256sum" in str(excinfo.value)


def test_compute_sha256_skips_failing_tool(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    available_commands: set[str],
) -> None:
    available_commands.update({"shasum", "sha256sum"})
    _fake_tools(monkeypatch, {"shasum": None, "sha256sum": f"{DIGEST}  file\n"})

    assert compute_sha256(tmp_path / "file") == DIGEST


def test_compute_sha256_skips_tool_that_cannot_start(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    available_commands: set[str],
) -> None:
    available_commands.update({"shasum", "sha256sum"})
    calls = _fake_tools(monkeypatch, {"sha256sum": f"{DIGEST}  file\n"}, unstartable=("shasum",))

    assert compute_sha256(tmp_path / "file") == DIGEST
    assert [call[0] for call in calls] == ["shasum", "sha256sum"]


def test_compute_sha256_without_any_tool(tmp_path: Path, available_commands: set[str]) -> None:
    with pytest.raises(IntegrityError):
        compute_sha256(tmp_path / "file")


@pytest.mark.skipif(
    shutil.which("shasum") is None and shutil.which("sha256sum") is None,
    reason="Requires shasum or sha256sum.",
)
def test_compute_sha256_matches_hashlib(tmp_path: Path) -> None:
    payload = tmp_path / "payload.tar.gz"
    payload.write_bytes(b"gitstatus\x00payload")

    assert compute_sha256(payload) == hashlib.sha256(payload.read_bytes()).hexdigest()


def test_verify_sha256_mismatch_reports_both_digests(tmp_path: Path, hashlib_digests: None) -> None:
    payload = tmp_path / "libgit2.tar.gz"
    payload.write_bytes(b"tampered")
    actual = hashlib.sha256(b"tampered").hexdigest()

    with pytest.raises(IntegrityError) as excinfo:
        verify_sha256(payload, expected="0" * 64, display_name="deps/libgit2.tar.gz")

    rendered = str(excinfo.value)
    assert "sha256 mismatch" in rendered
    assert "0" * 64 in rendered
    assert actual in rendered
    assert "deps/libgit2.tar.gz" in rendered
    assert excinfo.value.code == "E_INTEGRITY"


def _fake_tools(
    monkeypatch: pytest.MonkeyPatch,
    outputs: dict[str, str | None],
    *,
    unstartable: Sequence[str] = (),
) -> list[Sequence[str]]:
    calls: list[Sequence[str]] = []

    def fake_run(argv: Sequence[str], **kwargs: Any) -> subprocess.CompletedProcess[bytes]:
        calls.append(argv)
        if argv[0] in unstartable:
            raise PermissionError(13, "Permission denied", argv[0])
        output = outputs.get(argv[0])
        if output is None:
            return subprocess.CompletedProcess(argv, 1, stdout=b"", stderr=b"failed")
        return subprocess.CompletedProcess(argv, 0, stdout=output.encode(), stderr=b"")

    monkeypatch.setattr("gsbuild.process.subprocess.run", fake_run)
    return calls
