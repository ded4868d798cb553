import json
from pathlib import Path
from typing import Any, cast

import cbor2

from gsbuild.observability import BuildReport, StructuredLogger


def test_report_json_is_sorted_and_stable(tmp_path: Path) -> None:
    first = _report().to_json(tmp_path / "a.json")
    second = _report().to_json(tmp_path / "b.json")

    assert first == second
    payload = _read_json(tmp_path / "a.json")
    assert list(payload) == sorted(payload)
    assert payload["schema_version"] == 1
    assert not list(tmp_path.glob("*.tmp"))


def test_report_cbor_is_canonical_and_matches_json(tmp_path: Path) -> None:
    path = tmp_path / "gitstatusd.build.cbor"

    encoded = _report().to_cbor(path)

    assert encoded == _report().to_cbor()
    assert path.read_bytes() == encoded
    assert cbor2.loads(encoded) == json.loads(_report().to_json())


def test_structured_logger_filters_by_phase(tmp_path: Path) -> None:
    events = StructuredLogger()
    events.log(operation="build", phase="probe", message="toolchain probed", extra={"static": "static-pie"})
    events.log(operation="build", phase="fetch", message="libgit2 1.0 verified")

    assert [record["message"] for record in events.records_for_phase("fetch")] == ["libgit2 1.0 verified"]

    output = events.to_json_lines(tmp_path / "logs" / "build.jsonl")
    lines = output.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert json.loads(lines[0])["extra"] == {"static": "static-pie"}


def _report() -> BuildReport:
    return BuildReport(
        config={"kernel": "linux", "arch": "x86_64", "cpu": "x86-64"},
        dependency={"name": "libgit2", "version": "1.0", "sha256": "0" * 64},
        toolchain={"compiler": "cc", "cflags": ["-march=x86-64"], "static_link_mode": "static-pie"},
        artifact_sha256="f" * 64,
    )


def _read_json(path: Path) -> dict[str, Any]:
    parsed = json.loads(path.read_text(encoding="utf-8"))
    return cast(dict[str, Any], parsed)
