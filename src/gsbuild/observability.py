"""Structured build records and the published artifact's provenance report."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import cbor2


@dataclass(slots=True)
class StructuredLogger:
    records: list[dict[str, Any]] = field(default_factory=list)

    def log(
        self,
        *,
        operation: str,
        phase: str | None,
        message: str,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "phase": phase,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)

    def records_for_phase(self, phase: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("phase") == phase]

    def phases(self) -> list[str]:
        """Phases in the order they were first reached."""
        seen: list[str] = []
        for record in self.records:
            phase = record.get("phase")
            if phase is not None and phase not in seen:
                seen.append(phase)
        return seen

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path


@dataclass(frozen=True, slots=True)
class BuildReport:
    """What went into a published binary.

    Work-area paths and delegation settings are left out so that two builds from the same
    inputs, on the host or inside a container, produce identical reports.
    """

    config: dict[str, str]
    dependency: dict[str, str]
    toolchain: dict[str, object]
    artifact_sha256: str
    schema_version: int = 1

    def to_json(self, path: str | Path | None = None) -> str:
        encoded = json.dumps(self._payload(), indent=2, sort_keys=True) + "\n"
        if path is not None:
            _atomic_write(Path(path), encoded.encode("utf-8"))
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self._payload(), canonical=True)
        if path is not None:
            _atomic_write(Path(path), encoded)
        return encoded

    def _payload(self) -> dict[str, object]:
        return {
            "schema_version": self.schema_version,
            "config": dict(sorted(self.config.items())),
            "dependency": dict(sorted(self.dependency.items())),
            "toolchain": dict(sorted(self.toolchain.items())),
            "artifact_sha256": self.artifact_sha256,
        }


def _atomic_write(path: Path, payload: bytes) -> None:
    temp_path = path.with_name(f"{path.name}.tmp")
    temp_path.write_bytes(payload)
    os.replace(temp_path, path)
