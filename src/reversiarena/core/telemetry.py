"""TelemetryLogger — JSONL match logging.

One logger per match. Writes one JSONL line per accepted ply plus a match
summary as the final line. All entries include schema version and match ID.
"""

import json
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path

import reversiarena

_SCHEMA_VERSION = "1.0.0"


@dataclass
class PlyEntry:
    """One ply of match telemetry."""

    step: int
    match_number: int
    color: str
    agent: str
    team_id: int
    role: str
    position: str  # cell name or "pass"
    flipped: list[str]
    auto_pass: bool
    black_count: int
    white_count: int
    violations: int = 0


class TelemetryLogger:
    """Writes JSONL telemetry for a single match."""

    def __init__(self, output_dir: Path, match_id: str):
        self._output_dir = Path(output_dir)
        self._match_id = match_id
        self._output_dir.mkdir(parents=True, exist_ok=True)
        self._file_path = self._output_dir / f"{match_id}.jsonl"

    @property
    def file_path(self) -> Path:
        return self._file_path

    @property
    def match_id(self) -> str:
        return self._match_id

    def log_ply(self, entry: PlyEntry) -> None:
        record = asdict(entry)
        record["schema_version"] = _SCHEMA_VERSION
        record["match_id"] = self._match_id
        record["timestamp"] = datetime.now(timezone.utc).isoformat()
        self._append(record)

    def finalize_match(
        self,
        piece_counts: dict[str, int],
        winner: str | None,
        tallies: dict,
        fidelity: dict,
        extra: dict | None = None,
    ) -> None:
        record = {
            "schema_version": _SCHEMA_VERSION,
            "record_type": "match_summary",
            "match_id": self._match_id,
            "piece_counts": piece_counts,
            "winner": winner,
            "tallies": tallies,
            "fidelity_report": fidelity,
            "engine_version": reversiarena.__version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if extra:
            record.update(extra)
        self._append(record)

    def _append(self, record: dict) -> None:
        with open(self._file_path, "a") as f:
            f.write(json.dumps(record, default=str) + "\n")
