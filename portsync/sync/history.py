"""Sync history — append-only record of completed sync cycles.

The head of the last completed sync becomes the default base for the next
planning run, so each cycle diffs from where the previous one stopped.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path


@dataclass
class SyncRecord:
    """One completed sync cycle."""

    base: str
    head: str
    source_root: str = ""
    head_sha: str = ""
    finished_at: str = ""
    counts: dict[str, int] = field(default_factory=dict)


class SyncHistory:
    """Stores and retrieves sync records in a JSONL file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def record(self, record: SyncRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        if not record.finished_at:
            record.finished_at = datetime.now(timezone.utc).isoformat()

        with open(self.path, "a") as f:
            f.write(json.dumps(asdict(record)) + "\n")

    def get_history(self) -> list[SyncRecord]:
        if not self.path.exists():
            return []

        records = []
        with open(self.path) as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                data = json.loads(line)
                records.append(
                    SyncRecord(
                        base=data["base"],
                        head=data["head"],
                        source_root=data.get("source_root", ""),
                        head_sha=data.get("head_sha", ""),
                        finished_at=data.get("finished_at", ""),
                        counts=data.get("counts", {}),
                    )
                )
        return records

    def get_latest(self) -> SyncRecord | None:
        history = self.get_history()
        return history[-1] if history else None

    def last_head(self) -> str:
        """Revision to use as the next base: the pinned SHA if known, else the head name."""
        latest = self.get_latest()
        if not latest:
            return ""
        return latest.head_sha or latest.head
