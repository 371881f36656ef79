"""Checklist — the tracked sync work for one revision range.

One entry per changed file. Entries are never removed, only moved between
statuses, and an entry cannot leave "pending" until its verdict is decided.
The checklist is stored as YAML so it can be reviewed and committed
alongside the port.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import yaml

from portsync.errors import ChecklistError
from portsync.models import ChecklistEntry, SyncStatus, TestResult, Verdict

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[SyncStatus, set[SyncStatus]] = {
    SyncStatus.PENDING: {SyncStatus.DONE, SyncStatus.SKIPPED, SyncStatus.GAP},
    SyncStatus.GAP: {SyncStatus.PENDING, SyncStatus.DONE},
    SyncStatus.DONE: {SyncStatus.PENDING},
    SyncStatus.SKIPPED: {SyncStatus.PENDING},
}


@dataclass
class Checklist:
    """All checklist entries for a base..head range, ordered by file path.

    ``base`` and ``head`` are the revisions as the operator named them;
    ``base_sha`` and ``head_sha`` pin the commits they resolved to at plan time.
    """

    base: str
    head: str
    source_root: str = ""
    base_sha: str = ""
    head_sha: str = ""
    entries: list[ChecklistEntry] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    def get(self, path: str) -> ChecklistEntry:
        for entry in self.entries:
            if entry.file == path:
                return entry
        raise ChecklistError(f"No checklist entry for '{path}'")

    def resolve(self, path: str, verdict: Verdict) -> ChecklistEntry:
        """Record the operator's verdict for an entry (typically an ambiguous one)."""
        entry = self.get(path)
        if entry.status != SyncStatus.PENDING and entry.verdict != verdict:
            raise ChecklistError(
                f"'{path}' is {entry.status.value}; reopen it before changing its verdict"
            )
        entry.verdict = verdict
        entry.review_reason = ""
        logger.info("Resolved %s as %s", path, verdict.value)
        return entry

    def transition(self, path: str, status: SyncStatus, note: str = "") -> ChecklistEntry:
        """Move an entry to a new status, enforcing the checklist invariants."""
        entry = self.get(path)
        if status == entry.status:
            if note:
                entry.note = note
            return entry

        if status not in ALLOWED_TRANSITIONS[entry.status]:
            raise ChecklistError(
                f"Cannot move '{path}' from {entry.status.value} to {status.value}"
            )
        if entry.verdict is None and status != SyncStatus.PENDING:
            raise ChecklistError(
                f"'{path}' needs a verdict before leaving pending ({entry.review_reason})"
            )
        if entry.verdict == Verdict.EXCLUDE and status in (SyncStatus.DONE, SyncStatus.GAP):
            raise ChecklistError(f"'{path}' is excluded; it can only be skipped")

        entry.status = status
        if note:
            entry.note = note
        logger.info("%s -> %s", path, status.value)
        return entry

    def record_test(self, path: str, result: TestResult) -> ChecklistEntry:
        entry = self.get(path)
        entry.tests[result.level] = result
        return entry

    def same_range(self, other: Checklist) -> bool:
        """True when both checklists were planned over the same commits."""
        return bool(self.head_sha) and (self.base_sha, self.head_sha, self.source_root) == (
            other.base_sha,
            other.head_sha,
            other.source_root,
        )

    def merge(self, previous: Checklist) -> Checklist:
        """Carry operator decisions from an earlier plan of the same range.

        Verdict resolutions, statuses, notes and test results survive for
        every file still present. Files that disappeared are kept as well,
        since entries are never deleted.
        """
        by_path = {e.file: e for e in previous.entries}
        current_paths = {e.file for e in self.entries}

        for entry in self.entries:
            old = by_path.get(entry.file)
            if old is None:
                continue
            if entry.verdict is None and old.verdict is not None:
                entry.verdict = old.verdict
                entry.review_reason = ""
            if old.verdict == entry.verdict:
                entry.status = old.status
            entry.note = old.note
            entry.tests = old.tests

        for old in previous.entries:
            if old.file not in current_paths:
                logger.warning("%s is no longer in the range; keeping its entry", old.file)
                self.entries.append(old)

        self.entries.sort(key=lambda e: e.file)
        self.created_at = previous.created_at or self.created_at
        return self

    def counts(self) -> dict[str, int]:
        result = {status.value: 0 for status in SyncStatus}
        for entry in self.entries:
            result[entry.status.value] += 1
        result["ambiguous"] = sum(1 for e in self.entries if e.is_ambiguous)
        result["unmapped"] = sum(
            1 for e in self.entries if e.is_unmapped and e.verdict != Verdict.EXCLUDE
        )
        result["total"] = len(self.entries)
        return result

    @property
    def open_entries(self) -> list[ChecklistEntry]:
        return [e for e in self.entries if e.status == SyncStatus.PENDING]

    def to_dict(self) -> dict:
        return {
            "base": self.base,
            "head": self.head,
            "source_root": self.source_root,
            "base_sha": self.base_sha,
            "head_sha": self.head_sha,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "entries": [e.to_dict() for e in self.entries],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Checklist:
        return cls(
            base=data.get("base", ""),
            head=data.get("head", ""),
            source_root=data.get("source_root", ""),
            base_sha=data.get("base_sha", ""),
            head_sha=data.get("head_sha", ""),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
            entries=[ChecklistEntry.from_dict(e) for e in data.get("entries") or []],
        )


class ChecklistStore:
    """Reads and writes the checklist YAML file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Checklist:
        if not self.path.exists():
            raise ChecklistError(f"No checklist at {self.path}; run 'portsync plan' first")
        try:
            with open(self.path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ChecklistError(f"Invalid checklist YAML in {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ChecklistError(f"Checklist {self.path} must be a mapping")
        return Checklist.from_dict(data)

    def save(self, checklist: Checklist) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc).isoformat()
        if not checklist.created_at:
            checklist.created_at = now
        checklist.updated_at = now
        with open(self.path, "w") as f:
            yaml.safe_dump(checklist.to_dict(), f, sort_keys=False)
        logger.debug("Saved checklist with %d entries to %s", len(checklist.entries), self.path)
