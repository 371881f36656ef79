"""Core data models for a sync cycle.

Covers: changed files from the inventory, mapping rules, classification
verdicts, test results, and the checklist entries that track sync work.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ChangeKind(Enum):
    """How a file changed between base and head."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class Verdict(Enum):
    """Whether a change gets mirrored into the target codebase."""

    MIRROR = "mirror"
    EXCLUDE = "exclude"


class SyncStatus(Enum):
    """Progress of a single checklist entry."""

    PENDING = "pending"
    DONE = "done"
    SKIPPED = "skipped"
    GAP = "gap"  # Target has no equivalent yet


class TestLevel(Enum):
    UNIT = "unit"
    INTEGRATION = "integration"
    E2E = "e2e"


class TestOutcome(Enum):
    PASSED = "passed"
    FAILED = "failed"
    NOT_RUN = "not_run"
    NOT_APPLICABLE = "not_applicable"


# pytest would otherwise try to collect these as test classes
TestLevel.__test__ = False
TestOutcome.__test__ = False


# --- Inventory ---


@dataclass(frozen=True)
class ChangedFile:
    """A single file changed in the revision range."""

    path: str
    kind: ChangeKind
    hunks: tuple[str, ...] = ()
    old_path: str | None = None  # Set on renames
    insertions: int = 0
    deletions: int = 0


# --- Mapping ---


@dataclass(frozen=True)
class MappingRule:
    """Rewrite a source prefix into a target prefix."""

    source_prefix: str
    target_prefix: str

    def matches(self, path: str) -> bool:
        return path.startswith(self.source_prefix)


@dataclass(frozen=True)
class ExtensionRule:
    """Rewrite a file suffix, e.g. ``.py`` into ``.rs``."""

    source_suffix: str
    target_suffix: str

    def matches(self, path: str) -> bool:
        return path.endswith(self.source_suffix)


@dataclass(frozen=True)
class MappingResult:
    """Outcome of mapping one source path.

    ``target`` is None when no rule matched; no path is ever guessed.
    """

    source: str
    target: str | None = None
    rule: MappingRule | None = None
    extension_rule: ExtensionRule | None = None

    @property
    def mapped(self) -> bool:
        return self.target is not None


# --- Tests ---


@dataclass
class TestResult:
    """Result of running one level of target tests for an entry."""

    __test__ = False

    level: TestLevel
    outcome: TestOutcome = TestOutcome.NOT_RUN
    command: str = ""
    cases: dict[str, bool] = field(default_factory=dict)  # test name -> passed
    duration_ms: int = 0
    error: str = ""

    @property
    def passed_count(self) -> int:
        return sum(1 for ok in self.cases.values() if ok)

    @property
    def failed_count(self) -> int:
        return sum(1 for ok in self.cases.values() if not ok)

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "outcome": self.outcome.value,
            "command": self.command,
            "cases": dict(self.cases),
            "duration_ms": self.duration_ms,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict) -> TestResult:
        return cls(
            level=TestLevel(data["level"]),
            outcome=TestOutcome(data.get("outcome", "not_run")),
            command=data.get("command", ""),
            cases=dict(data.get("cases") or {}),
            duration_ms=data.get("duration_ms", 0),
            error=data.get("error", ""),
        )


def _default_tests() -> dict[TestLevel, TestResult]:
    return {level: TestResult(level=level) for level in TestLevel}


# --- Checklist ---


@dataclass
class ChecklistEntry:
    """A tracked unit of sync work for one changed file."""

    file: str
    kind: ChangeKind
    summary: str = ""
    target: str | None = None
    verdict: Verdict | None = None  # None while classification is ambiguous
    status: SyncStatus = SyncStatus.PENDING
    review_reason: str = ""
    rule: str = ""  # Source prefix of the mapping rule used
    note: str = ""
    tests: dict[TestLevel, TestResult] = field(default_factory=_default_tests)

    @property
    def is_ambiguous(self) -> bool:
        return self.verdict is None

    @property
    def is_unmapped(self) -> bool:
        return self.target is None

    def to_dict(self) -> dict:
        return {
            "file": self.file,
            "kind": self.kind.value,
            "summary": self.summary,
            "target": self.target,
            "verdict": self.verdict.value if self.verdict else None,
            "status": self.status.value,
            "review_reason": self.review_reason,
            "rule": self.rule,
            "note": self.note,
            "tests": [self.tests[level].to_dict() for level in TestLevel],
        }

    @classmethod
    def from_dict(cls, data: dict) -> ChecklistEntry:
        tests = _default_tests()
        for raw in data.get("tests") or []:
            result = TestResult.from_dict(raw)
            tests[result.level] = result
        verdict = data.get("verdict")
        return cls(
            file=data["file"],
            kind=ChangeKind(data.get("kind", "modified")),
            summary=data.get("summary", ""),
            target=data.get("target"),
            verdict=Verdict(verdict) if verdict else None,
            status=SyncStatus(data.get("status", "pending")),
            review_reason=data.get("review_reason", ""),
            rule=data.get("rule", ""),
            note=data.get("note", ""),
            tests=tests,
        )
