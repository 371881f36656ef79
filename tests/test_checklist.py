"""Tests for checklist transitions, merging, and persistence."""

import tempfile
from pathlib import Path

import pytest

from portsync.errors import ChecklistError
from portsync.models import (
    ChangeKind,
    ChecklistEntry,
    SyncStatus,
    TestLevel,
    TestOutcome,
    TestResult,
    Verdict,
)
from portsync.sync.checklist import Checklist, ChecklistStore


def _checklist():
    return Checklist(
        base="v1",
        head="v2",
        source_root="src/kimi_cli",
        entries=[
            ChecklistEntry(
                file="src/kimi_cli/llm.py",
                kind=ChangeKind.MODIFIED,
                summary="modified +1/-1",
                target="rust/kagent/src/llm.rs",
                verdict=Verdict.MIRROR,
                rule="src/kimi_cli/",
            ),
            ChecklistEntry(
                file="src/kimi_cli/soul/agent.py",
                kind=ChangeKind.MODIFIED,
                target="rust/kagent/src/soul/agent.rs",
                review_reason="in-scope path but changed lines match '\\blogin\\b'",
            ),
            ChecklistEntry(
                file="src/kimi_cli/ui/shell.py",
                kind=ChangeKind.MODIFIED,
                target="rust/kagent/src/ui/shell.rs",
                verdict=Verdict.EXCLUDE,
                status=SyncStatus.SKIPPED,
            ),
        ],
    )


def test_new_entry_has_every_test_level_not_run():
    entry = ChecklistEntry(file="a.py", kind=ChangeKind.ADDED)
    assert set(entry.tests) == set(TestLevel)
    assert all(r.outcome == TestOutcome.NOT_RUN for r in entry.tests.values())
    assert entry.status == SyncStatus.PENDING


def test_mark_done():
    checklist = _checklist()
    entry = checklist.transition("src/kimi_cli/llm.py", SyncStatus.DONE, note="ported chat()")
    assert entry.status == SyncStatus.DONE
    assert entry.note == "ported chat()"


def test_ambiguous_entry_cannot_leave_pending():
    checklist = _checklist()
    for status in (SyncStatus.DONE, SyncStatus.SKIPPED, SyncStatus.GAP):
        with pytest.raises(ChecklistError):
            checklist.transition("src/kimi_cli/soul/agent.py", status)
    assert checklist.get("src/kimi_cli/soul/agent.py").status == SyncStatus.PENDING


def test_resolve_then_transition():
    checklist = _checklist()
    entry = checklist.resolve("src/kimi_cli/soul/agent.py", Verdict.MIRROR)
    assert entry.verdict == Verdict.MIRROR
    assert entry.review_reason == ""
    checklist.transition("src/kimi_cli/soul/agent.py", SyncStatus.GAP)
    assert entry.status == SyncStatus.GAP


def test_excluded_entry_cannot_be_done():
    checklist = _checklist()
    checklist.transition("src/kimi_cli/ui/shell.py", SyncStatus.PENDING)
    with pytest.raises(ChecklistError):
        checklist.transition("src/kimi_cli/ui/shell.py", SyncStatus.DONE)


def test_illegal_transition():
    checklist = _checklist()
    checklist.transition("src/kimi_cli/llm.py", SyncStatus.DONE)
    with pytest.raises(ChecklistError):
        checklist.transition("src/kimi_cli/llm.py", SyncStatus.GAP)


def test_reopen_and_change_verdict():
    checklist = _checklist()
    with pytest.raises(ChecklistError):
        checklist.resolve("src/kimi_cli/ui/shell.py", Verdict.MIRROR)
    checklist.transition("src/kimi_cli/ui/shell.py", SyncStatus.PENDING)
    checklist.resolve("src/kimi_cli/ui/shell.py", Verdict.MIRROR)
    checklist.transition("src/kimi_cli/ui/shell.py", SyncStatus.DONE)


def test_unknown_path():
    with pytest.raises(ChecklistError):
        _checklist().get("nope.py")


def test_record_test_replaces_level():
    checklist = _checklist()
    result = TestResult(level=TestLevel.UNIT, outcome=TestOutcome.PASSED, cases={"llm::chat": True})
    entry = checklist.record_test("src/kimi_cli/llm.py", result)
    assert entry.tests[TestLevel.UNIT].outcome == TestOutcome.PASSED
    assert entry.tests[TestLevel.E2E].outcome == TestOutcome.NOT_RUN


def test_counts():
    counts = _checklist().counts()
    assert counts["total"] == 3
    assert counts["pending"] == 2
    assert counts["skipped"] == 1
    assert counts["ambiguous"] == 1
    assert counts["unmapped"] == 0


def test_merge_keeps_operator_decisions():
    previous = _checklist()
    previous.resolve("src/kimi_cli/soul/agent.py", Verdict.MIRROR)
    previous.transition("src/kimi_cli/llm.py", SyncStatus.DONE, note="ported")
    previous.record_test(
        "src/kimi_cli/llm.py", TestResult(level=TestLevel.UNIT, outcome=TestOutcome.PASSED)
    )

    fresh = _checklist()
    fresh.merge(previous)

    llm = fresh.get("src/kimi_cli/llm.py")
    assert llm.status == SyncStatus.DONE
    assert llm.note == "ported"
    assert llm.tests[TestLevel.UNIT].outcome == TestOutcome.PASSED
    assert fresh.get("src/kimi_cli/soul/agent.py").verdict == Verdict.MIRROR


def test_merge_never_drops_entries():
    previous = _checklist()
    fresh = _checklist()
    fresh.entries = fresh.entries[:1]
    fresh.merge(previous)
    assert [e.file for e in fresh.entries] == [e.file for e in previous.entries]


def test_store_round_trip():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ChecklistStore(Path(tmpdir) / ".portsync" / "checklist.yaml")
        assert not store.exists()

        checklist = _checklist()
        checklist.record_test(
            "src/kimi_cli/llm.py",
            TestResult(
                level=TestLevel.INTEGRATION,
                outcome=TestOutcome.FAILED,
                command="cargo test --test '*' llm",
                cases={"llm::chat": True, "llm::stream": False},
                error="exit code 101",
            ),
        )
        store.save(checklist)
        loaded = store.load()

        assert loaded.base == "v1"
        assert loaded.created_at != ""
        assert [e.to_dict() for e in loaded.entries] == [e.to_dict() for e in checklist.entries]
        assert loaded.get("src/kimi_cli/soul/agent.py").verdict is None


def test_store_load_missing():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(ChecklistError):
            ChecklistStore(Path(tmpdir) / "missing.yaml").load()


def test_store_keeps_planned_commits():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ChecklistStore(Path(tmpdir) / "checklist.yaml")
        checklist = _checklist()
        checklist.base_sha, checklist.head_sha = "a" * 40, "b" * 40
        store.save(checklist)
        loaded = store.load()
    assert (loaded.base_sha, loaded.head_sha) == ("a" * 40, "b" * 40)
    assert loaded.same_range(checklist)


def test_same_range_compares_commits_not_names():
    first = Checklist(base="v1", head="HEAD", base_sha="a" * 40, head_sha="b" * 40)
    moved = Checklist(base="v1", head="HEAD", base_sha="a" * 40, head_sha="c" * 40)
    assert not first.same_range(moved)
    assert not Checklist(base="v1", head="HEAD").same_range(Checklist(base="v1", head="HEAD"))


def test_store_load_corrupt_yaml():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "checklist.yaml"
        path.write_text("entries: [unclosed\n")
        with pytest.raises(ChecklistError):
            ChecklistStore(path).load()
