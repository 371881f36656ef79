"""Tests for the change inventory."""

import warnings

import pytest

from portsync.errors import EmptyRangeWarning, RangeResolutionError
from portsync.models import ChangeKind
from portsync.sync.inventory import ChangeInventory


def test_collect_orders_by_path(kimi_repo):
    changes = ChangeInventory(kimi_repo.root).collect("v1", "v2")
    paths = [c.path for c in changes]
    assert paths == sorted(paths)
    assert paths == [
        "README.md",
        "src/kimi_cli/llm.py",
        "src/kimi_cli/tools/grep.py",
        "src/kimi_cli/ui/shell.py",
    ]


def test_collect_restricts_to_source_root(kimi_repo):
    changes = ChangeInventory(kimi_repo.root).collect("v1", "v2", "src/kimi_cli")
    assert "README.md" not in {c.path for c in changes}
    assert len(changes) == 3


def test_source_root_trailing_slash_is_equivalent(kimi_repo):
    inventory = ChangeInventory(kimi_repo.root)
    assert inventory.collect("v1", "v2", "src/kimi_cli/") == inventory.collect("v1", "v2", "src/kimi_cli")


def test_source_root_does_not_match_sibling_prefix(upstream):
    upstream.commit({"src/app/a.py": "a = 1\n", "src/application/b.py": "b = 1\n"}, tag="v1")
    upstream.commit({"src/app/a.py": "a = 2\n", "src/application/b.py": "b = 2\n"}, tag="v2")

    changes = ChangeInventory(upstream.root).collect("v1", "v2", "src/app")
    assert [c.path for c in changes] == ["src/app/a.py"]


def test_change_kinds(upstream):
    upstream.commit({"pkg/keep.py": "x = 1\n", "pkg/gone.py": "y = 1\n"}, tag="v1")
    upstream.commit({"pkg/keep.py": "x = 2\n", "pkg/gone.py": None, "pkg/new.py": "z = 1\n"}, tag="v2")

    kinds = {c.path: c.kind for c in ChangeInventory(upstream.root).collect("v1", "v2")}
    assert kinds == {
        "pkg/gone.py": ChangeKind.DELETED,
        "pkg/keep.py": ChangeKind.MODIFIED,
        "pkg/new.py": ChangeKind.ADDED,
    }


def test_rename_keeps_old_path(upstream):
    body = "".join(f"line_{i} = {i}\n" for i in range(20))
    upstream.commit({"pkg/old_name.py": body}, tag="v1")
    upstream.rename("pkg/old_name.py", "pkg/new_name.py", tag="v2")

    (changed,) = ChangeInventory(upstream.root).collect("v1", "v2")
    assert changed.kind == ChangeKind.RENAMED
    assert changed.path == "pkg/new_name.py"
    assert changed.old_path == "pkg/old_name.py"


def test_hunks_and_counts(kimi_repo):
    changes = ChangeInventory(kimi_repo.root).collect("v1", "v2", "src/kimi_cli")
    llm = next(c for c in changes if c.path.endswith("llm.py"))
    assert len(llm.hunks) == 1
    assert llm.hunks[0].startswith("@@")
    assert "+    return 'v2'" in llm.hunks[0]
    assert (llm.insertions, llm.deletions) == (1, 1)


def test_only_content_diff_matters(upstream):
    """A commit whose title claims a change but touches nothing yields no files."""
    upstream.commit({"src/a.py": "a = 1\n"}, tag="v1")
    upstream.commit({}, message="rewrite src/a.py completely", tag="v2")

    with pytest.warns(EmptyRangeWarning):
        changes = ChangeInventory(upstream.root).collect("v1", "v2")
    assert changes == []


def test_empty_range_warns_and_returns_nothing(kimi_repo):
    with pytest.warns(EmptyRangeWarning):
        assert ChangeInventory(kimi_repo.root).collect("v2", "v2") == []


def test_no_warning_when_files_changed(kimi_repo):
    with warnings.catch_warnings():
        warnings.simplefilter("error", EmptyRangeWarning)
        assert ChangeInventory(kimi_repo.root).collect("v1", "v2")


def test_unknown_base_raises(kimi_repo):
    with pytest.raises(RangeResolutionError) as exc_info:
        ChangeInventory(kimi_repo.root).collect("no-such-tag", "v2")
    assert exc_info.value.revision == "no-such-tag"


def test_unknown_head_raises(kimi_repo):
    with pytest.raises(RangeResolutionError):
        ChangeInventory(kimi_repo.root).collect("v1", "v99")


def test_empty_base_raises(kimi_repo):
    with pytest.raises(RangeResolutionError):
        ChangeInventory(kimi_repo.root).collect("", "v2")


def test_not_a_repo(tmp_path):
    with pytest.raises(ValueError):
        ChangeInventory(tmp_path)


def test_collect_pins_resolved_commits(kimi_repo):
    inventory = ChangeInventory(kimi_repo.root)
    inventory.collect("v1", "v2")
    assert inventory.base_sha == kimi_repo.repo.commit("v1").hexsha
    assert inventory.head_sha == kimi_repo.repo.commit("v2").hexsha
