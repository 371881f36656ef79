"""Change inventory — list the upstream files that changed in a revision range.

Only the content diff between the two trees is consulted. Commit messages
are never read: upstream titles do not reliably describe what changed.
"""

from __future__ import annotations

import logging
import warnings
from pathlib import Path

from git import Repo

from portsync.errors import EmptyRangeWarning
from portsync.models import ChangeKind, ChangedFile
from portsync.utils.diff_parser import count_changes, split_hunks
from portsync.utils.git_ops import open_repo, resolve_revision

logger = logging.getLogger(__name__)


class ChangeInventory:
    """Produces the ordered set of changed files between two revisions."""

    def __init__(self, repo: Repo | str | Path):
        self.repo = repo if isinstance(repo, Repo) else open_repo(repo)
        # Commits the last collect() resolved base and head to.
        self.base_sha = ""
        self.head_sha = ""

    def collect(self, base: str, head: str, source_root: str = "") -> list[ChangedFile]:
        """Return every file changed in ``base..head`` under ``source_root``, ordered by path.

        Raises:
            RangeResolutionError: If either revision cannot be resolved.

        Issues ``EmptyRangeWarning`` (and returns an empty list) when nothing changed.
        """
        base_commit = resolve_revision(self.repo, base)
        head_commit = resolve_revision(self.repo, head)
        self.base_sha = base_commit.hexsha
        self.head_sha = head_commit.hexsha
        prefix = _normalize_root(source_root)

        changes: list[ChangedFile] = []
        if base_commit.hexsha != head_commit.hexsha:
            diff_index = base_commit.diff(head_commit, create_patch=True)
            for item in diff_index:
                changed = _to_changed_file(item)
                if _in_subtree(changed, prefix):
                    changes.append(changed)

        changes.sort(key=lambda c: c.path)

        if not changes:
            warnings.warn(
                f"No files changed under '{source_root or '.'}' in {base}..{head}",
                EmptyRangeWarning,
                stacklevel=2,
            )
        else:
            logger.info("Inventory %s..%s: %d changed file(s)", base, head, len(changes))
        return changes


def _to_changed_file(item) -> ChangedFile:
    """Convert a GitPython Diff into a ChangedFile."""
    if item.new_file:
        kind = ChangeKind.ADDED
    elif item.deleted_file:
        kind = ChangeKind.DELETED
    elif item.renamed_file:
        kind = ChangeKind.RENAMED
    else:
        kind = ChangeKind.MODIFIED

    path = item.b_path if kind != ChangeKind.DELETED else item.a_path
    path = path or item.a_path or item.b_path or ""

    hunks = split_hunks(_decode(item.diff))
    insertions, deletions = count_changes(hunks)
    return ChangedFile(
        path=path,
        kind=kind,
        hunks=tuple(hunks),
        old_path=item.a_path if kind == ChangeKind.RENAMED else None,
        insertions=insertions,
        deletions=deletions,
    )


def _decode(raw) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return str(raw)


def _normalize_root(source_root: str) -> str:
    root = source_root.strip().replace("\\", "/").strip("/")
    if root in ("", "."):
        return ""
    return root + "/"


def _in_subtree(changed: ChangedFile, prefix: str) -> bool:
    if not prefix:
        return True
    return any(p and p.startswith(prefix) for p in (changed.path, changed.old_path))
