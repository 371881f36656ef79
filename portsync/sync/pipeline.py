"""Planning pipeline: inventory → classify → map → checklist."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from portsync.config import SyncConfig
from portsync.errors import AmbiguousClassification
from portsync.models import ChangedFile, ChangeKind, ChecklistEntry, SyncStatus, Verdict
from portsync.sync.checklist import Checklist
from portsync.sync.classifier import ChangeClassifier
from portsync.sync.inventory import ChangeInventory
from portsync.sync.mapper import PathMapper
from portsync.utils.diff_parser import hunk_context

logger = logging.getLogger(__name__)


def build_checklist(config: SyncConfig, inventory: ChangeInventory | None = None) -> Checklist:
    """Run the full planning pipeline for ``config.base..config.head``.

    Raises:
        RangeResolutionError: Propagated from the inventory; nothing is built.
    """
    inventory = inventory or ChangeInventory(config.repo)
    changes = inventory.collect(config.base, config.head, config.source_root)
    checklist = Checklist(
        base=config.base,
        head=config.head,
        source_root=config.source_root,
        base_sha=inventory.base_sha,
        head_sha=inventory.head_sha,
    )
    checklist.entries = build_entries(
        changes,
        ChangeClassifier(config.exclude_patterns, config.review_patterns),
        PathMapper(config.mapping_rules, config.extension_rules),
    )
    return checklist


def build_entries(
    changes: Sequence[ChangedFile],
    classifier: ChangeClassifier,
    mapper: PathMapper,
) -> list[ChecklistEntry]:
    """One entry per changed file; a problem with one file never stops the rest."""
    entries = []
    for changed in sorted(changes, key=lambda c: c.path):
        entry = ChecklistEntry(file=changed.path, kind=changed.kind, summary=summarize(changed))

        try:
            entry.verdict = classifier.classify(changed)
        except AmbiguousClassification as e:
            entry.review_reason = e.reason
            logger.warning("Needs manual review: %s", e)

        if entry.verdict == Verdict.EXCLUDE:
            entry.status = SyncStatus.SKIPPED

        mapping = mapper.map(changed.path)
        if mapping.mapped:
            entry.target = mapping.target
            entry.rule = mapping.rule.source_prefix
        elif entry.verdict != Verdict.EXCLUDE:
            logger.warning("Unmapped: %s (add a mapping rule)", changed.path)

        entries.append(entry)
    return entries


def summarize(changed: ChangedFile) -> str:
    """One-line description of a change, built from its diff."""
    parts = [changed.kind.value]
    if changed.old_path:
        parts.append(f"from {changed.old_path}")
    if changed.hunks:
        parts.append(f"+{changed.insertions}/-{changed.deletions}")
        scopes = []
        for hunk in changed.hunks:
            scope = hunk_context(hunk)
            if scope and scope not in scopes:
                scopes.append(scope)
        if scopes:
            shown = "; ".join(scopes[:3])
            if len(scopes) > 3:
                shown += f"; +{len(scopes) - 3} more"
            parts.append(f"in {shown}")
    elif changed.kind != ChangeKind.DELETED:
        parts.append("(no textual diff)")
    return " ".join(parts)
