"""Report generator — the tracking table and the final sync report.

Every entry appears in the test section with an explicit result for each
level (unit, integration, e2e), including "not run".
"""

from __future__ import annotations

from dataclasses import dataclass, field

from portsync.models import ChecklistEntry, SyncStatus, TestLevel, TestOutcome, Verdict
from portsync.sync.checklist import Checklist

NO_CHANGES = "No changes in range."
UNMAPPED = "(unmapped)"

OUTCOME_LABELS = {
    TestOutcome.PASSED: "passed",
    TestOutcome.FAILED: "FAILED",
    TestOutcome.NOT_RUN: "not run",
    TestOutcome.NOT_APPLICABLE: "n/a",
}


@dataclass
class SyncReport:
    """The final report, partitioned by what happened to each entry."""

    base: str
    head: str
    synced: list[ChecklistEntry] = field(default_factory=list)
    pending: list[ChecklistEntry] = field(default_factory=list)
    needs_review: list[ChecklistEntry] = field(default_factory=list)
    unmapped: list[ChecklistEntry] = field(default_factory=list)
    gaps: list[ChecklistEntry] = field(default_factory=list)
    skipped: list[ChecklistEntry] = field(default_factory=list)
    tested: list[ChecklistEntry] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.tested


class ReportGenerator:
    """Builds the checklist table and final report from a checklist."""

    def __init__(self, checklist: Checklist):
        self.checklist = checklist

    def build(self) -> SyncReport:
        report = SyncReport(base=self.checklist.base, head=self.checklist.head)
        for entry in self.checklist.entries:
            report.tested.append(entry)
            if entry.verdict == Verdict.EXCLUDE:
                report.skipped.append(entry)
                continue
            if entry.is_ambiguous:
                report.needs_review.append(entry)
            if entry.is_unmapped:
                report.unmapped.append(entry)

            if entry.status == SyncStatus.DONE:
                report.synced.append(entry)
            elif entry.status == SyncStatus.GAP:
                report.gaps.append(entry)
            elif entry.status == SyncStatus.SKIPPED:
                report.skipped.append(entry)
            elif not entry.is_ambiguous and not entry.is_unmapped:
                report.pending.append(entry)
        return report

    def checklist_table(self) -> str:
        """Markdown tracking table, one row per entry."""
        if not self.checklist.entries:
            return NO_CHANGES

        header = ["File", "Summary", "Target", "Verdict", "Status"] + [
            level.value for level in TestLevel
        ]
        lines = [_row(header), _row(["---"] * len(header))]
        for entry in self.checklist.entries:
            lines.append(
                _row(
                    [
                        f"`{entry.file}`",
                        entry.summary,
                        f"`{entry.target}`" if entry.target else UNMAPPED,
                        entry.verdict.value if entry.verdict else "review",
                        entry.status.value,
                    ]
                    + [OUTCOME_LABELS[entry.tests[level].outcome] for level in TestLevel]
                )
            )
        return "\n".join(lines)

    def render(self) -> str:
        """The final human-readable report in Markdown."""
        report = self.build()
        counts = self.checklist.counts()
        out = [f"# Sync report: {report.base}..{report.head}", ""]

        if report.empty:
            out += [NO_CHANGES, ""]
            return "\n".join(out)

        out += [
            "## Summary",
            "",
            f"- Changed files: **{counts['total']}**",
            f"- Synced: **{counts['done']}**, pending: **{counts['pending']}**, "
            f"gaps: **{counts['gap']}**, skipped: **{counts['skipped']}**",
            f"- Needs manual review: **{counts['ambiguous']}**, unmapped: **{counts['unmapped']}**",
            "",
        ]

        out += _section(
            "Files synced",
            [f"`{e.file}` → `{e.target or UNMAPPED}`" for e in report.synced],
        )
        out += _section(
            "Logic synced",
            [f"`{e.file}`: {e.summary}" + (f" ({e.note})" if e.note else "") for e in report.synced],
        )
        out += _section(
            "Needs manual review",
            [f"`{e.file}`: {e.review_reason}" for e in report.needs_review],
        )
        out += _section(
            "Unmapped",
            [f"`{e.file}`: no mapping rule matches" for e in report.unmapped],
        )
        out += _section(
            "Gaps",
            [f"`{e.file}` → `{e.target or UNMAPPED}`" + (f": {e.note}" if e.note else "") for e in report.gaps],
        )
        out += _section(
            "Pending mirror work",
            [f"`{e.file}` → `{e.target}`: {e.summary}" for e in report.pending],
        )
        out += _section(
            "Skipped (UI/login and other changes intentionally not mirrored)",
            [f"`{e.file}`: {e.summary}" for e in report.skipped],
        )

        out += ["## Tests", ""]
        header = ["File"] + [level.value for level in TestLevel]
        out += [_row(header), _row(["---"] * len(header))]
        for entry in report.tested:
            out.append(_row([f"`{entry.file}`"] + [_test_cell(entry, lvl) for lvl in TestLevel]))
        out.append("")

        failures = [
            (entry, entry.tests[lvl])
            for entry in report.tested
            for lvl in TestLevel
            if entry.tests[lvl].outcome == TestOutcome.FAILED
        ]
        if failures:
            out += ["### Failures", ""]
            for entry, result in failures:
                out.append(f"- `{entry.file}` [{result.level.value}] `{result.command}`: {result.error}")
                for name, ok in sorted(result.cases.items()):
                    if not ok:
                        out.append(f"  - {name}")
            out.append("")

        return "\n".join(out)


def _test_cell(entry: ChecklistEntry, level: TestLevel) -> str:
    result = entry.tests[level]
    label = OUTCOME_LABELS[result.outcome]
    if result.cases:
        label += f" ({result.passed_count}/{len(result.cases)})"
    return label


def _section(title: str, items: list[str]) -> list[str]:
    lines = [f"## {title}", ""]
    lines += [f"- {item}" for item in items] or ["- (none)"]
    lines.append("")
    return lines


def _row(cells: list[str]) -> str:
    return "| " + " | ".join(c.replace("|", "\\|") for c in cells) + " |"
