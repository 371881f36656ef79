"""Pure functions for splitting unified diffs into hunks."""

from __future__ import annotations

import re

_HUNK_HEADER_RE = re.compile(r"^@@ -\d+(?:,\d+)? \+\d+(?:,\d+)? @@(.*)$")


def split_hunks(diff_text: str) -> list[str]:
    """Split a single-file unified diff into hunks, each starting at its ``@@`` line.

    File header lines (``---``/``+++``, ``diff --git``) before the first hunk are dropped.
    """
    hunks: list[str] = []
    current: list[str] = []
    for line in diff_text.splitlines():
        if _HUNK_HEADER_RE.match(line):
            if current:
                hunks.append("\n".join(current))
            current = [line]
        elif current:
            current.append(line)
    if current:
        hunks.append("\n".join(current))
    return hunks


def count_changes(hunks: list[str] | tuple[str, ...]) -> tuple[int, int]:
    """Return (insertions, deletions) across all hunks."""
    insertions = deletions = 0
    for line in changed_lines(hunks):
        if line.startswith("+"):
            insertions += 1
        else:
            deletions += 1
    return insertions, deletions


def changed_lines(hunks: list[str] | tuple[str, ...]) -> list[str]:
    """Added and removed lines (with their ``+``/``-`` marker), context excluded."""
    lines = []
    for hunk in hunks:
        for line in hunk.splitlines()[1:]:
            if line.startswith(("+", "-")):
                lines.append(line)
    return lines


def hunk_context(hunk: str) -> str:
    """The enclosing-scope text git prints after the hunk range, if any."""
    first_line = hunk.splitlines()[0] if hunk else ""
    match = _HUNK_HEADER_RE.match(first_line)
    return match.group(1).strip() if match else ""
