"""Change classifier — decide whether a changed file is mirrored or excluded.

Exclude patterns are matched against the full path, case-insensitively:
plain patterns as substrings, patterns with glob characters via fnmatch.

A change that touches both excluded and in-scope logic is never guessed.
The classifier raises AmbiguousClassification and leaves the decision
to the operator.
"""

from __future__ import annotations

import fnmatch
import re
from collections.abc import Iterable

from portsync.config import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_REVIEW_PATTERNS
from portsync.errors import AmbiguousClassification, ConfigError
from portsync.models import ChangedFile, Verdict
from portsync.utils.diff_parser import changed_lines

_GLOB_CHARS = set("*?[")


class ChangeClassifier:
    """Tags changed files with a mirror/exclude verdict."""

    def __init__(
        self,
        exclude_patterns: Iterable[str] = DEFAULT_EXCLUDE_PATTERNS,
        review_patterns: Iterable[str] = DEFAULT_REVIEW_PATTERNS,
    ):
        self.exclude_patterns = tuple(p for p in exclude_patterns if p)
        try:
            self.review_patterns = tuple(
                re.compile(p, re.IGNORECASE) for p in review_patterns if p
            )
        except re.error as e:
            raise ConfigError(f"Invalid review pattern: {e}") from e

    def classify(self, changed: ChangedFile) -> Verdict:
        """Return the verdict for one changed file.

        Raises:
            AmbiguousClassification: When excluded and in-scope logic are mixed.
        """
        new_hit = self.matching_pattern(changed.path)

        if changed.old_path and changed.old_path != changed.path:
            old_hit = self.matching_pattern(changed.old_path)
            if bool(old_hit) != bool(new_hit):
                excluded_side = changed.old_path if old_hit else changed.path
                raise AmbiguousClassification(
                    changed.path,
                    f"renamed across the exclude boundary ('{excluded_side}' matches "
                    f"'{old_hit or new_hit}')",
                )

        if new_hit:
            return Verdict.EXCLUDE

        content_hit = self._content_match(changed)
        if content_hit:
            raise AmbiguousClassification(
                changed.path,
                f"in-scope path but changed lines match '{content_hit}'",
            )

        return Verdict.MIRROR

    def matching_pattern(self, path: str) -> str | None:
        """Return the first exclude pattern matching ``path``, or None."""
        lowered = path.lower()
        for pattern in self.exclude_patterns:
            needle = pattern.lower()
            if _GLOB_CHARS & set(needle):
                if fnmatch.fnmatchcase(lowered, needle):
                    return pattern
            elif needle in lowered:
                return pattern
        return None

    def _content_match(self, changed: ChangedFile) -> str | None:
        if not self.review_patterns or not changed.hunks:
            return None
        for line in changed_lines(changed.hunks):
            body = line[1:]
            for regex in self.review_patterns:
                if regex.search(body):
                    return regex.pattern
        return None
