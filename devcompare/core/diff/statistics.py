"""
Statistics for diff results and input texts.
"""

from __future__ import annotations

import re

from devcompare.core.diff.line_splitter import normalize_line_endings
from devcompare.core.models import (
    DiffLine,
    DiffLineType,
    DiffResult,
    DiffStatistics,
    TextStatistics,
)


_WORD_PATTERN = re.compile(r'\b\w+\b')

WORDS_PER_MINUTE = 200


def summarize(result: DiffResult) -> DiffStatistics:
    """Count added, removed and unchanged lines of a diff result."""
    return summarize_lines(result.lines)


def summarize_lines(lines: list[DiffLine]) -> DiffStatistics:
    """
    Count lines and intraline tokens.

    Token counts come from the removed side of each refined pair so
    that every pair is counted once.
    """
    added = removed = unchanged = 0
    tokens_added = tokens_removed = 0

    for line in lines:
        if line.line_type is DiffLineType.UNCHANGED:
            unchanged += 1
        elif line.line_type is DiffLineType.ADDED:
            added += 1
        elif line.line_type is DiffLineType.REMOVED:
            removed += 1
            if line.token_diff is not None:
                tokens_added += line.token_diff.tokens_added
                tokens_removed += line.token_diff.tokens_removed

    return DiffStatistics(
        added=added,
        removed=removed,
        unchanged=unchanged,
        tokens_added=tokens_added,
        tokens_removed=tokens_removed,
        replace_groups=_count_replace_groups(lines),
        total_lines_old=unchanged + removed,
        total_lines_new=unchanged + added,
    )


def _count_replace_groups(lines: list[DiffLine]) -> int:
    """Count runs of paired lines; a group starts at pair index 0 on the removed side."""
    return sum(
        1 for line in lines
        if line.line_type is DiffLineType.REMOVED and line.pair_index == 0
    )


def analyze_text(text: str) -> TextStatistics:
    """
    Characters, words, lines, UTF-8 bytes and reading time of a text.

    Lines are counted the way an editor shows them, so the empty text
    has one (empty) line.
    """
    words = len(_WORD_PATTERN.findall(text))
    return TextStatistics(
        characters=len(text),
        words=words,
        lines=normalize_line_endings(text).count('\n') + 1,
        bytes=len(text.encode('utf-8', errors='surrogatepass')),
        reading_minutes=words / WORDS_PER_MINUTE if words else None,
    )
