"""
Export helpers for diff results.

Everything here is derived from a DiffResult alone:
- Unified diff text (diff -u style hunks)
- Side-by-side rows
- JSON-ready dictionaries
"""

from __future__ import annotations

from typing import Any, Iterator

from devcompare.core.models import (
    DiffHunk,
    DiffLine,
    DiffLineType,
    DiffResult,
    EditOp,
)


class UnifiedDiffFormatter:
    """Format diff results as unified diff text."""

    def __init__(self, context_lines: int = 3):
        if context_lines < 0:
            raise ValueError("context_lines must be non-negative")
        self.context_lines = context_lines

    def hunks(self, result: DiffResult) -> list[DiffHunk]:
        """Group changed lines with their context into hunks."""
        lines = result.lines
        changed = [i for i, line in enumerate(lines) if line.line_type is not DiffLineType.UNCHANGED]
        if not changed:
            return []

        # Merge context windows that touch or overlap
        windows: list[list[int]] = []
        for i in changed:
            lo = max(0, i - self.context_lines)
            hi = min(len(lines), i + self.context_lines + 1)
            if windows and lo <= windows[-1][1]:
                windows[-1][1] = max(windows[-1][1], hi)
            else:
                windows.append([lo, hi])

        return [self._create_hunk(lines, lo, hi) for lo, hi in windows]

    def format(
        self,
        result: DiffResult,
        old_label: str = "old",
        new_label: str = "new"
    ) -> Iterator[str]:
        """
        Generate unified diff output.

        Yields nothing for identical texts.
        """
        hunks = self.hunks(result)
        if not hunks:
            return

        yield f"--- {old_label}"
        yield f"+++ {new_label}"
        for hunk in hunks:
            yield hunk.header
            for line in hunk.lines:
                yield f"{line.prefix}{line.content}"

    def _create_hunk(self, lines: list[DiffLine], lo: int, hi: int) -> DiffHunk:
        """Create a DiffHunk from lines[lo:hi]."""
        old_before = sum(1 for line in lines[:lo] if line.old_index is not None)
        new_before = sum(1 for line in lines[:lo] if line.new_index is not None)
        window = lines[lo:hi]
        old_count = sum(1 for line in window if line.old_index is not None)
        new_count = sum(1 for line in window if line.new_index is not None)

        # Empty ranges point at the line before, as diff -u does
        return DiffHunk(
            old_start=old_before + 1 if old_count else old_before,
            old_count=old_count,
            new_start=new_before + 1 if new_count else new_before,
            new_count=new_count,
            lines=window
        )


class SideBySideFormatter:
    """Format diff results for side-by-side display."""

    def __init__(self, width: int = 80, tab_size: int = 4):
        self.width = width
        self.tab_size = tab_size

    def format(self, result: DiffResult) -> Iterator[tuple[str, str, str]]:
        """
        Format diff for side-by-side display.

        Yields tuples of (left_line, separator, right_line). Paired
        replacements share a row; unpaired removals and additions get a
        row of their own.
        """
        lines = result.lines
        index = 0
        while index < len(lines):
            line = lines[index]

            if line.line_type is DiffLineType.UNCHANGED:
                yield (self._format_line(line.content, line.old_line_num), "   ",
                       self._format_line(line.new_content or line.content, line.new_line_num))
                index += 1
            elif line.line_type is DiffLineType.REMOVED and line.is_paired:
                # Removed lines of a group are followed by as many added lines
                group_end = index
                while group_end < len(lines) and lines[group_end].line_type is DiffLineType.REMOVED:
                    group_end += 1
                size = group_end - index
                for offset in range(size):
                    left = lines[index + offset]
                    right = lines[group_end + offset]
                    yield (self._format_line(left.content, left.old_line_num), " | ",
                           self._format_line(right.content, right.new_line_num))
                index = group_end + size
            elif line.line_type is DiffLineType.REMOVED:
                yield (self._format_line(line.content, line.old_line_num), " < ", "")
                index += 1
            else:
                yield ("", " > ", self._format_line(line.content, line.new_line_num))
                index += 1

    def format_text(self, result: DiffResult) -> Iterator[str]:
        """Format rows as fixed-width text lines."""
        for left, sep, right in self.format(result):
            yield f"{left:<{self.width}}{sep}{right}"

    def _format_line(self, content: str, line_num: int | None) -> str:
        """Format a single line with line number."""
        content = content.replace('\t', ' ' * self.tab_size)

        prefix = f"{line_num or 0:4d}: "

        max_content = self.width - len(prefix)
        if len(content) > max_content:
            content = content[:max(max_content - 3, 0)] + "..."

        return prefix + content


def _op_to_dict(op: EditOp) -> dict[str, Any]:
    return {
        'tag': op.tag.value,
        'old': [op.old_start, op.old_end],
        'new': [op.new_start, op.new_end],
    }


def _line_to_dict(line: DiffLine) -> dict[str, Any]:
    data: dict[str, Any] = {
        'type': line.line_type.name.lower(),
        'content': line.content,
        'old_index': line.old_index,
        'new_index': line.new_index,
    }
    if line.new_content is not None and line.new_content != line.content:
        data['new_content'] = line.new_content
    if line.pair_index is not None:
        data['pair_index'] = line.pair_index
    if line.token_diff is not None:
        data['tokens'] = [_op_to_dict(op) for op in line.token_diff.script]
        data['highlights'] = [
            {'start': span.start, 'end': span.end, 'type': span.diff_type}
            for span in line.highlights
        ]
    return data


def to_dict(result: DiffResult) -> dict[str, Any]:
    """Serialize a diff result to JSON-compatible data."""
    stats = result.statistics
    return {
        'identical': result.is_identical,
        'binary': result.is_binary,
        'statistics': {
            'added': stats.added,
            'removed': stats.removed,
            'unchanged': stats.unchanged,
            'tokens_added': stats.tokens_added,
            'tokens_removed': stats.tokens_removed,
            'replace_groups': stats.replace_groups,
            'similarity': round(stats.similarity_ratio, 4),
        },
        'line_endings': {
            'old': result.old_line_ending.name,
            'new': result.new_line_ending.name,
        },
        'script': [_op_to_dict(op) for op in result.line_script],
        'lines': [_line_to_dict(line) for line in result.lines],
    }
