"""
Core data models for the compare engine.

This module defines all data structures produced by a comparison:
- Line and token records
- Edit operations and edit scripts
- Line-level diff output with intraline (token) refinements
- Statistics and the final comparison outcome

All models are designed to be:
- UI-agnostic (can be used with any frontend)
- Immutable once produced (frozen dataclasses)
- Type-hinted for IDE support
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, Optional


# =============================================================================
# Enumerations
# =============================================================================

class EditTag(Enum):
    """Kind of edit operation."""
    EQUAL = "equal"     # Range present in both sequences
    INSERT = "insert"   # Range present only in the new sequence
    DELETE = "delete"   # Range present only in the old sequence


class DiffLineType(Enum):
    """Type of line in a diff result."""
    UNCHANGED = auto()  # Line exists in both texts
    ADDED = auto()      # Line exists only in new text
    REMOVED = auto()    # Line exists only in old text


class TokenKind(Enum):
    """Kind of intraline token."""
    WORD = auto()         # Run of letters, digits, underscores
    WHITESPACE = auto()   # Run of whitespace
    PUNCTUATION = auto()  # Any other single character


class LineEnding(Enum):
    """Line ending style."""
    LF = auto()      # Unix: \n
    CRLF = auto()    # Windows: \r\n
    CR = auto()      # Old Mac: \r
    MIXED = auto()   # Mixed endings
    NONE = auto()    # No line endings (single line)


class CompareStatus(Enum):
    """Outcome of a compare call."""
    OK = auto()
    OVERSIZED_INPUT = auto()
    CANCELLED = auto()
    INVALID_ENCODING = auto()


# =============================================================================
# Sequence Items
# =============================================================================

@dataclass(frozen=True)
class Line:
    """A single line of text with its zero-based original position."""
    index: int
    content: str


@dataclass(frozen=True)
class Token:
    """
    A piece of a line used for intraline refinement.

    Concatenating the text of all tokens of a line reproduces the line.
    """
    text: str
    kind: TokenKind
    start: int          # Character offset within the line

    @property
    def end(self) -> int:
        """Character offset one past the token."""
        return self.start + len(self.text)


# =============================================================================
# Edit Scripts
# =============================================================================

@dataclass(frozen=True)
class EditOp:
    """
    One operation of an edit script.

    Ranges are half-open. An insert has an empty old range located at
    the insertion point, a delete has an empty new range.
    """
    tag: EditTag
    old_start: int
    old_end: int
    new_start: int
    new_end: int

    @property
    def old_length(self) -> int:
        return self.old_end - self.old_start

    @property
    def new_length(self) -> int:
        return self.new_end - self.new_start

    @property
    def is_change(self) -> bool:
        """True for inserts and deletes."""
        return self.tag is not EditTag.EQUAL

    @property
    def size(self) -> int:
        """Number of items covered by the operation."""
        return max(self.old_length, self.new_length)

    def __str__(self) -> str:
        return (f"{self.tag.value} old[{self.old_start}:{self.old_end}] "
                f"new[{self.new_start}:{self.new_end}]")


EditScript = list[EditOp]


@dataclass(frozen=True)
class IntralineSpan:
    """
    Character range within one line to highlight.

    Derived from a token-level edit script.
    """
    start: int          # Start character index (inclusive)
    end: int            # End character index (exclusive)
    diff_type: str      # 'inserted' or 'deleted'


@dataclass(frozen=True)
class TokenDiff:
    """
    Token-level comparison of a paired (old line, new line).

    Attached to both lines of a replace-group pair.
    """
    old_tokens: list[Token]
    new_tokens: list[Token]
    script: EditScript

    @property
    def tokens_added(self) -> int:
        return sum(op.new_length for op in self.script if op.tag is EditTag.INSERT)

    @property
    def tokens_removed(self) -> int:
        return sum(op.old_length for op in self.script if op.tag is EditTag.DELETE)

    def old_spans(self) -> list[IntralineSpan]:
        """Character spans deleted from the old line."""
        return [
            self._span(self.old_tokens, op.old_start, op.old_end, 'deleted')
            for op in self.script if op.tag is EditTag.DELETE
        ]

    def new_spans(self) -> list[IntralineSpan]:
        """Character spans inserted into the new line."""
        return [
            self._span(self.new_tokens, op.new_start, op.new_end, 'inserted')
            for op in self.script if op.tag is EditTag.INSERT
        ]

    @staticmethod
    def _span(tokens: list[Token], first: int, last: int, diff_type: str) -> IntralineSpan:
        return IntralineSpan(tokens[first].start, tokens[last - 1].end, diff_type)


# =============================================================================
# Diff Output
# =============================================================================

@dataclass(frozen=True)
class DiffLine:
    """
    A single line in a diff result.

    Unchanged lines keep the text of both sides, which differ when the
    comparison ignores case or whitespace. Lines that belong to a
    replace group carry the index of their pair within the group and
    the token-level comparison of the pair.
    """
    line_type: DiffLineType
    content: str                        # Old text for unchanged lines
    new_content: Optional[str] = None   # Set for unchanged lines only
    old_index: Optional[int] = None     # Zero-based, None for added lines
    new_index: Optional[int] = None     # Zero-based, None for removed lines
    pair_index: Optional[int] = None
    token_diff: Optional[TokenDiff] = None

    @property
    def old_line_num(self) -> Optional[int]:
        """One-based line number in the old text."""
        return None if self.old_index is None else self.old_index + 1

    @property
    def new_line_num(self) -> Optional[int]:
        """One-based line number in the new text."""
        return None if self.new_index is None else self.new_index + 1

    @property
    def is_paired(self) -> bool:
        return self.pair_index is not None

    @property
    def has_intraline_diff(self) -> bool:
        """Check if this line has token-level diff info."""
        return self.token_diff is not None

    @property
    def highlights(self) -> list[IntralineSpan]:
        """Spans to highlight on this line's own side."""
        if self.token_diff is None:
            return []
        if self.line_type is DiffLineType.REMOVED:
            return self.token_diff.old_spans()
        return self.token_diff.new_spans()

    @property
    def prefix(self) -> str:
        """Get the diff prefix character."""
        prefixes = {
            DiffLineType.UNCHANGED: ' ',
            DiffLineType.ADDED: '+',
            DiffLineType.REMOVED: '-',
        }
        return prefixes[self.line_type]


@dataclass(frozen=True)
class DiffHunk:
    """
    A group of related changes (a "hunk" in unified diff terminology).

    Contains contiguous lines that include at least one change,
    plus surrounding context lines.
    """
    old_start: int      # Unified-diff start line in old text
    old_count: int      # Number of lines from old text
    new_start: int      # Unified-diff start line in new text
    new_count: int      # Number of lines from new text
    lines: list[DiffLine] = field(default_factory=list)

    @property
    def header(self) -> str:
        """Generate unified diff hunk header."""
        return f"@@ -{self._range(self.old_start, self.old_count)} +{self._range(self.new_start, self.new_count)} @@"

    @property
    def change_count(self) -> int:
        """Count of actual changes (non-context lines)."""
        return sum(1 for line in self.lines if line.line_type is not DiffLineType.UNCHANGED)

    @staticmethod
    def _range(start: int, count: int) -> str:
        if count == 1:
            return str(start)
        return f"{start},{count}"


@dataclass(frozen=True)
class DiffStatistics:
    """Summary counts of a diff result."""
    added: int = 0
    removed: int = 0
    unchanged: int = 0
    tokens_added: int = 0
    tokens_removed: int = 0
    replace_groups: int = 0
    total_lines_old: int = 0
    total_lines_new: int = 0

    @property
    def total_changes(self) -> int:
        """Total number of changed lines."""
        return self.added + self.removed

    @property
    def similarity_ratio(self) -> float:
        """
        Calculate similarity ratio (0.0 to 1.0).

        1.0 means identical, 0.0 means nothing in common.
        """
        total = self.total_lines_old + self.total_lines_new
        if total == 0:
            return 1.0
        return 2.0 * self.unchanged / total

    def __str__(self) -> str:
        return f"+{self.added} -{self.removed} ={self.unchanged}"


@dataclass(frozen=True)
class TextStatistics:
    """Size figures of one input text."""
    characters: int = 0
    words: int = 0
    lines: int = 0
    bytes: int = 0
    reading_minutes: Optional[float] = None     # At 200 words per minute


@dataclass(frozen=True)
class DiffResult:
    """
    Complete result of a text comparison.

    Contains everything a presentation layer needs to render an inline
    or side-by-side view. Treat as read-only.
    """
    lines: list[DiffLine]
    line_script: EditScript
    statistics: DiffStatistics
    old_text_stats: TextStatistics = field(default_factory=TextStatistics)
    new_text_stats: TextStatistics = field(default_factory=TextStatistics)
    old_line_ending: LineEnding = LineEnding.NONE
    new_line_ending: LineEnding = LineEnding.NONE
    is_binary: bool = False

    @property
    def is_identical(self) -> bool:
        """True when no line was added or removed."""
        return all(not op.is_change for op in self.line_script)

    def iter_changes(self) -> Iterator[DiffLine]:
        """Iterate over only the changed lines."""
        for line in self.lines:
            if line.line_type is not DiffLineType.UNCHANGED:
                yield line

    def old_lines(self) -> list[str]:
        """Old text lines, reconstructed from unchanged and removed lines."""
        return [line.content for line in self.lines if line.old_index is not None]

    def new_lines(self) -> list[str]:
        """New text lines, reconstructed from unchanged and added lines."""
        return [
            line.content if line.new_content is None else line.new_content
            for line in self.lines if line.new_index is not None
        ]


@dataclass(frozen=True)
class CompareOutcome:
    """
    Result of a compare call.

    Exactly one of `result` (status OK) or `error` (any other status)
    is set.
    """
    status: CompareStatus
    result: Optional[DiffResult] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status is CompareStatus.OK

    @classmethod
    def ok(cls, result: DiffResult) -> CompareOutcome:
        return cls(CompareStatus.OK, result=result)

    @classmethod
    def failed(cls, status: CompareStatus, error: str) -> CompareOutcome:
        return cls(status, error=error)
