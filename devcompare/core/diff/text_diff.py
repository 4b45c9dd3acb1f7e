"""
Text diff engine.

Provides line-by-line comparison with support for:
- Case-insensitive and whitespace-insensitive equality
- Line ending normalization
- Intraline (token) highlighting for paired replaced lines
- Size ceilings and cooperative cancellation
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from devcompare.core.cancellation import CancellationToken
from devcompare.core.diff.edit_script import diff_sequences
from devcompare.core.diff.line_splitter import detect_line_ending, split_lines
from devcompare.core.diff.statistics import analyze_text, summarize_lines
from devcompare.core.diff.tokenizer import tokenize
from devcompare.core.errors import (
    ComparisonCancelled,
    EditScriptTooLarge,
    InvalidEncodingError,
    OversizedInputError,
)
from devcompare.core.models import (
    CompareOutcome,
    CompareStatus,
    DiffLine,
    DiffLineType,
    DiffResult,
    EditOp,
    EditTag,
    TokenDiff,
)


TextInput = Union[str, bytes]


@dataclass(frozen=True)
class CompareOptions:
    """Options for text comparison."""
    case_sensitive: bool = True
    ignore_whitespace: bool = False
    max_comparable_size: int = 10 * 1024 * 1024     # Bytes per input
    max_lines: int = 200_000                        # Lines per input
    max_edit_distance: Optional[int] = 10_000       # Line edits, None for unbounded
    intraline: bool = True
    intraline_max_line_length: int = 1000           # Longer pairs are not refined

    def __post_init__(self):
        if self.max_comparable_size <= 0:
            raise ValueError("max_comparable_size must be positive")
        if self.max_lines <= 0:
            raise ValueError("max_lines must be positive")
        if self.max_edit_distance is not None and self.max_edit_distance < 0:
            raise ValueError("max_edit_distance must be non-negative")
        if self.intraline_max_line_length < 0:
            raise ValueError("intraline_max_line_length must be non-negative")

    @property
    def is_exact(self) -> bool:
        return self.case_sensitive and not self.ignore_whitespace

    def normalize_line(self, line: str) -> str:
        """Normalize a line (or token) according to options."""
        result = line

        if self.ignore_whitespace:
            result = ''.join(result.split())

        if not self.case_sensitive:
            result = result.casefold()

        return result

    def comparison_key(self) -> Optional[Callable[[str], str]]:
        """Key function for the edit-script engine, None for exact comparison."""
        return None if self.is_exact else self.normalize_line


class TextDiffEngine:
    """
    Engine for comparing two texts.

    Runs the edit-script engine at line level, then refines each paired
    (removed, added) line at token level. The engine holds no state
    between calls.
    """

    def __init__(self, options: Optional[CompareOptions] = None):
        self.options = options or CompareOptions()

    def compare(
        self,
        old: TextInput,
        new: TextInput,
        cancel_token: Optional[CancellationToken] = None
    ) -> CompareOutcome:
        """
        Compare two texts.

        Args:
            old: Original text, or UTF-8 bytes
            new: Modified text, or UTF-8 bytes
            cancel_token: Checked between phases

        Returns:
            CompareOutcome with a DiffResult on success, otherwise the
            refusal status and a message
        """
        try:
            old_text = self._decode(old, 'old')
            new_text = self._decode(new, 'new')
            self._check_size(old_text, 'old')
            self._check_size(new_text, 'new')
            result = self._compose(old_text, new_text, cancel_token)
        except InvalidEncodingError as e:
            logging.warning(f"TextDiffEngine - {e}")
            return CompareOutcome.failed(CompareStatus.INVALID_ENCODING, str(e))
        except (OversizedInputError, EditScriptTooLarge) as e:
            logging.warning(f"TextDiffEngine - Refusing comparison: {e}")
            return CompareOutcome.failed(CompareStatus.OVERSIZED_INPUT, str(e))
        except ComparisonCancelled as e:
            logging.debug("TextDiffEngine - Comparison cancelled")
            return CompareOutcome.failed(CompareStatus.CANCELLED, str(e))

        logging.debug(f"TextDiffEngine - Comparison complete: {result.statistics}")
        return CompareOutcome.ok(result)

    def compute_token_diff(self, old_line: str, new_line: str) -> TokenDiff:
        """Token-level comparison of one line pair."""
        old_tokens = tokenize(old_line)
        new_tokens = tokenize(new_line)
        script = diff_sequences(
            [token.text for token in old_tokens],
            [token.text for token in new_tokens],
            key=self.options.comparison_key()
        )
        return TokenDiff(old_tokens, new_tokens, script)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _decode(self, data: TextInput, side: str) -> str:
        """Strictly decode bytes input as UTF-8, dropping a BOM."""
        if isinstance(data, str):
            return data
        try:
            return bytes(data).decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise InvalidEncodingError(
                side, 'utf-8', f"invalid byte sequence at offset {e.start}"
            ) from e

    def _check_size(self, text: str, side: str) -> None:
        try:
            size = len(text.encode('utf-8'))
        except UnicodeEncodeError as e:
            raise InvalidEncodingError(
                side, 'utf-8', f"unencodable character at offset {e.start}"
            ) from e

        if size > self.options.max_comparable_size:
            raise OversizedInputError(side, size, self.options.max_comparable_size)

    # -------------------------------------------------------------------------
    # Composition
    # -------------------------------------------------------------------------

    def _compose(
        self,
        old_text: str,
        new_text: str,
        cancel_token: Optional[CancellationToken]
    ) -> DiffResult:
        # An empty input contributes no lines at all
        old_lines = [line.content for line in split_lines(old_text)] if old_text else []
        new_lines = [line.content for line in split_lines(new_text)] if new_text else []

        for side, lines in (('old', old_lines), ('new', new_lines)):
            if len(lines) > self.options.max_lines:
                raise OversizedInputError(side, len(lines), self.options.max_lines, 'lines')

        logging.debug(
            f"TextDiffEngine - Comparing {len(old_lines)} vs {len(new_lines)} lines"
        )

        line_script = diff_sequences(
            old_lines,
            new_lines,
            key=self.options.comparison_key(),
            max_edit_distance=self.options.max_edit_distance,
            cancel_token=cancel_token
        )
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        diff_lines: list[DiffLine] = []
        index = 0
        while index < len(line_script):
            op = line_script[index]
            next_op = line_script[index + 1] if index + 1 < len(line_script) else None

            if op.tag is EditTag.EQUAL:
                diff_lines.extend(self._create_equal_lines(old_lines, new_lines, op))
                index += 1
            elif op.tag is EditTag.DELETE and next_op is not None and next_op.tag is EditTag.INSERT:
                diff_lines.extend(self._create_replace_lines(
                    old_lines, new_lines, op, next_op, cancel_token
                ))
                index += 2
            elif op.tag is EditTag.DELETE:
                diff_lines.extend(self._create_removed_lines(old_lines, op))
                index += 1
            else:
                diff_lines.extend(self._create_added_lines(new_lines, op))
                index += 1

        return DiffResult(
            lines=diff_lines,
            line_script=line_script,
            statistics=summarize_lines(diff_lines),
            old_text_stats=analyze_text(old_text),
            new_text_stats=analyze_text(new_text),
            old_line_ending=detect_line_ending(old_text),
            new_line_ending=detect_line_ending(new_text),
            is_binary='\x00' in old_text or '\x00' in new_text,
        )

    def _create_equal_lines(
        self,
        old_lines: list[str],
        new_lines: list[str],
        op: EditOp
    ) -> list[DiffLine]:
        """Create DiffLine objects for equal lines."""
        result = []
        for offset in range(op.size):
            old_index = op.old_start + offset
            new_index = op.new_start + offset
            result.append(DiffLine(
                line_type=DiffLineType.UNCHANGED,
                content=old_lines[old_index],
                new_content=new_lines[new_index],
                old_index=old_index,
                new_index=new_index
            ))
        return result

    def _create_removed_lines(self, lines: list[str], op: EditOp) -> list[DiffLine]:
        """Create DiffLine objects for removed lines."""
        return [
            DiffLine(DiffLineType.REMOVED, lines[idx], old_index=idx)
            for idx in range(op.old_start, op.old_end)
        ]

    def _create_added_lines(self, lines: list[str], op: EditOp) -> list[DiffLine]:
        """Create DiffLine objects for added lines."""
        return [
            DiffLine(DiffLineType.ADDED, lines[idx], new_index=idx)
            for idx in range(op.new_start, op.new_end)
        ]

    def _create_replace_lines(
        self,
        old_lines: list[str],
        new_lines: list[str],
        delete: EditOp,
        insert: EditOp,
        cancel_token: Optional[CancellationToken]
    ) -> list[DiffLine]:
        """
        Create DiffLine objects for a delete block followed by an insert block.

        Blocks of equal length are paired line by line and refined at
        token level. Blocks of different length are left as a plain
        block replacement.
        """
        if delete.old_length != insert.new_length:
            return (self._create_removed_lines(old_lines, delete)
                    + self._create_added_lines(new_lines, insert))

        removed: list[DiffLine] = []
        added: list[DiffLine] = []

        for pair in range(delete.old_length):
            old_index = delete.old_start + pair
            new_index = insert.new_start + pair
            old_line = old_lines[old_index]
            new_line = new_lines[new_index]

            token_diff = None
            if self._should_refine(old_line, new_line):
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled()
                token_diff = self.compute_token_diff(old_line, new_line)

            removed.append(DiffLine(
                DiffLineType.REMOVED, old_line,
                old_index=old_index, pair_index=pair, token_diff=token_diff
            ))
            added.append(DiffLine(
                DiffLineType.ADDED, new_line,
                new_index=new_index, pair_index=pair, token_diff=token_diff
            ))

        return removed + added

    def _should_refine(self, old_line: str, new_line: str) -> bool:
        limit = self.options.intraline_max_line_length
        return self.options.intraline and len(old_line) <= limit and len(new_line) <= limit


def compose(
    old: TextInput,
    new: TextInput,
    options: Optional[CompareOptions] = None,
    cancel_token: Optional[CancellationToken] = None
) -> CompareOutcome:
    """
    Compare two texts and report how `new` differs from `old`.

    Convenience wrapper around TextDiffEngine.compare.
    """
    return TextDiffEngine(options).compare(old, new, cancel_token)
