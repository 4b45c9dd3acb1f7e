"""
Line splitting with line-ending normalization.
"""

from __future__ import annotations

from devcompare.core.models import Line, LineEnding


def normalize_line_endings(text: str) -> str:
    """Convert CRLF and lone CR breaks to LF."""
    return text.replace('\r\n', '\n').replace('\r', '\n')


def split_lines(text: str) -> list[Line]:
    """
    Split text into lines.

    CRLF, CR and LF all count as one break. Empty lines are kept, a
    trailing break yields a final empty line, and the empty string
    yields a single empty line.

    Args:
        text: Text to split

    Returns:
        Lines in order, without their line breaks
    """
    return [
        Line(index, content)
        for index, content in enumerate(normalize_line_endings(text).split('\n'))
    ]


def detect_line_ending(text: str) -> LineEnding:
    """Detect line ending style in text."""
    crlf_count = text.count('\r\n')
    lf_count = text.count('\n') - crlf_count
    cr_count = text.count('\r') - crlf_count

    total = crlf_count + lf_count + cr_count
    if total == 0:
        return LineEnding.NONE

    if crlf_count == total:
        return LineEnding.CRLF
    elif lf_count == total:
        return LineEnding.LF
    elif cr_count == total:
        return LineEnding.CR
    else:
        return LineEnding.MIXED
