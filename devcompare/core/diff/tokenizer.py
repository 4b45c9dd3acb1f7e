"""
Intraline tokenizer.

Splits a line into word runs, whitespace runs and single punctuation
characters. The split is lossless.
"""

from __future__ import annotations

import re

from devcompare.core.models import Token, TokenKind


_TOKEN_PATTERN = re.compile(r'(?P<word>\w+)|(?P<space>\s+)|(?P<punct>.)', re.DOTALL)

_KINDS = {
    'word': TokenKind.WORD,
    'space': TokenKind.WHITESPACE,
    'punct': TokenKind.PUNCTUATION,
}


def tokenize(line: str) -> list[Token]:
    """
    Tokenize a line for intraline comparison.

    Produces maximal runs of word characters (letters, digits,
    underscore), maximal runs of whitespace, and every remaining
    character as its own token.
    """
    return [
        Token(match.group(), _KINDS[match.lastgroup], match.start())
        for match in _TOKEN_PATTERN.finditer(line)
    ]
