"""Tests for the intraline tokenizer."""

from hypothesis import given, strategies as st

from devcompare.core.diff.tokenizer import tokenize
from devcompare.core.models import TokenKind


def test_empty_line_has_no_tokens():
    assert tokenize("") == []


def test_words_whitespace_and_punctuation():
    tokens = tokenize("foo(bar,  baz_1);")
    assert [t.text for t in tokens] == ["foo", "(", "bar", ",", "  ", "baz_1", ")", ";"]
    assert [t.kind for t in tokens[:4]] == [
        TokenKind.WORD, TokenKind.PUNCTUATION, TokenKind.WORD, TokenKind.PUNCTUATION
    ]
    assert tokens[4].kind is TokenKind.WHITESPACE


def test_each_punctuation_character_is_its_own_token():
    assert [t.text for t in tokenize("->=")] == ["-", ">", "="]


def test_offsets_point_into_the_line():
    line = "x = y + 42"
    for token in tokenize(line):
        assert line[token.start:token.end] == token.text


def test_unicode_letters_form_words():
    assert [t.text for t in tokenize("héllo wörld")] == ["héllo", " ", "wörld"]


@given(st.text())
def test_tokens_concatenate_to_the_line(line):
    assert "".join(token.text for token in tokenize(line)) == line
