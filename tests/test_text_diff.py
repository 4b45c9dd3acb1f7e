"""Tests for the text diff engine (line composition and intraline refinement)."""

import pytest
from hypothesis import given, strategies as st

from devcompare.core.cancellation import CancellationToken
from devcompare.core.diff.text_diff import CompareOptions, TextDiffEngine, compose
from devcompare.core.models import CompareStatus, DiffLineType, EditTag, LineEnding


def line_types(result):
    return [line.line_type for line in result.lines]


def compare_ok(old, new, **options):
    outcome = compose(old, new, CompareOptions(**options))
    assert outcome.status is CompareStatus.OK, outcome.error
    return outcome.result


class TestScenarios:

    def test_identical_texts(self):
        result = compare_ok("a\nb\nc", "a\nb\nc")
        assert line_types(result) == [DiffLineType.UNCHANGED] * 3
        assert result.statistics.added == 0
        assert result.statistics.removed == 0
        assert result.is_identical

    def test_single_line_replaced(self):
        result = compare_ok("a\nb\nc", "a\nx\nc")
        assert line_types(result) == [
            DiffLineType.UNCHANGED, DiffLineType.REMOVED, DiffLineType.ADDED, DiffLineType.UNCHANGED
        ]
        removed, added = result.lines[1], result.lines[2]
        assert (removed.content, added.content) == ("b", "x")
        assert removed.pair_index == added.pair_index == 0

        token_diff = removed.token_diff
        assert token_diff is added.token_diff
        assert [op.tag for op in token_diff.script] == [EditTag.DELETE, EditTag.INSERT]
        assert [t.text for t in token_diff.old_tokens] == ["b"]
        assert [t.text for t in token_diff.new_tokens] == ["x"]
        assert result.statistics.replace_groups == 1

    def test_empty_old_text(self):
        result = compare_ok("", "hello")
        assert line_types(result) == [DiffLineType.ADDED]
        assert result.lines[0].content == "hello"
        assert result.statistics.added == 1
        assert result.statistics.removed == 0

    def test_leading_line_removed(self):
        result = compare_ok("foo\nbar", "bar")
        assert [(line.line_type, line.content) for line in result.lines] == [
            (DiffLineType.REMOVED, "foo"),
            (DiffLineType.UNCHANGED, "bar"),
        ]
        assert result.statistics.removed == 1
        assert result.statistics.unchanged == 1

    def test_large_text_with_one_change(self):
        old_lines = [f"record {i}: value={i * 7}" for i in range(50_000)]
        new_lines = list(old_lines)
        new_lines[31_337] = "record 31337: value=0"

        result = compare_ok("\n".join(old_lines), "\n".join(new_lines))

        stats = result.statistics
        assert stats.replace_groups == 1
        assert (stats.added, stats.removed, stats.unchanged) == (1, 1, 49_999)
        changed = list(result.iter_changes())
        assert [line.old_line_num for line in changed[:1]] == [31_338]
        assert changed[0].has_intraline_diff

    def test_case_insensitive_equality(self):
        result = compare_ok("Hello", "hello", case_sensitive=False)
        assert line_types(result) == [DiffLineType.UNCHANGED]
        assert result.is_identical
        assert result.lines[0].content == "Hello"
        assert result.lines[0].new_content == "hello"


class TestEmptyInputs:

    def test_both_empty(self):
        result = compare_ok("", "")
        assert result.lines == []
        assert result.is_identical
        assert result.statistics.similarity_ratio == 1.0

    def test_new_empty(self):
        result = compare_ok("a\nb", "")
        assert line_types(result) == [DiffLineType.REMOVED, DiffLineType.REMOVED]

    def test_single_newline_is_two_empty_lines(self):
        result = compare_ok("\n", "")
        assert [line.content for line in result.lines] == ["", ""]


class TestOptions:

    def test_ignore_whitespace(self):
        result = compare_ok("a  =  1\n\tb", "a = 1\nb", ignore_whitespace=True)
        assert result.is_identical

    def test_whitespace_matters_by_default(self):
        result = compare_ok("a = 1", "a  = 1")
        assert not result.is_identical

    def test_line_endings_do_not_matter(self):
        result = compare_ok("a\r\nb\r\n", "a\nb\n")
        assert result.is_identical
        assert result.old_line_ending is LineEnding.CRLF
        assert result.new_line_ending is LineEnding.LF

    def test_intraline_can_be_disabled(self):
        result = compare_ok("a\nb", "a\nc", intraline=False)
        assert all(line.token_diff is None for line in result.lines)
        assert result.lines[1].pair_index == 0

    def test_long_lines_are_not_refined(self):
        result = compare_ok("x" * 20, "y" * 20, intraline_max_line_length=10)
        assert result.lines[0].token_diff is None

    def test_case_insensitive_tokens(self):
        result = compare_ok("Hello World", "HELLO there", case_sensitive=False)
        token_diff = result.lines[0].token_diff
        assert token_diff.tokens_removed == 1
        assert token_diff.tokens_added == 1

    @pytest.mark.parametrize("field, value", [
        ("max_comparable_size", 0),
        ("max_lines", 0),
        ("max_edit_distance", -1),
        ("intraline_max_line_length", -1),
    ])
    def test_invalid_options(self, field, value):
        with pytest.raises(ValueError):
            CompareOptions(**{field: value})


class TestReplaceGroups:

    def test_unequal_blocks_are_not_paired(self):
        result = compare_ok("a\nb\nc", "x\ny")
        assert all(not line.is_paired for line in result.lines)
        assert all(line.token_diff is None for line in result.lines)
        assert result.statistics.replace_groups == 0

    def test_equal_blocks_pair_in_order(self):
        result = compare_ok("keep\nold one\nold two\nkeep", "keep\nnew one\nnew two\nkeep")
        removed = [line for line in result.lines if line.line_type is DiffLineType.REMOVED]
        added = [line for line in result.lines if line.line_type is DiffLineType.ADDED]
        assert [line.pair_index for line in removed] == [0, 1]
        assert [line.pair_index for line in added] == [0, 1]
        assert removed[1].token_diff is added[1].token_diff
        assert result.statistics.replace_groups == 1
        assert result.statistics.tokens_removed == 2
        assert result.statistics.tokens_added == 2

    def test_highlights_cover_changed_words(self):
        result = compare_ok("print('Hello ' + name)", "print('Hi ' + name)")
        removed, added = result.lines
        old_span, = removed.highlights
        new_span, = added.highlights
        assert removed.content[old_span.start:old_span.end] == "Hello"
        assert added.content[new_span.start:new_span.end] == "Hi"
        assert old_span.diff_type == "deleted"
        assert new_span.diff_type == "inserted"


class TestRefusals:

    def test_oversized_input(self):
        outcome = compose("x" * 11, "", CompareOptions(max_comparable_size=10))
        assert outcome.status is CompareStatus.OVERSIZED_INPUT
        assert outcome.result is None
        assert "Old input too large" in outcome.error

    def test_size_counts_utf8_bytes(self):
        outcome = compose("", "é" * 6, CompareOptions(max_comparable_size=10))
        assert outcome.status is CompareStatus.OVERSIZED_INPUT
        assert "New input" in outcome.error

    def test_too_many_lines(self):
        outcome = compose("a\nb\nc", "a", CompareOptions(max_lines=2))
        assert outcome.status is CompareStatus.OVERSIZED_INPUT

    def test_edit_distance_ceiling(self):
        outcome = compose("a\nb\nc", "x\ny\nz", CompareOptions(max_edit_distance=2))
        assert outcome.status is CompareStatus.OVERSIZED_INPUT

    def test_invalid_utf8_bytes(self):
        outcome = compose(b"caf\xe9", b"cafe")
        assert outcome.status is CompareStatus.INVALID_ENCODING
        assert "offset 3" in outcome.error

    def test_unpaired_surrogate(self):
        outcome = compose("ok", "bad \ud800")
        assert outcome.status is CompareStatus.INVALID_ENCODING

    def test_utf8_bytes_are_accepted(self):
        outcome = compose("café".encode("utf-8"), b"\xef\xbb\xbfcaf\xc3\xa9")
        assert outcome.success
        assert outcome.result.is_identical

    def test_cancelled_before_start(self):
        token = CancellationToken()
        token.cancel()
        outcome = compose("a\nb", "a\nc", cancel_token=token)
        assert outcome.status is CompareStatus.CANCELLED
        assert outcome.result is None

    def test_cancelled_between_line_refinements(self):
        token = CancellationToken()
        refined = []

        class CancelAfterFirstPair(TextDiffEngine):
            def compute_token_diff(self, old_line, new_line):
                refined.append(old_line)
                token.cancel()
                return super().compute_token_diff(old_line, new_line)

        old = "\n".join(f"old value {i}" for i in range(5))
        new = "\n".join(f"new value {i}" for i in range(5))
        outcome = CancelAfterFirstPair().compare(old, new, token)

        assert outcome.status is CompareStatus.CANCELLED
        assert outcome.result is None
        assert refined == ["old value 0"]


class TestResultShape:

    def test_binary_looking_content_is_flagged(self):
        result = compare_ok("a\x00b", "a\x00c")
        assert result.is_binary

    def test_text_statistics(self):
        result = compare_ok("one two\nthree", "")
        assert result.old_text_stats.words == 3
        assert result.old_text_stats.lines == 2
        assert result.new_text_stats.lines == 1
        assert result.new_text_stats.words == 0
        assert result.statistics.total_lines_new == 0

    def test_engine_is_reusable(self):
        engine = TextDiffEngine()
        first = engine.compare("a", "b").result
        engine.compare("x\ny", "y").result
        assert engine.compare("a", "b").result == first

    def test_determinism(self, sample_old, sample_new):
        assert compose(sample_old, sample_new) == compose(sample_old, sample_new)


texts = st.lists(st.sampled_from(["alpha", "beta", "Beta", "gamma x", ""]), max_size=12).map("\n".join)


@given(texts, texts)
def test_lines_reconstruct_both_texts(old, new):
    result = compare_ok(old, new)
    assert result.old_lines() == (old.split("\n") if old else [])
    assert result.new_lines() == (new.split("\n") if new else [])


@given(texts, texts)
def test_case_insensitive_lines_reconstruct_new_text(old, new):
    result = compare_ok(old, new, case_sensitive=False)
    assert result.new_lines() == (new.split("\n") if new else [])


@given(texts)
def test_comparing_text_with_itself(text):
    result = compare_ok(text, text)
    assert result.is_identical
    assert result.statistics.total_changes == 0
