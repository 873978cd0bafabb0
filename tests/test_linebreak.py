import pytest

from ogp_image.errors import EmptyGlyphs
from ogp_image.linebreak import ELLIPSIS, Line, break_lines, truncate_lines, wrap_tokens


def test_wrap_tokens_packs_four_per_line(measurer):
    lines = wrap_tokens(list("abcdefghijkl"), measurer, 45)
    assert [line.text for line in lines] == ["abcd", "efgh", "ijkl"]


def test_single_line_is_flushed(measurer):
    lines = wrap_tokens(["ab", "cd"], measurer, 1000)
    assert [line.tokens for line in lines] == [("ab", "cd")]


def test_oversized_token_stays_alone_without_empty_lines(measurer):
    lines = wrap_tokens(["a", "toolongtoken", "b"], measurer, 45)
    assert [line.text for line in lines] == ["a", "toolongtoken", "b"]

    lines = wrap_tokens(["toolongtoken", "b"], measurer, 45)
    assert [line.text for line in lines] == ["toolongtoken", "b"]


def test_wrapping_is_lossless(measurer):
    tokens = ["Hello ", "wide ", "world ", "of ", "tokens"]
    lines = wrap_tokens(tokens, measurer, 120)
    assert "".join(line.text for line in lines) == "".join(tokens)


def test_truncation_keeps_four_lines_and_adds_ellipsis(char_segmenter, measurer):
    title = "abcd" * 6
    untruncated = wrap_tokens(char_segmenter.segment(title), measurer, 45)
    assert len(untruncated) == 6

    lines = break_lines(title, char_segmenter, measurer, 45)

    assert len(lines) == 4
    assert [line.text for line in lines[:3]] == ["abcd"] * 3
    assert lines[3].text == untruncated[3].text[:-1] + ELLIPSIS
    assert lines[3].text.endswith(ELLIPSIS)


def test_four_lines_are_not_truncated():
    lines = [Line(("abcd",))] * 4
    assert truncate_lines(lines) == lines


def test_line_truncated_skips_trailing_empty_tokens():
    assert Line(("ab", "cd", "")).truncated().text == "abc" + ELLIPSIS


def test_measurement_failure_propagates(measurer):
    with pytest.raises(EmptyGlyphs):
        wrap_tokens(["   "], measurer, 45)
