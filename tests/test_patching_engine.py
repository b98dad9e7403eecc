"""Tests for the search/replace patch engine and its match strategies."""

import pytest

from editorbridge.patching import (
    MATCH_STRATEGIES,
    WHOLE_DOCUMENT,
    MatchSpan,
    PatchRequest,
    anchor_match,
    apply_patch,
    apply_search_replace,
    exact_match,
    locate_match,
    trimmed_line_match,
)
from editorbridge.utils.exceptions import ErrorCategory, PatchNotFoundError


def test_exact_replaces_first_occurrence_only() -> None:
    assert apply_search_replace("abcabc", "bc", "X") == "aXcabc"


def test_single_line_in_middle_of_document() -> None:
    assert apply_search_replace("a\nb\nc\n", "b", "X") == "a\nX\nc\n"


@pytest.mark.parametrize("search", ["", "   ", "\n\t\n"])
def test_empty_or_blank_search_replaces_whole_document(search: str) -> None:
    outcome = apply_patch(PatchRequest("anything\nat all", search, "new body"))
    assert outcome.text == "new body"
    assert outcome.strategy == WHOLE_DOCUMENT
    assert outcome.span is None


def test_indented_block_matches_unindented_search() -> None:
    document = "\n".join(["  foo", "  bar", "  baz"])
    outcome = apply_patch(PatchRequest(document, "foo\nbar\nbaz", "X"))
    assert outcome.strategy == "trimmed_lines"
    assert outcome.text == "X"


def test_whitespace_tier_replaces_original_block_text_only() -> None:
    document = "head\n    x = 1\n    y = 2\ntail"
    outcome = apply_patch(PatchRequest(document, "x = 1\ny = 2", "Z\n"))
    assert outcome.strategy == "trimmed_lines"
    assert outcome.text == "head\nZ\ntail"
    assert document[outcome.span.start : outcome.span.end] == "    x = 1\n    y = 2\n"


def test_anchor_tier_ignores_interior_lines() -> None:
    document = "def f():\n    a = 1\n    return a\n"
    search = "def f():\n    b = 2\n    return a"
    outcome = apply_patch(PatchRequest(document, search, "def f():\n    return 2\n"))
    assert outcome.strategy == "anchor"
    assert outcome.text == "def f():\n    return 2\n"


def test_anchor_tier_needs_three_lines() -> None:
    document = "start\nmiddle\nend"
    with pytest.raises(PatchNotFoundError):
        apply_patch(PatchRequest(document, "start\nend", "X"))


def test_anchor_first_span_wins() -> None:
    document = "begin\n1\nend\nbegin\n2\nend"
    span = anchor_match(document, "begin\nx\nend")
    assert span == MatchSpan(0, len("begin\n1\nend\n"))


def test_not_found_names_strategies_and_is_recoverable() -> None:
    with pytest.raises(PatchNotFoundError) as exc_info:
        apply_patch(PatchRequest("alpha\nbeta", "gamma", "delta"))
    err = exc_info.value
    assert err.category == ErrorCategory.RECOVERABLE
    assert err.details["strategies_tried"] == [name for name, _ in MATCH_STRATEGIES]
    assert "Could not find the specified content" in err.message


def test_strategies_are_tried_in_priority_order() -> None:
    assert [name for name, _ in MATCH_STRATEGIES] == ["exact", "trimmed_lines", "anchor"]
    # Both exact and trimmed would match; exact wins.
    match = locate_match("  x\nx\n", "x")
    assert match.strategy == "exact"
    assert match.span == MatchSpan(2, 3)


def test_individual_strategies_return_none_on_miss() -> None:
    assert exact_match("abc", "z") is None
    assert trimmed_line_match("a\nb", "c") is None
    assert anchor_match("a\nb\nc", "a\nb") is None


def test_trailing_newline_in_search_is_not_a_line() -> None:
    span = trimmed_line_match("one\n  two\nthree", "two\n")
    assert span == MatchSpan(4, 10)


def test_last_line_span_is_clamped_to_document() -> None:
    document = "one\n  two"
    span = trimmed_line_match(document, "two")
    assert span == MatchSpan(4, len(document))


def test_match_span_rejects_inverted_range() -> None:
    with pytest.raises(ValueError):
        MatchSpan(5, 2)
