"""Match strategies for search/replace patches.

Each strategy is a pure function ``(document, search) -> MatchSpan | None``.
``MATCH_STRATEGIES`` lists them in priority order; the engine tries them in
sequence and the first span found wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True, slots=True)
class MatchSpan:
    """Half-open character range ``[start, end)`` into the original document."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid span: ({self.start}, {self.end})")

    def splice(self, document: str, replacement: str) -> str:
        return document[: self.start] + replacement + document[self.end :]


MatchStrategy = Callable[[str, str], "MatchSpan | None"]


def _search_lines(search: str) -> list[str]:
    lines = search.split("\n")
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    return lines


def _line_span(lines: list[str], first: int, count: int, total_length: int) -> MatchSpan:
    """Span covering ``count`` lines from ``first``, including each line terminator."""
    start = sum(len(line) + 1 for line in lines[:first])
    end = start + sum(len(line) + 1 for line in lines[first : first + count])
    # The last document line has no terminator.
    return MatchSpan(start, min(end, total_length))


def exact_match(document: str, search: str) -> MatchSpan | None:
    """First verbatim occurrence of ``search``."""
    index = document.find(search)
    if index == -1:
        return None
    return MatchSpan(index, index + len(search))


def trimmed_line_match(document: str, search: str) -> MatchSpan | None:
    """First run of lines equal to the search lines after stripping each line."""
    doc_lines = document.split("\n")
    wanted = [line.strip() for line in _search_lines(search)]
    size = len(wanted)
    stripped = [line.strip() for line in doc_lines]
    for i in range(len(doc_lines) - size + 1):
        if stripped[i : i + size] == wanted:
            return _line_span(doc_lines, i, size, len(document))
    return None


def anchor_match(document: str, search: str) -> MatchSpan | None:
    """First same-sized block whose first and last stripped lines match; interior ignored.

    Only used for blocks of three or more lines.
    """
    wanted = _search_lines(search)
    size = len(wanted)
    if size < 3:
        return None
    first, last = wanted[0].strip(), wanted[-1].strip()
    doc_lines = document.split("\n")
    for i in range(len(doc_lines) - size + 1):
        if doc_lines[i].strip() == first and doc_lines[i + size - 1].strip() == last:
            return _line_span(doc_lines, i, size, len(document))
    return None


MATCH_STRATEGIES: tuple[tuple[str, MatchStrategy], ...] = (
    ("exact", exact_match),
    ("trimmed_lines", trimmed_line_match),
    ("anchor", anchor_match),
)
