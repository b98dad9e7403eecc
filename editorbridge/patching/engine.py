"""Search/replace patch application.

``apply_search_replace`` is pure: it never touches the filesystem. Callers
read the document, apply the patch, and write the result back only on
success, so a failed match leaves the document untouched.

Not idempotent: re-running the same patch against its own output can match
again when the replacement still contains the search text.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from editorbridge.patching.strategies import MATCH_STRATEGIES, MatchSpan
from editorbridge.utils.exceptions import PatchNotFoundError

WHOLE_DOCUMENT = "whole_document"


@dataclass(frozen=True, slots=True)
class PatchRequest:
    document: str
    search: str
    replace: str


@dataclass(frozen=True, slots=True)
class PatchMatch:
    """Span located by a named strategy."""

    strategy: str
    span: MatchSpan


@dataclass(frozen=True, slots=True)
class PatchOutcome:
    text: str
    strategy: str
    span: MatchSpan | None = None


def is_whole_document_search(search: str | None) -> bool:
    """Empty or whitespace-only search text replaces the entire document."""
    return not search or not search.strip()


def locate_match(document: str, search: str) -> PatchMatch | None:
    """Try each strategy in priority order and return the first hit."""
    for name, strategy in MATCH_STRATEGIES:
        span = strategy(document, search)
        if span is not None:
            return PatchMatch(strategy=name, span=span)
    return None


def apply_patch(request: PatchRequest) -> PatchOutcome:
    """Apply a patch request and report which strategy located the region.

    Raises:
        PatchNotFoundError: when no strategy matches.
    """
    if is_whole_document_search(request.search):
        return PatchOutcome(text=request.replace, strategy=WHOLE_DOCUMENT)

    match = locate_match(request.document, request.search)
    if match is None:
        raise PatchNotFoundError(strategies=[name for name, _ in MATCH_STRATEGIES])

    if match.strategy != "exact":
        logger.debug(
            "Patch located by {} strategy at [{}, {})",
            match.strategy,
            match.span.start,
            match.span.end,
        )
    return PatchOutcome(
        text=match.span.splice(request.document, request.replace),
        strategy=match.strategy,
        span=match.span,
    )


def apply_search_replace(document: str, search: str, replace: str) -> str:
    """Return ``document`` with the located region replaced by ``replace``."""
    return apply_patch(PatchRequest(document=document, search=search, replace=replace)).text
