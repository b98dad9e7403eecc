"""Search/replace patching with tiered match strategies."""

from editorbridge.patching.engine import (
    WHOLE_DOCUMENT,
    PatchMatch,
    PatchOutcome,
    PatchRequest,
    apply_patch,
    apply_search_replace,
    is_whole_document_search,
    locate_match,
)
from editorbridge.patching.strategies import (
    MATCH_STRATEGIES,
    MatchSpan,
    anchor_match,
    exact_match,
    trimmed_line_match,
)

__all__ = [
    "MATCH_STRATEGIES",
    "MatchSpan",
    "PatchMatch",
    "PatchOutcome",
    "PatchRequest",
    "WHOLE_DOCUMENT",
    "anchor_match",
    "apply_patch",
    "apply_search_replace",
    "exact_match",
    "is_whole_document_search",
    "locate_match",
    "trimmed_line_match",
]
