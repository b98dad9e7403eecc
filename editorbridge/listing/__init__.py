"""Bounded workspace listing."""

from editorbridge.listing.ignore import IgnoreMatcher, load_gitignore
from editorbridge.listing.traversal import (
    ABSOLUTE_MAX_DEPTH,
    ABSOLUTE_MAX_FILES,
    ALWAYS_EXCLUDED_DIRS,
    MAX_IMMEDIATE_CHILDREN,
    TIMEOUT_SECONDS,
    BoundedTraversal,
    ListingEntry,
    ListingOptions,
    TruncationReason,
    list_workspace_files,
)

__all__ = [
    "ABSOLUTE_MAX_DEPTH",
    "ABSOLUTE_MAX_FILES",
    "ALWAYS_EXCLUDED_DIRS",
    "MAX_IMMEDIATE_CHILDREN",
    "TIMEOUT_SECONDS",
    "BoundedTraversal",
    "IgnoreMatcher",
    "ListingEntry",
    "ListingOptions",
    "TruncationReason",
    "list_workspace_files",
    "load_gitignore",
]
