"""Case-insensitive containment matching between field labels."""

from __future__ import annotations

from typing import Iterable


def _fold(value: str | None) -> str:
    return (value or "").strip().casefold()


def labels_match(a: str | None, b: str | None) -> bool:
    """Return ``True`` when either label contains the other, ignoring case.

    Blank labels never match: an empty string is a substring of everything.
    Matching is symmetric but not transitive.
    """
    left = _fold(a)
    right = _fold(b)
    if not left or not right:
        return False
    return left in right or right in left


def matches_any(candidate: str | None, labels: Iterable[str]) -> bool:
    """Return ``True`` when ``candidate`` matches at least one of ``labels``."""
    return any(labels_match(candidate, label) for label in labels)
