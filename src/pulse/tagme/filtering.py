"""Confidence filtering and tag mapping for annotation candidates."""

from __future__ import annotations

from collections.abc import Iterable

from pulse.tagme.types import AnnotationCandidate, Tag


def filter_by_confidence(
    candidates: Iterable[AnnotationCandidate],
    min_confidence: float | None,
) -> list[AnnotationCandidate]:
    """Keep candidates whose confidence is at or above ``min_confidence``.

    None keeps everything, in the original order.
    """
    if min_confidence is None:
        return list(candidates)
    return [c for c in candidates if c.confidence >= min_confidence]


def to_tags(candidates: Iterable[AnnotationCandidate], source_name: str) -> list[Tag]:
    """One tag per candidate, same order, title copied verbatim."""
    return [Tag(text=c.title, sources={source_name}) for c in candidates]
