"""Tests for confidence filtering and tag mapping."""
import pytest

from pulse.tagme.filtering import filter_by_confidence, to_tags
from pulse.tagme.types import AnnotationCandidate, Tag


@pytest.fixture
def candidates():
    return [
        AnnotationCandidate(title="Rome", confidence=0.2),
        AnnotationCandidate(title="Italy", confidence=0.05),
        AnnotationCandidate(title="Colosseum", confidence=0.1),
        AnnotationCandidate(title="Tiber", confidence=-0.3),
    ]


class TestFilterByConfidence:
    """Tests for filter_by_confidence."""

    def test_no_threshold_is_identity(self, candidates):
        """Without a threshold every candidate passes, same order."""
        assert filter_by_confidence(candidates, None) == candidates

    def test_boundary_is_inclusive(self, candidates):
        """A candidate exactly at the threshold is kept."""
        result = filter_by_confidence(candidates, 0.1)
        assert [c.title for c in result] == ["Rome", "Colosseum"]

    def test_keeps_relative_order(self, candidates):
        result = filter_by_confidence(candidates, -1.0)
        assert result == candidates

    def test_threshold_above_all(self, candidates):
        assert filter_by_confidence(candidates, 0.9) == []

    def test_does_not_mutate_input(self, candidates):
        snapshot = list(candidates)
        filter_by_confidence(candidates, 0.15)
        assert candidates == snapshot

    def test_zero_threshold_keeps_zero_scores(self):
        zero = [AnnotationCandidate(title="Nil", confidence=0.0)]
        assert filter_by_confidence(zero, 0.0) == zero

    def test_accepts_tuples(self, candidates):
        assert filter_by_confidence(tuple(candidates), 0.2) == [candidates[0]]


class TestToTags:
    """Tests for to_tags."""

    def test_preserves_count_order_and_text(self, candidates):
        tags = to_tags(candidates, "tagme")
        assert len(tags) == len(candidates)
        for tag, candidate in zip(tags, candidates):
            assert tag.text == candidate.title
            assert tag.sources == {"tagme"}

    def test_title_copied_verbatim(self):
        tags = to_tags([AnnotationCandidate(title="  new york CITY ", confidence=1.0)], "tagme")
        assert tags[0].text == "  new york CITY "

    def test_duplicates_are_independent_tags(self):
        dupes = [AnnotationCandidate(title="Rome", confidence=0.3)] * 2
        tags = to_tags(dupes, "tagme")
        assert tags == [Tag("Rome", {"tagme"}), Tag("Rome", {"tagme"})]
        tags[0].add_source("other")
        assert tags[1].sources == {"tagme"}

    def test_empty(self):
        assert to_tags([], "tagme") == []
