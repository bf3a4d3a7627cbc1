"""Tests for local search and tag filtering."""
from nootverse_client.filtering import collect_tags, filter_by_tag, filter_records
from nootverse_client.models.schema import Note, Universe

NOTES = [
    Note(id="1", title="Shopping list", content="eggs, milk", tags=["home"]),
    Note(id="2", title="Meeting", content="Discuss **Roadmap**", tags=["Work"]),
    Note(id="3", title="Ideas", content="", tags=["work", "later"]),
]


class TestFilterRecords:
    """Tests for the substring filter."""

    def test_blank_query_keeps_everything(self):
        assert filter_records(NOTES, "") == NOTES
        assert filter_records(NOTES, "   ") == NOTES

    def test_matches_title_case_insensitively(self):
        assert [n.id for n in filter_records(NOTES, "SHOP")] == ["1"]

    def test_matches_content(self):
        assert [n.id for n in filter_records(NOTES, "roadmap")] == ["2"]

    def test_matches_any_tag(self):
        assert [n.id for n in filter_records(NOTES, "work")] == ["2", "3"]

    def test_no_match(self):
        assert filter_records(NOTES, "zebra") == []

    def test_filter_is_idempotent(self):
        once = filter_records(NOTES, "work")
        assert filter_records(once, "work") == once

    def test_universe_description_is_searched(self):
        universe = Universe(
            id="u", title="T", description="A desert planet", created_at_ms=0, updated_at_ms=0
        )
        assert filter_records([universe], "desert") == [universe]


class TestTagFilters:
    """Tests for exact tag filtering and tag collection."""

    def test_filter_by_tag_is_exact(self):
        assert [n.id for n in filter_by_tag(NOTES, "work")] == ["3"]
        assert [n.id for n in filter_by_tag(NOTES, "Work")] == ["2"]

    def test_collect_tags_first_seen_order(self):
        assert collect_tags(NOTES) == ["home", "Work", "work", "later"]
