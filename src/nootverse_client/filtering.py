"""Pure filters that derive displayed views from cached records."""

from typing import Iterable, List, Sequence, TypeVar

from nootverse_client.models.schema import Note, Universe

T = TypeVar("T", Note, Universe)


def matches_query(record: T, query: str) -> bool:
    """Case-insensitive substring match against any searchable field."""
    needle = query.strip().lower()
    if not needle:
        return True
    return any(needle in text.lower() for text in record.matches_text())


def filter_records(records: Sequence[T], query: str) -> List[T]:
    """Keep records matching ``query``; a blank query keeps everything.

    Title, content (and description for universes) and every tag are
    searched; a hit in any one of them includes the record.
    """
    if not query.strip():
        return list(records)
    return [record for record in records if matches_query(record, query)]


def filter_by_tag(records: Sequence[T], tag: str) -> List[T]:
    """Keep records carrying exactly ``tag`` (case-sensitive)."""
    return [record for record in records if tag in record.tags]


def collect_tags(records: Iterable[T]) -> List[str]:
    """Distinct tags across ``records`` in first-seen order."""
    seen: List[str] = []
    for record in records:
        for tag in record.tags:
            if tag not in seen:
                seen.append(tag)
    return seen
