"""Ordered in-memory mirror of one remote list."""

import logging
from typing import Generic, Iterable, Iterator, List, Optional, Tuple, TypeVar

from nootverse_client.exceptions import StalePositionError
from nootverse_client.models.schema import Note, Universe

logger = logging.getLogger(__name__)

T = TypeVar("T", Note, Universe)


class RecordCache(Generic[T]):
    """Client-visible copy of a remote list, addressed by position.

    Positions here are the ones handed to the actor for update and delete,
    so the cache must only change after the actor accepted the matching
    call. ``epoch`` identifies which full reload produced the contents.
    """

    def __init__(self) -> None:
        self._records: List[T] = []
        self._epoch = 0
        self._loaded = False

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def loaded(self) -> bool:
        """Whether a full reload has populated the cache since the last clear."""
        return self._loaded

    @property
    def records(self) -> Tuple[T, ...]:
        """Immutable snapshot of the current contents."""
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[T]:
        return iter(tuple(self._records))

    def _check(self, position: int, expected_id: Optional[str] = None) -> None:
        if not 0 <= position < len(self._records):
            raise StalePositionError(position, expected_id=expected_id, length=len(self._records))

    def replace_all(self, records: Iterable[T]) -> int:
        """Replace the contents with a full reload and start a new epoch."""
        self._records = list(records)
        self._epoch += 1
        self._loaded = True
        logger.debug(f"Cache reloaded: {len(self._records)} records, epoch {self._epoch}")
        return self._epoch

    def clear(self) -> int:
        """Drop everything, e.g. when the session signs out."""
        self._records = []
        self._epoch += 1
        self._loaded = False
        return self._epoch

    def insert_end(self, record: T) -> int:
        """Append a record; returns its position."""
        self._records.append(record)
        return len(self._records) - 1

    def record_at(self, position: int) -> T:
        self._check(position)
        return self._records[position]

    def replace_at(self, position: int, record: T) -> T:
        """Replace the record at ``position``; returns the previous one."""
        self._check(position, record.id)
        previous = self._records[position]
        self._records[position] = record
        return previous

    def remove_at(self, position: int) -> T:
        """Remove the record at ``position``; later records shift down by one."""
        self._check(position)
        return self._records.pop(position)

    def position_of(self, record_id: str) -> Optional[int]:
        """First position holding ``record_id``, or None."""
        for position, record in enumerate(self._records):
            if record.id == record_id:
                return position
        return None
