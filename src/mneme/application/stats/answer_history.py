"""Bounded log of answer events."""

from collections import deque
from collections.abc import Iterator

from mneme.domain.constants import MAX_ANSWER_HISTORY
from mneme.domain.stats.models import AnswerRecord


class AnswerHistory:
    """
    Append-only ring buffer of answers.

    Once `max_size` is reached every append drops the oldest record, so
    memory stays bounded for arbitrarily long sessions.
    """

    def __init__(self, max_size: int = MAX_ANSWER_HISTORY):
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self._records: deque[AnswerRecord] = deque(maxlen=max_size)

    @property
    def max_size(self) -> int:
        return self._records.maxlen or 0

    def append(self, record: AnswerRecord) -> None:
        self._records.append(record)

    def clear(self) -> None:
        self._records.clear()

    def records(self) -> tuple[AnswerRecord, ...]:
        """Oldest first."""
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[AnswerRecord]:
        return iter(self._records)
