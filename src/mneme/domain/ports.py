"""
Ports (interfaces) for the outside world.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from typing import Any

from .models import StudyBatch, Word
from .stats.models import SessionPerformance


class KeyValueStore(ABC):
    """
    Port for string-keyed, JSON-valued persistence.

    Implementations:
        - MemoryStore: In-process dict, for tests and throwaway sessions.
        - JsonFileStore: One JSON document per key on disk.
    """

    @abstractmethod
    def get(self, key: str, fallback: Any = None) -> Any:
        """Return the stored value for `key`, or `fallback` if absent or unreadable."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass


class WordSource(ABC):
    """
    Port for the word supply service.

    The order of returned words is the server's priority order.
    """

    @abstractmethod
    def fetch_study_words(self) -> StudyBatch:
        """Fetch the initial batch for a new session."""
        pass

    @abstractmethod
    def fetch_next_words(
        self,
        exclude_ids: list[str],
        mastered_ids: list[str],
        performance: SessionPerformance | None = None,
    ) -> list[Word]:
        """
        Fetch more words for a running session.

        Args:
            exclude_ids: Ids already known to the queue.
            mastered_ids: Ids mastered so far.
            performance: Current session performance, if available.

        Returns:
            Words in priority order; empty when the source is exhausted.
        """
        pass
