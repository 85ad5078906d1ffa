"""
Domain models for the learning queue.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from typing import Literal

LearningMode = Literal["word-to-meaning", "meaning-to-word"]

LEARNING_MODES: tuple[LearningMode, ...] = ("word-to-meaning", "meaning-to-word")


@dataclass(frozen=True)
class Word:
    """
    A vocabulary item supplied by the word service.

    Only `id`, `text` and `meaning` take part in scheduling; the rest is
    carried along for display.
    """

    id: str
    text: str
    meaning: str
    pronunciation: str | None = None
    part_of_speech: str | None = None
    difficulty: int = 1
    examples: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def answer_for(self, mode: LearningMode) -> str:
        """The field a quiz in `mode` asks for."""
        return self.meaning if mode == "word-to-meaning" else self.text


@dataclass
class QueuedWord:
    """
    A word plus its mutable scheduling state.

    Attributes:
        word: The wrapped vocabulary item.
        correct_count: Consecutive correct answers since the last miss.
        error_count: Consecutive misses since the last correct answer.
        last_shown: Epoch milliseconds of the last recorded answer (0 = never).
        priority: Server ordering hint, lower is shown sooner.
    """

    word: Word
    correct_count: int = 0
    error_count: int = 0
    last_shown: int = 0
    priority: int = 0

    @property
    def word_id(self) -> str:
        return self.word.id


@dataclass(frozen=True)
class QueueCounts:
    """Snapshot of queue sizes delivered to observers."""

    active: int
    mastered: int


@dataclass(frozen=True)
class RecordResult:
    mastered: bool


@dataclass(frozen=True)
class StudyBatch:
    """Initial batch returned by a word source."""

    words: list[Word]
    batch_size: int | None = None  # strategy hint from the source
