"""
Domain models for session analytics.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class AnswerRecord:
    """
    A single answer event.

    Attributes:
        word_id: The word that was answered.
        correct: Whether the answer was right.
        response_time_ms: Time from question shown to answer.
        answered_at: Epoch milliseconds when the answer was recorded.
    """

    word_id: str
    correct: bool
    response_time_ms: float
    answered_at: int = 0


@dataclass(frozen=True)
class SessionMetrics:
    """Accuracy and response time over the whole history and the recent window."""

    overall_accuracy: float = 0.0
    recent_accuracy: float = 0.0
    average_response_time_ms: float = 0.0
    recent_average_response_time_ms: float = 0.0
    total_answers: int = 0


@dataclass(frozen=True)
class SessionPerformance:
    """
    Performance summary sent along with a next-words request.

    The word service uses it to bias the next batch toward troublesome words.
    """

    recent_accuracy: float
    overall_accuracy: float
    mastered_count: int
    target_mastery_count: int | None
    error_prone_word_ids: list[str] = field(default_factory=list)
