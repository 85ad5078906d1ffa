"""
Adaptive learning queue.

Owns the `active` and `mastered` collections, records answers, and exposes
the selection engine and session analytics over the current state. Every
mutating call snapshots the queue and notifies observers with fresh counts.
"""

import logging
import random
import time
from collections.abc import Callable, Iterable

from mneme.application.persistence import QueueSnapshotRepository
from mneme.application.selection import generate_options, pick_next
from mneme.application.stats import AnswerHistory, SessionMetricsCalculator
from mneme.domain.constants import DEFAULT_BATCH_SIZE, MASTERY_THRESHOLD, PREFETCH_THRESHOLD
from mneme.domain.models import LearningMode, QueueCounts, QueuedWord, RecordResult, Word
from mneme.domain.stats.models import AnswerRecord, SessionMetrics, SessionPerformance

logger = logging.getLogger(__name__)

CountsListener = Callable[[QueueCounts], None]


def epoch_millis() -> int:
    return int(time.time() * 1000)


class WordQueueManager:
    """
    In-memory scheduler deciding which word to show next.

    Invariants:
        - A word id lives in at most one of active/mastered, at most once.
        - correct_count and error_count are never both nonzero.
        - A word moves to mastered exactly once, when correct_count reaches
          the mastery threshold.
        - Priorities of a new batch continue after the highest active priority.

    The persisted snapshot is restored once, at construction.
    """

    def __init__(
        self,
        snapshots: QueueSnapshotRepository,
        batch_size: int = DEFAULT_BATCH_SIZE,
        mastery_threshold: int = MASTERY_THRESHOLD,
        history: AnswerHistory | None = None,
        calculator: SessionMetricsCalculator | None = None,
        clock: Callable[[], int] = epoch_millis,
        rng: random.Random | None = None,
    ):
        """
        Args:
            snapshots: Persistence adapter for the queue state.
            batch_size: Desired number of active words.
            mastery_threshold: Consecutive correct answers needed for mastery.
            history: Answer log; a default-sized one is created if not provided.
            calculator: Metrics calculator; uses default if not provided.
            clock: Returns epoch milliseconds.
            rng: Randomness for option shuffling; unseeded if not provided.
        """
        if mastery_threshold < 1:
            raise ValueError(f"mastery_threshold must be positive, got {mastery_threshold}")

        self._snapshots = snapshots
        self._mastery_threshold = mastery_threshold
        self._history = history if history is not None else AnswerHistory()
        self._calc = calculator or SessionMetricsCalculator()
        self._clock = clock
        self._rng = rng or random.Random()
        self._listeners: list[CountsListener] = []

        self._active: list[QueuedWord] = []
        self._mastered: list[QueuedWord] = []
        self._batch_size = DEFAULT_BATCH_SIZE
        self._target_mastery_count: int | None = None

        self.set_batch_size(batch_size)
        self._restore()

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: CountsListener) -> Callable[[], None]:
        """
        Register a listener for active/mastered counts.

        Returns a callable that unsubscribes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def counts(self) -> QueueCounts:
        return QueueCounts(active=len(self._active), mastered=len(self._mastered))

    def _notify(self) -> None:
        counts = self.counts()
        for listener in list(self._listeners):
            listener(counts)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist(self) -> None:
        self._snapshots.save(self._active, self._mastered, self._batch_size)

    def _restore(self) -> None:
        state = self._snapshots.load()
        if state is not None:
            self._active = state.active
            self._mastered = state.mastered
            if state.batch_size is not None:
                self._batch_size = state.batch_size
            logger.info(
                f"Restored learning queue: {len(self._active)} active, "
                f"{len(self._mastered)} mastered"
            )
        self._notify()

    # ------------------------------------------------------------------
    # Queue store
    # ------------------------------------------------------------------

    def load_words(self, words: Iterable[Word]) -> int:
        """Load the initial batch. Returns the number of words inserted."""
        return self._merge(words)

    def add_words(self, words: Iterable[Word]) -> int:
        """Append a follow-up batch. Returns the number of words inserted."""
        return self._merge(words)

    def _merge(self, words: Iterable[Word]) -> int:
        existing_ids = set(self.get_all_word_ids())
        next_priority = max((q.priority for q in self._active), default=-1) + 1

        inserted = 0
        for word in words:
            if word.id in existing_ids:
                continue
            existing_ids.add(word.id)
            self._active.append(QueuedWord(word=word, priority=next_priority))
            next_priority += 1
            inserted += 1

        logger.debug(f"Merged {inserted} new words into the active queue")
        self._persist()
        self._notify()
        return inserted

    def record_answer(
        self,
        word_id: str,
        correct: bool,
        response_time_ms: float | None = None,
    ) -> RecordResult:
        """
        Record an answer for an active word.

        Unknown ids are ignored and reported as not mastered.
        """
        entry = next((q for q in self._active if q.word_id == word_id), None)
        if entry is None:
            logger.debug(f"Ignoring answer for unknown word {word_id}")
            return RecordResult(mastered=False)

        now = self._clock()
        entry.last_shown = now

        if response_time_ms is not None:
            self._history.append(
                AnswerRecord(
                    word_id=word_id,
                    correct=correct,
                    response_time_ms=response_time_ms,
                    answered_at=now,
                )
            )

        mastered = False
        if correct:
            entry.correct_count += 1
            entry.error_count = 0
            if entry.correct_count >= self._mastery_threshold:
                self._active.remove(entry)
                self._mastered.append(entry)
                mastered = True
                logger.info(f"Word {word_id} mastered")
        else:
            entry.correct_count = 0
            entry.error_count += 1

        self._persist()
        self._notify()
        return RecordResult(mastered=mastered)

    def reset(self) -> None:
        """Start over: drop every word, the history and the mastery target."""
        self._active = []
        self._mastered = []
        self._history.clear()
        self._target_mastery_count = None
        self._snapshots.clear()
        self._notify()

    def set_batch_size(self, size: int) -> None:
        if size < 1:
            raise ValueError(f"batch size must be positive, got {size}")
        self._batch_size = size

    def set_target_mastery_count(self, count: int | None) -> None:
        if count is not None and count < 0:
            raise ValueError(f"target mastery count must not be negative, got {count}")
        self._target_mastery_count = count

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def mastery_threshold(self) -> int:
        return self._mastery_threshold

    @property
    def target_mastery_count(self) -> int | None:
        return self._target_mastery_count

    @property
    def active_count(self) -> int:
        return len(self._active)

    @property
    def mastered_count(self) -> int:
        return len(self._mastered)

    def active_words(self) -> tuple[QueuedWord, ...]:
        return tuple(self._active)

    def mastered_words(self) -> tuple[QueuedWord, ...]:
        return tuple(self._mastered)

    def get_all_word_ids(self) -> list[str]:
        return [q.word_id for q in self._active] + [q.word_id for q in self._mastered]

    def get_mastered_word_ids(self) -> list[str]:
        return [q.word_id for q in self._mastered]

    # ------------------------------------------------------------------
    # Selection engine
    # ------------------------------------------------------------------

    def pick_next(self) -> QueuedWord | None:
        return pick_next(self._active)

    def generate_options(self, target: QueuedWord, mode: LearningMode) -> list[str]:
        return generate_options(target, [*self._active, *self._mastered], mode, self._rng)

    def needs_more_words(self) -> bool:
        return len(self._active) < self._batch_size

    def should_prefetch(self) -> bool:
        """Fetch ahead before the last couple of active words run out."""
        if len(self._active) > PREFETCH_THRESHOLD:
            return False
        target = self._target_mastery_count
        return target is None or len(self._mastered) < target

    # ------------------------------------------------------------------
    # Session analytics
    # ------------------------------------------------------------------

    def compute_session_metrics(self) -> SessionMetrics:
        return self._calc.compute(self._history.records())

    def get_error_prone_word_ids(self) -> list[str]:
        return [q.word_id for q in (*self._active, *self._mastered) if q.error_count > 0]

    def answer_history(self) -> tuple[AnswerRecord, ...]:
        return self._history.records()

    def reset_history(self) -> None:
        """Clear the answer log but keep the queue (new session, same words)."""
        self._history.clear()

    def build_session_performance(self) -> SessionPerformance:
        metrics = self.compute_session_metrics()
        return SessionPerformance(
            recent_accuracy=metrics.recent_accuracy,
            overall_accuracy=metrics.overall_accuracy,
            mastered_count=len(self._mastered),
            target_mastery_count=self._target_mastery_count,
            error_prone_word_ids=self.get_error_prone_word_ids(),
        )
