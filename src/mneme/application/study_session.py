"""
Study session orchestration.

Drives the learning queue the way the quiz screen does: load a batch, ask,
record, prefetch more words when the active queue runs low, and stop once
the mastery target is reached.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from ulid import ULID

from mneme.application.preferences import LearningPreferences
from mneme.application.queue_manager import WordQueueManager
from mneme.domain.models import LearningMode, QueuedWord
from mneme.domain.ports import WordSource
from mneme.domain.stats.models import SessionMetrics

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """Generate a local session id using ULID."""
    return f"session_{ULID()}"


@dataclass(frozen=True)
class Question:
    entry: QueuedWord
    options: list[str]
    mode: LearningMode

    @property
    def prompt(self) -> str:
        word = self.entry.word
        return word.text if self.mode == "word-to-meaning" else word.meaning

    @property
    def correct_answer(self) -> str:
        return self.entry.word.answer_for(self.mode)


@dataclass(frozen=True)
class AnswerOutcome:
    correct: bool
    correct_answer: str
    mastered: bool
    finished: bool  # mastery target reached


@dataclass(frozen=True)
class SessionSummary:
    session_id: str | None
    total_questions: int
    correct_answers: int
    mastered_count: int
    target_mastery_count: int | None
    metrics: SessionMetrics


class StudySession:
    """
    One quiz session over a WordQueueManager.

    A session id persisted in the preferences is resumed as long as the
    queue still has active words; otherwise a fresh session is started.
    """

    def __init__(
        self,
        queue: WordQueueManager,
        source: WordSource,
        preferences: LearningPreferences,
        target_mastery_count: int | None = None,
        id_factory: Callable[[], str] = generate_session_id,
    ):
        self.queue = queue
        self.source = source
        self.preferences = preferences
        self._configured_target = target_mastery_count
        self._id_factory = id_factory
        self._exhausted = False
        self.session_id: str | None = None
        self.resumed = False
        self.total_questions = 0
        self.correct_answers = 0

    def start(self) -> str:
        """Begin or resume a session. Returns the session id."""
        self._exhausted = False
        self.total_questions = 0
        self.correct_answers = 0

        previous = self.preferences.session_id
        if previous and self.queue.active_count > 0:
            self.session_id = previous
            self.resumed = True
            self.queue.reset_history()
            target = self._configured_target or self.preferences.target_mastery_count
            if target is None:
                target = len(self.queue.get_all_word_ids())
            self.queue.set_target_mastery_count(target)
            logger.info(f"Resumed session {previous} with {self.queue.active_count} active words")
            return previous

        self.resumed = False
        self.queue.reset()
        self.session_id = self._id_factory()
        self.preferences.start_session(self.session_id)

        batch = self.source.fetch_study_words()
        if batch.batch_size:
            self.queue.set_batch_size(batch.batch_size)
        self.queue.load_words(batch.words)
        target = self._configured_target or len(batch.words) or None
        self.queue.set_target_mastery_count(target)
        self.preferences.set_target_mastery_count(target)

        logger.info(f"Started session {self.session_id} with {len(batch.words)} words")
        return self.session_id

    def fetch_more(self) -> int:
        """Ask the source for more words. Returns how many were added."""
        if self._exhausted:
            return 0

        words = self.source.fetch_next_words(
            exclude_ids=self.queue.get_all_word_ids(),
            mastered_ids=self.queue.get_mastered_word_ids(),
            performance=self.queue.build_session_performance(),
        )
        added = self.queue.add_words(words)
        if added == 0:
            logger.debug("Word source exhausted")
            self._exhausted = True
        return added

    def next_question(self) -> Question | None:
        """The next question to ask, or None when the session has nothing left."""
        if self.target_reached():
            return None

        if self.queue.should_prefetch():
            self.fetch_more()

        entry = self.queue.pick_next()
        if entry is None and self.queue.needs_more_words() and self.fetch_more():
            entry = self.queue.pick_next()
        if entry is None:
            return None

        mode = self.preferences.mode
        return Question(entry=entry, options=self.queue.generate_options(entry, mode), mode=mode)

    def answer(self, question: Question, choice: str, response_time_ms: float) -> AnswerOutcome:
        correct = choice == question.correct_answer
        self.total_questions += 1
        if correct:
            self.correct_answers += 1

        result = self.queue.record_answer(question.entry.word_id, correct, response_time_ms)
        return AnswerOutcome(
            correct=correct,
            correct_answer=question.correct_answer,
            mastered=result.mastered,
            finished=self.target_reached(),
        )

    def target_reached(self) -> bool:
        target = self.queue.target_mastery_count
        return target is not None and self.queue.mastered_count >= target

    def summary(self) -> SessionSummary:
        return SessionSummary(
            session_id=self.session_id,
            total_questions=self.total_questions,
            correct_answers=self.correct_answers,
            mastered_count=self.queue.mastered_count,
            target_mastery_count=self.queue.target_mastery_count,
            metrics=self.queue.compute_session_metrics(),
        )

    def finish(self) -> None:
        """End the session and drop its queue."""
        self.preferences.clear_session()
        self.queue.reset()
        self.session_id = None
