"""
Selection engine for the learning queue.

Decides which word to show next and builds the multiple-choice options.
This is a pure computation module with no I/O; randomness comes from the
caller's `random.Random`.
"""

import random
from collections.abc import Iterable, Sequence

from mneme.domain.constants import DISTRACTOR_COUNT, MEANING_PLACEHOLDER, TEXT_PLACEHOLDER
from mneme.domain.models import LearningMode, QueuedWord


def pick_next(active: Sequence[QueuedWord]) -> QueuedWord | None:
    """
    Choose the next word to present.

    1. Words with errors always come first, least recently shown first.
    2. Otherwise follow the server priority, using recency as a tie-break.

    `sorted` is stable, so ties keep their order in `active`.
    """
    if not active:
        return None

    with_errors = [q for q in active if q.error_count > 0]
    if with_errors:
        return sorted(with_errors, key=lambda q: q.last_shown)[0]

    return sorted(active, key=lambda q: (q.priority, q.last_shown))[0]


def placeholder_for(mode: LearningMode) -> str:
    return MEANING_PLACEHOLDER if mode == "word-to-meaning" else TEXT_PLACEHOLDER


def generate_options(
    target: QueuedWord,
    pool: Iterable[QueuedWord],
    mode: LearningMode,
    rng: random.Random,
) -> list[str]:
    """
    Build 1 correct answer + 3 distractors in random order.

    Args:
        target: The word being asked.
        pool: Every queued word (active and mastered); the target is skipped.
        mode: Which field is being asked for.
        rng: Source of randomness. `shuffle` is Fisher-Yates.

    Returns:
        Exactly four options, one of which is the correct answer.
    """
    correct_answer = target.word.answer_for(mode)

    others = [q for q in pool if q.word_id != target.word_id]
    rng.shuffle(others)
    distractors = [q.word.answer_for(mode) for q in others[:DISTRACTOR_COUNT]]

    while len(distractors) < DISTRACTOR_COUNT:
        distractors.append(placeholder_for(mode))

    options = [correct_answer, *distractors]
    rng.shuffle(options)
    return options
