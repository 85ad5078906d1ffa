"""Persisted learner preferences: quiz direction, the running session id and its target."""

import logging
from typing import cast

from mneme.domain.constants import (
    LEARNING_MODE_KEY,
    LEARNING_QUEUE_KEY,
    LEARNING_SESSION_ID_KEY,
    LEARNING_TARGET_KEY,
)
from mneme.domain.models import LEARNING_MODES, LearningMode
from mneme.domain.ports import KeyValueStore

logger = logging.getLogger(__name__)


class LearningPreferences:
    def __init__(self, store: KeyValueStore, default_mode: LearningMode = "word-to-meaning"):
        self._store = store
        stored = store.get(LEARNING_MODE_KEY, default_mode)
        if stored not in LEARNING_MODES:
            logger.warning(f"Ignoring unknown learning mode {stored!r}")
            stored = default_mode
        self._mode = cast(LearningMode, stored)
        self._session_id: str | None = store.get(LEARNING_SESSION_ID_KEY, "") or None

    @property
    def mode(self) -> LearningMode:
        return self._mode

    def set_mode(self, mode: LearningMode) -> None:
        if mode not in LEARNING_MODES:
            raise ValueError(f"Unknown learning mode: {mode}")
        self._mode = mode
        self._store.set(LEARNING_MODE_KEY, mode)

    def toggle_mode(self) -> LearningMode:
        self.set_mode("meaning-to-word" if self._mode == "word-to-meaning" else "word-to-meaning")
        return self._mode

    @property
    def session_id(self) -> str | None:
        return self._session_id

    def start_session(self, session_id: str) -> None:
        self._session_id = session_id
        self._store.set(LEARNING_SESSION_ID_KEY, session_id)

    @property
    def target_mastery_count(self) -> int | None:
        """Mastery target the running session started with, if one was stored."""
        stored = self._store.get(LEARNING_TARGET_KEY, None)
        if isinstance(stored, bool) or not isinstance(stored, int) or stored < 0:
            return None
        return stored

    def set_target_mastery_count(self, count: int | None) -> None:
        if count is None:
            self._store.remove(LEARNING_TARGET_KEY)
        else:
            self._store.set(LEARNING_TARGET_KEY, count)

    def clear_session(self) -> None:
        """Forget the session id and everything stored with it."""
        self._session_id = None
        self._store.remove(LEARNING_SESSION_ID_KEY)
        self._store.remove(LEARNING_TARGET_KEY)
        self._store.remove(LEARNING_QUEUE_KEY)
