"""
Queue Factory
Centralizes construction of the storage backend and the learning queue.
"""

import logging

from mneme.application.config import AppConfig
from mneme.application.persistence import QueueSnapshotRepository
from mneme.application.preferences import LearningPreferences
from mneme.application.queue_manager import WordQueueManager
from mneme.application.stats import AnswerHistory, SessionMetricsCalculator
from mneme.domain.ports import KeyValueStore
from mneme.infrastructure.storage import JsonFileStore, MemoryStore

logger = logging.getLogger(__name__)


def get_store(config: AppConfig) -> KeyValueStore:
    """
    Returns the KeyValueStore implementation selected by config.
    """
    if config.storage == "memory":
        return MemoryStore()

    path = config.storage_file or config.data_dir / "storage.json"
    logger.debug(f"Using storage file {path}")
    return JsonFileStore(path)


def create_queue_manager(config: AppConfig, store: KeyValueStore) -> WordQueueManager:
    """
    Build a WordQueueManager from config, restoring any persisted queue.
    """
    return WordQueueManager(
        snapshots=QueueSnapshotRepository(store),
        batch_size=config.batch_size,
        mastery_threshold=config.mastery_threshold,
        history=AnswerHistory(config.max_answer_history),
        calculator=SessionMetricsCalculator(config.recent_window),
    )


def create_preferences(config: AppConfig, store: KeyValueStore) -> LearningPreferences:
    return LearningPreferences(store, default_mode=config.mode)
