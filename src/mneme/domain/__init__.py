# Domain Package
from .models import LearningMode, QueueCounts, QueuedWord, RecordResult, StudyBatch, Word
from .ports import KeyValueStore, WordSource

__all__ = [
    "Word",
    "QueuedWord",
    "QueueCounts",
    "RecordResult",
    "StudyBatch",
    "LearningMode",
    "KeyValueStore",
    "WordSource",
]
