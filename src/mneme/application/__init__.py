# Application Package
from .queue_manager import WordQueueManager
from .study_session import StudySession

__all__ = ["WordQueueManager", "StudySession"]
