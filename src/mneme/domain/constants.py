"""Centralized constants for the mneme application.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Queue ----------
DEFAULT_BATCH_SIZE = 5
MASTERY_THRESHOLD = 2  # consecutive correct answers to master a word
PREFETCH_THRESHOLD = 2  # active entries left before prefetching

# ---------- Options ----------
OPTION_COUNT = 4
DISTRACTOR_COUNT = OPTION_COUNT - 1
MEANING_PLACEHOLDER = "(无释义)"
TEXT_PLACEHOLDER = "(unknown)"

# ---------- Session Analytics ----------
MAX_ANSWER_HISTORY = 1000
RECENT_WINDOW = 5

# ---------- Storage ----------
STORAGE_PREFIX = "eng_"
LEARNING_QUEUE_KEY = "learning_queue"
LEARNING_MODE_KEY = "learning_mode"
LEARNING_SESSION_ID_KEY = "learning_session_id"
LEARNING_TARGET_KEY = "learning_target"
