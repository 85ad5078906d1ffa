# Application Stats Package
from .answer_history import AnswerHistory
from .metrics_calculator import SessionMetricsCalculator

__all__ = ["AnswerHistory", "SessionMetricsCalculator"]
