# Domain Stats Package
from .models import AnswerRecord, SessionMetrics, SessionPerformance

__all__ = ["AnswerRecord", "SessionMetrics", "SessionPerformance"]
