"""
Metrics calculator for deriving session performance from answer history.

This is a pure computation module with no I/O.
"""

from collections.abc import Sequence

from mneme.domain.constants import RECENT_WINDOW
from mneme.domain.stats.models import AnswerRecord, SessionMetrics


class SessionMetricsCalculator:
    """
    Computes accuracy and response-time metrics from answer records.

    Stateless and side-effect free.
    """

    def __init__(self, recent_window: int = RECENT_WINDOW):
        if recent_window < 1:
            raise ValueError(f"recent_window must be positive, got {recent_window}")
        self.recent_window = recent_window

    def compute(self, records: Sequence[AnswerRecord]) -> SessionMetrics:
        """
        Compute overall and recent metrics.

        Empty history gives all-zero metrics rather than NaN.
        """
        if not records:
            return SessionMetrics()

        recent = records[-self.recent_window :]

        return SessionMetrics(
            overall_accuracy=self._accuracy(records),
            recent_accuracy=self._accuracy(recent),
            average_response_time_ms=self._average_response_time(records),
            recent_average_response_time_ms=self._average_response_time(recent),
            total_answers=len(records),
        )

    def _accuracy(self, records: Sequence[AnswerRecord]) -> float:
        if not records:
            return 0.0
        return sum(1 for r in records if r.correct) / len(records)

    def _average_response_time(self, records: Sequence[AnswerRecord]) -> float:
        if not records:
            return 0.0
        return sum(r.response_time_ms for r in records) / len(records)
