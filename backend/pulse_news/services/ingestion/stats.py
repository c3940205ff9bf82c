"""
Daily ingestion statistics, for observability only.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Iterable, Optional

import structlog

from pulse_news.models.domain import ArticleCandidate
from pulse_news.services.ingestion.base import TaskResult

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ErrorRecord:
    """A task failure recorded for the admin status endpoint."""
    provider: str
    message: str
    kind: str
    time: datetime

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "message": self.message,
            "kind": self.kind,
            "time": self.time.isoformat(),
        }


class DailyStats:
    """Counters that reset lazily once per calendar day."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or datetime.now
        self.day: date = self._clock().date()
        self._clear()

    def _clear(self):
        self.total_admitted = 0
        self.by_provider: dict[str, int] = defaultdict(int)
        self.by_category: dict[str, int] = defaultdict(int)
        self.errors: list[ErrorRecord] = []

    def reset_if_needed(self):
        today = self._clock().date()
        if today != self.day:
            self.day = today
            self._clear()
            logger.info("Daily stats reset", day=today.isoformat())

    def record_result(self, result: TaskResult, admitted: Iterable[ArticleCandidate] = ()):
        """Count a finished task; categories come from the admitted articles."""
        self.reset_if_needed()
        if result.admitted:
            self.total_admitted += result.admitted
            self.by_provider[result.provider] += result.admitted
        for article in admitted:
            self.by_category[article.category.value] += 1

    def record_error(self, provider: str, message: str, kind: str = "unknown"):
        self.reset_if_needed()
        self.errors.append(ErrorRecord(
            provider=provider,
            message=message,
            kind=kind,
            time=self._clock(),
        ))

    def to_dict(self) -> dict:
        self.reset_if_needed()
        return {
            "day": self.day.isoformat(),
            "total_admitted": self.total_admitted,
            "by_provider": dict(self.by_provider),
            "by_category": dict(self.by_category),
            "errors": [e.to_dict() for e in self.errors],
        }
