"""
Fetch planning for a scheduling tick.
"""

from datetime import datetime
from typing import Iterable

import structlog

from pulse_news.services.ingestion.base import FetchTask, ProviderConfig
from pulse_news.services.ingestion.rate_budget import RateBudgetTracker

logger = structlog.get_logger(__name__)


class FetchPlanner:
    """
    Builds the ordered task list for each tick.

    A provider is planned when its time-of-day gate is open and the rate
    tracker reports headroom. Its category comes from a single rotation
    index shared by all providers and advanced on every pick, so successive
    ticks spread coverage across categories (a given provider may skip some
    of its categories from one tick to the next).
    """

    def __init__(self, providers: Iterable[ProviderConfig], tracker: RateBudgetTracker):
        self.providers = list(providers)
        self.tracker = tracker
        self._rotation_index = 0

    @property
    def rotation_index(self) -> int:
        return self._rotation_index

    def _next_category(self, categories: tuple[str, ...]) -> str:
        category = categories[self._rotation_index % len(categories)]
        self._rotation_index += 1
        return category

    def build_plan(self, now: datetime) -> list[FetchTask]:
        """
        Tasks for this tick sorted by ascending provider priority.

        An empty plan is valid: no provider currently has headroom or an
        open time window.
        """
        hour = now.hour
        plan = []

        for config in self.providers:
            if not config.is_active_at(hour):
                continue
            if not self.tracker.can_fetch(config.name):
                logger.info("Provider over budget, skipping", provider=config.name)
                continue

            category = self._next_category(config.categories) if config.categories else "general"
            plan.append(FetchTask(
                provider=config.name,
                category=category,
                subtype=config.subtype_for_hour(hour),
                priority=config.priority,
            ))

        plan.sort(key=lambda t: t.priority)
        logger.debug("Fetch plan built", hour=hour, tasks=[t.provider for t in plan])
        return plan
