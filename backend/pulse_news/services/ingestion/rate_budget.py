"""
Rate budget accounting for provider API calls.

Each provider has its own daily/hourly/monthly call budget. Counters are
rolled forward lazily on access, so no background timer is needed for resets.
"""

from datetime import date, datetime
from typing import Callable, Iterable, Optional

import structlog

from pulse_news.services.ingestion.base import ProviderConfig, RateBudget, RateCounters
from pulse_news.services.ingestion.errors import RateLimitExceeded, UnknownProviderError

logger = structlog.get_logger(__name__)


class RateBudgetTracker:
    """
    Per-provider call counters with reset-on-rollover.

    This is advisory rate limiting: callers check ``can_fetch`` before
    calling a provider and ``record_fetch`` afterwards. The scheduler owns
    the tracker and serialises runs, so check and record never interleave
    across tasks.
    """

    def __init__(
        self,
        providers: Iterable[ProviderConfig],
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            providers: Provider configurations whose budgets are tracked
            clock: Returns the current wall-clock time (injectable for tests)
        """
        self._clock = clock or datetime.now
        self._budgets: dict[str, RateBudget] = {}
        self._counters: dict[str, RateCounters] = {}

        now = self._clock()
        for config in providers:
            if config.name in self._budgets:
                raise ValueError(f"Duplicate provider configuration: {config.name}")
            self._validate_budget(config)
            self._budgets[config.name] = config.budget
            self._counters[config.name] = RateCounters(
                last_day_reset=now.date(),
                last_hour_reset=_hour_of(now),
                last_month_reset=_month_of(now),
            )

    @staticmethod
    def _validate_budget(config: ProviderConfig):
        budget = config.budget
        for unit, limit in budget.to_dict().items():
            if limit is not None and limit < 0:
                raise ValueError(f"{config.name}: {unit} budget must be non-negative")

    def _get(self, provider: str) -> RateCounters:
        try:
            return self._counters[provider]
        except KeyError:
            raise UnknownProviderError(f"Unknown provider: {provider}") from None

    def _roll_forward(self, provider: str, counters: RateCounters):
        """Zero any counter whose calendar unit has advanced since its last reset."""
        now = self._clock()

        month = _month_of(now)
        if counters.last_month_reset != month:
            counters.monthly_count = 0
            counters.last_month_reset = month
            logger.info("Monthly counter reset", provider=provider)

        today = now.date()
        if counters.last_day_reset != today:
            counters.daily_count = 0
            counters.last_day_reset = today
            logger.info("Daily counter reset", provider=provider)

        hour = _hour_of(now)
        if counters.last_hour_reset != hour:
            counters.hourly_count = 0
            counters.last_hour_reset = hour

    def can_fetch(self, provider: str) -> bool:
        """True iff every defined budget for the provider has headroom."""
        counters = self._get(provider)
        self._roll_forward(provider, counters)
        budget = self._budgets[provider]

        if budget.per_day is not None and counters.daily_count >= budget.per_day:
            return False
        if budget.per_hour is not None and counters.hourly_count >= budget.per_hour:
            return False
        if budget.per_month is not None and counters.monthly_count >= budget.per_month:
            return False
        return True

    def ensure_can_fetch(self, provider: str):
        """Raise ``RateLimitExceeded`` when the provider has no headroom."""
        if not self.can_fetch(provider):
            raise RateLimitExceeded(
                f"Rate budget exhausted for {provider}", provider=provider
            )

    def record_fetch(self, provider: str):
        """Count one call against every budget unit of the provider."""
        counters = self._get(provider)
        self._roll_forward(provider, counters)
        counters.daily_count += 1
        counters.hourly_count += 1
        counters.monthly_count += 1

        budget = self._budgets[provider]
        logger.debug(
            "Provider call recorded",
            provider=provider,
            today=f"{counters.daily_count}/{budget.per_day or '∞'}",
            month=f"{counters.monthly_count}/{budget.per_month or '∞'}",
        )

    def status(self, provider: str) -> RateCounters:
        """Snapshot of the provider's counters after rollover."""
        counters = self._get(provider)
        self._roll_forward(provider, counters)
        return RateCounters(**vars(counters))

    def get_status(self, provider: str) -> dict:
        """Counters, limits and remaining headroom for the admin surface."""
        counters = self.status(provider)
        budget = self._budgets[provider]

        def remaining(limit: Optional[int], used: int) -> Optional[int]:
            return None if limit is None else max(limit - used, 0)

        return {
            "provider": provider,
            **counters.to_dict(),
            "limits": budget.to_dict(),
            "remaining_daily": remaining(budget.per_day, counters.daily_count),
            "remaining_hourly": remaining(budget.per_hour, counters.hourly_count),
            "remaining_monthly": remaining(budget.per_month, counters.monthly_count),
            "can_fetch": self.can_fetch(provider),
        }


def _hour_of(moment: datetime) -> datetime:
    return moment.replace(minute=0, second=0, microsecond=0)


def _month_of(moment: datetime) -> date:
    return date(moment.year, moment.month, 1)
