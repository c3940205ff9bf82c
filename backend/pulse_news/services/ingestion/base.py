"""
Base data models for news ingestion.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

# Raw provider record, exactly as decoded from the provider's JSON envelope.
RawRecord = dict[str, Any]


@dataclass(frozen=True)
class RateBudget:
    """Call budget for a provider. ``None`` means unbounded for that unit."""
    per_day: Optional[int] = None
    per_hour: Optional[int] = None
    per_month: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "per_day": self.per_day,
            "per_hour": self.per_hour,
            "per_month": self.per_month,
        }


@dataclass(frozen=True)
class ProviderConfig:
    """Configuration for an external news provider. Immutable after load."""
    name: str
    display_name: str
    base_url: str
    api_key: Optional[str] = None
    default_params: dict[str, Any] = field(default_factory=dict)
    budget: RateBudget = field(default_factory=RateBudget)
    priority: int = 1  # Lower = preferred
    categories: tuple[str, ...] = ("general",)
    timeout_seconds: float = 15.0

    # Time-of-day gating
    every_n_hours: int = 1
    active_hours: Optional[tuple[int, int]] = None  # Inclusive (start, end)

    # Subtype selection: primary subtype every N hours, the last one otherwise
    subtypes: tuple[str, ...] = ()
    primary_subtype_every_n_hours: int = 3

    def is_active_at(self, hour: int) -> bool:
        """Whether the time-of-day gate is open for this hour."""
        if self.active_hours is not None:
            start, end = self.active_hours
            if not start <= hour <= end:
                return False
        return hour % self.every_n_hours == 0

    def subtype_for_hour(self, hour: int) -> Optional[str]:
        if not self.subtypes:
            return None
        if hour % self.primary_subtype_every_n_hours == 0:
            return self.subtypes[0]
        return self.subtypes[-1]


@dataclass
class RateCounters:
    """Per-provider mutable call counters."""
    daily_count: int = 0
    hourly_count: int = 0
    monthly_count: int = 0
    last_day_reset: Optional[date] = None
    last_hour_reset: Optional[datetime] = None
    last_month_reset: Optional[date] = None

    def to_dict(self) -> dict:
        return {
            "daily_count": self.daily_count,
            "hourly_count": self.hourly_count,
            "monthly_count": self.monthly_count,
            "last_day_reset": self.last_day_reset.isoformat() if self.last_day_reset else None,
            "last_hour_reset": self.last_hour_reset.isoformat() if self.last_hour_reset else None,
            "last_month_reset": self.last_month_reset.isoformat() if self.last_month_reset else None,
        }


@dataclass(frozen=True)
class FetchTask:
    """One planned (provider, category) unit of work for a scheduling tick."""
    provider: str
    category: str
    subtype: Optional[str] = None
    priority: int = 1


@dataclass
class TaskResult:
    """Outcome of executing a single fetch task."""
    provider: str
    category: str
    subtype: Optional[str] = None
    fetched: int = 0
    admitted: int = 0
    duplicates: int = 0
    skipped: int = 0
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "category": self.category,
            "subtype": self.subtype,
            "success": self.success,
            "fetched": self.fetched,
            "admitted": self.admitted,
            "duplicates": self.duplicates,
            "skipped": self.skipped,
            "error": self.error,
            "duration_seconds": round(self.duration_seconds, 3),
        }

    def __str__(self) -> str:
        status = "✓" if self.success else "✗"
        return (
            f"{status} {self.provider}/{self.category}: "
            f"fetched={self.fetched}, admitted={self.admitted}, "
            f"duplicates={self.duplicates}, skipped={self.skipped}, "
            f"time={self.duration_seconds:.1f}s"
        )


@dataclass
class RunSummary:
    """Result of a scheduled tick or a manual run."""
    manual: bool
    started_at: datetime
    results: list[TaskResult] = field(default_factory=list)

    @property
    def total_admitted(self) -> int:
        return sum(r.admitted for r in self.results)

    def to_dict(self) -> dict:
        return {
            "manual": self.manual,
            "started_at": self.started_at.isoformat(),
            "total_tasks": len(self.results),
            "successful_tasks": sum(1 for r in self.results if r.success),
            "total_admitted": self.total_admitted,
            "results": [r.to_dict() for r in self.results],
        }
