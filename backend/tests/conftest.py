"""
Shared test helpers: a controllable clock, an in-memory article store and
stub provider adapters that never touch the network.
"""

from datetime import datetime, timedelta
from typing import Any, Optional

import pytest

from pulse_news.models.domain import (
    ArticleCandidate,
    ArticleSummary,
    Category,
    StoredArticle,
)
from pulse_news.services.ingestion.base import FetchTask, ProviderConfig, RateBudget, RawRecord
from pulse_news.sources.base import ProviderAdapter


class FrozenClock:
    """Clock returning a fixed time until advanced."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class InMemoryStore:
    """Article repository backed by a list."""

    def __init__(self):
        self.articles: list[ArticleCandidate] = []
        self.recent: list[ArticleSummary] = []
        self.fail_queries = False
        self.fail_creates = False
        self.find_recent_calls = 0

    def seed(
        self,
        title: str,
        summary: str = "",
        source_url: str = "",
        created_at: Optional[datetime] = None,
    ):
        self.recent.append(ArticleSummary(
            title=title,
            summary=summary,
            source_url=source_url,
            created_at=created_at or datetime.utcnow(),
        ))

    async def create(self, article: ArticleCandidate) -> int:
        if self.fail_creates:
            raise RuntimeError("disk full")
        self.articles.append(article)
        self.seed(article.title, article.summary, article.source_url)
        return len(self.articles)

    async def find_recent(self, since: datetime) -> list[ArticleSummary]:
        self.find_recent_calls += 1
        if self.fail_queries:
            raise RuntimeError("database is locked")
        return [a for a in self.recent if a.created_at >= since]

    async def count(self) -> int:
        return len(self.articles)

    async def list_recent(self, limit: int = 20) -> list[StoredArticle]:
        now = datetime.utcnow()
        return [
            StoredArticle(
                id=i,
                title=a.title,
                summary=a.summary,
                source_url=a.source_url,
                image_url=a.image_url,
                author=a.author,
                category=a.category,
                provider=a.provider,
                published_at=a.published_at,
                created_at=now,
            )
            for i, a in reversed(list(enumerate(self.articles, start=1)))
        ][:limit]


class StubAdapter(ProviderAdapter):
    """
    Adapter returning canned records.

    ``outcomes`` is consumed one entry per call: a list of records is
    returned, an exception is raised. The last entry repeats.
    """

    def __init__(self, config: ProviderConfig, *outcomes):
        super().__init__(config)
        self.outcomes = list(outcomes) or [[]]
        self.calls: list[FetchTask] = []

    def build_params(self, task: FetchTask, page_size: Optional[int] = None) -> dict[str, Any]:
        return {}

    async def fetch(self, task: FetchTask, page_size: Optional[int] = None) -> list[RawRecord]:
        self.calls.append(task)
        outcome = self.outcomes[min(len(self.calls), len(self.outcomes)) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_config(
    name: str,
    priority: int = 1,
    per_day: Optional[int] = None,
    per_hour: Optional[int] = None,
    per_month: Optional[int] = None,
    categories: tuple[str, ...] = ("general",),
    **kwargs,
) -> ProviderConfig:
    return ProviderConfig(
        name=name,
        display_name=name.title(),
        base_url=f"https://{name}.example.com/v1",
        api_key="test-key",
        budget=RateBudget(per_day=per_day, per_hour=per_hour, per_month=per_month),
        priority=priority,
        categories=categories,
        **kwargs,
    )


def make_candidate(
    title: str,
    summary: str = "",
    source_url: str = "",
    category: Category = Category.GENERAL,
) -> ArticleCandidate:
    return ArticleCandidate(
        title=title,
        content=title,
        summary=summary,
        source_url=source_url,
        image_url="/consumer-pulse-banner.svg",
        category=category,
        published_at=datetime(2024, 6, 10, 12, 0),
        provider="Test",
    )


def raw_article(title: str, url: str = "", description: str = "") -> RawRecord:
    return {
        "title": title,
        "description": description or f"Coverage of {title.lower()}",
        "url": url or f"https://news.example.com/{abs(hash(title))}",
        "publishedAt": "2024-06-10T14:30:00Z",
    }


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 6, 10, 10, 15))


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()
