"""
Tests for the SQLAlchemy article store, using in-memory SQLite.
"""

from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy import update

from conftest import make_candidate
from pulse_news.models.database import Database, DBNewsArticle
from pulse_news.models.domain import ArticleStatus, Category
from pulse_news.services.article_store import ArticleStore
from pulse_news.services.ingestion.dedup import DuplicateDetector
from pulse_news.services.ingestion.errors import StorageQueryError


@pytest_asyncio.fixture
async def database():
    db = Database("sqlite+aiosqlite:///:memory:")
    await db.create_tables()
    yield db
    await db.dispose()


@pytest.fixture
def article_store(database):
    return ArticleStore(database)


class TestArticleStore:
    """Test persistence and the recent-window query."""

    @pytest.mark.asyncio
    async def test_create_and_count(self, article_store):
        first = await article_store.create(make_candidate("Stocks rally", category=Category.FINANCIAL))
        second = await article_store.create(make_candidate("Storm hits coast"))

        assert second > first
        assert await article_store.count() == 2

    @pytest.mark.asyncio
    async def test_find_recent(self, article_store):
        await article_store.create(
            make_candidate("Stocks rally", summary="Shares climb", source_url="https://example.com/a")
        )

        recent = await article_store.find_recent(datetime.utcnow() - timedelta(hours=1))
        assert len(recent) == 1
        assert recent[0].title == "Stocks rally"
        assert recent[0].summary == "Shares climb"
        assert recent[0].source_url == "https://example.com/a"

        assert await article_store.find_recent(datetime.utcnow() + timedelta(hours=1)) == []

    @pytest.mark.asyncio
    async def test_list_recent(self, article_store):
        await article_store.create(make_candidate("Older story", category=Category.SPORTS))
        await article_store.create(make_candidate("Newer story", category=Category.HEALTH))

        articles = await article_store.list_recent(limit=1)

        assert len(articles) == 1
        assert articles[0].title == "Newer story"
        assert articles[0].category == Category.HEALTH
        assert articles[0].status == ArticleStatus.PUBLISHED

    @pytest.mark.asyncio
    async def test_cleanup_older_than(self, database, article_store):
        await article_store.create(make_candidate("Old story"))
        await article_store.create(make_candidate("Fresh story"))
        async with database.async_session() as session:
            await session.execute(
                update(DBNewsArticle)
                .where(DBNewsArticle.title == "Old story")
                .values(created_at=datetime.utcnow() - timedelta(days=10))
            )
            await session.commit()

        deleted = await article_store.cleanup_older_than(7)

        assert deleted == 1
        assert [a.title for a in await article_store.list_recent()] == ["Fresh story"]

    @pytest.mark.asyncio
    async def test_query_failure_raises_storage_error(self, database, article_store):
        await database.drop_tables()

        with pytest.raises(StorageQueryError):
            await article_store.find_recent(datetime.utcnow())

    @pytest.mark.asyncio
    async def test_detector_over_real_store(self, article_store):
        await article_store.create(make_candidate("Federal Reserve raises interest rates again"))
        detector = DuplicateDetector(article_store)

        assert await detector.is_duplicate(make_candidate("Fed raises interest rates again"))
        assert not await detector.is_duplicate(make_candidate("Museum reopens after long renovation"))
