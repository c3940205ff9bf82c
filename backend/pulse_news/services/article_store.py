"""
Article store - the persistence collaborator of the ingestion pipeline.

The ingestion core only ever creates articles, reads the recent window for
duplicate comparison, and counts articles. Listing and cleanup exist for the
admin surface and CLI.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Protocol

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from pulse_news.models.database import Database, DBNewsArticle
from pulse_news.models.domain import (
    ArticleCandidate,
    ArticleStatus,
    ArticleSummary,
    Category,
    StoredArticle,
)
from pulse_news.services.ingestion.errors import StorageQueryError

logger = structlog.get_logger(__name__)


class ArticleRepository(Protocol):
    """Operations the ingestion core needs from storage."""

    async def create(self, article: ArticleCandidate) -> int: ...

    async def find_recent(self, since: datetime) -> list[ArticleSummary]: ...

    async def count(self) -> int: ...


class ArticleStore:
    """SQLAlchemy-backed implementation of ``ArticleRepository``."""

    def __init__(self, database: Database):
        self.database = database

    async def create(self, article: ArticleCandidate) -> int:
        """Persist an admitted candidate as a published article."""
        async with self.database.async_session() as session:
            db_article = DBNewsArticle(
                title=article.title,
                content=article.content,
                summary=article.summary,
                source_url=article.source_url,
                image_url=article.image_url,
                author=article.author,
                keywords_json=json.dumps(article.keywords),
                category=article.category.value,
                provider=article.provider,
                status=ArticleStatus.PUBLISHED.value,
                published_at=_naive_utc(article.published_at),
                scraped_at=_naive_utc(article.scraped_at),
                created_at=datetime.utcnow(),
            )
            session.add(db_article)
            await session.commit()
            return db_article.id

    async def find_recent(self, since: datetime) -> list[ArticleSummary]:
        """Title, summary and URL of articles created at or after ``since``."""
        try:
            async with self.database.async_session() as session:
                result = await session.execute(
                    select(
                        DBNewsArticle.title,
                        DBNewsArticle.summary,
                        DBNewsArticle.source_url,
                        DBNewsArticle.created_at,
                    ).where(DBNewsArticle.created_at >= _naive_utc(since))
                )
                return [
                    ArticleSummary(
                        title=row.title,
                        summary=row.summary or "",
                        source_url=row.source_url or "",
                        created_at=row.created_at,
                    )
                    for row in result
                ]
        except SQLAlchemyError as e:
            raise StorageQueryError(f"Recent article query failed: {e}") from e

    async def count(self) -> int:
        async with self.database.async_session() as session:
            result = await session.execute(select(func.count(DBNewsArticle.id)))
            return result.scalar() or 0

    async def list_recent(self, limit: int = 20) -> list[StoredArticle]:
        """Most recently admitted articles, newest first."""
        async with self.database.async_session() as session:
            result = await session.execute(
                select(DBNewsArticle)
                .order_by(DBNewsArticle.created_at.desc(), DBNewsArticle.id.desc())
                .limit(limit)
            )
            return [
                StoredArticle(
                    id=row.id,
                    title=row.title,
                    summary=row.summary,
                    source_url=row.source_url,
                    image_url=row.image_url,
                    author=row.author,
                    category=Category(row.category),
                    provider=row.provider,
                    published_at=row.published_at,
                    created_at=row.created_at,
                    status=ArticleStatus(row.status),
                )
                for row in result.scalars()
            ]

    async def cleanup_older_than(self, days: int) -> int:
        """Delete articles created more than ``days`` days ago."""
        cutoff = datetime.utcnow() - timedelta(days=days)
        async with self.database.async_session() as session:
            result = await session.execute(
                delete(DBNewsArticle).where(DBNewsArticle.created_at < cutoff)
            )
            await session.commit()
            deleted = result.rowcount or 0

        if deleted:
            logger.info("Cleaned up old articles", deleted=deleted, older_than_days=days)
        return deleted


def _naive_utc(moment: datetime) -> datetime:
    """Stored timestamps are naive UTC."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)
