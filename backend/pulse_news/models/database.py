"""
SQLAlchemy database models for Consumer Pulse news ingestion.
Uses SQLAlchemy 2.0 async patterns.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.ext.asyncio import AsyncAttrs, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from pulse_news.models.domain import ArticleStatus


# =============================================================================
# Base
# =============================================================================

class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all database models."""
    pass


# =============================================================================
# Articles
# =============================================================================

class DBNewsArticle(Base):
    """Admitted news article."""
    __tablename__ = "news_articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Core metadata
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[str] = mapped_column(Text, default="")
    source_url: Mapped[str] = mapped_column(Text, default="")
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[str] = mapped_column(String(255), default="Unknown")
    keywords_json: Mapped[Optional[str]] = mapped_column(Text)

    # Classification
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    provider: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=ArticleStatus.PUBLISHED.value)

    # Timestamps (naive UTC)
    published_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    scraped_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Indexes
    __table_args__ = (
        Index("ix_news_articles_created_at", "created_at"),
        Index("ix_news_articles_source_url", "source_url"),
        Index("ix_news_articles_category", "category"),
    )


# =============================================================================
# Database Connection
# =============================================================================

class Database:
    """Database connection manager."""

    def __init__(self, database_url: str):
        engine_kwargs = {}
        if _is_in_memory_sqlite(database_url):
            # All sessions must share the single in-memory connection
            engine_kwargs["poolclass"] = StaticPool

        self.engine = create_async_engine(
            database_url,
            echo=False,  # Set to True for SQL logging
            **engine_kwargs,
        )
        self.async_session = async_sessionmaker(
            self.engine,
            expire_on_commit=False,
        )

    async def create_tables(self):
        """Create all tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self):
        """Drop all tables (use with caution!)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self):
        await self.engine.dispose()


def _is_in_memory_sqlite(database_url: str) -> bool:
    if not database_url.startswith("sqlite"):
        return False
    return database_url.endswith("://") or ":memory:" in database_url
