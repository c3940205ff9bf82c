"""
Domain models for Consumer Pulse news ingestion.
These are the core business entities, independent of database/API representation.
"""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================

class Category(str, Enum):
    """Fixed category taxonomy for admitted articles."""
    CRYPTO = "CRYPTO"
    FINANCIAL = "FINANCIAL"
    TECHNOLOGY = "TECHNOLOGY"
    HEALTH = "HEALTH"
    SPORTS = "SPORTS"
    POLITICS = "POLITICS"
    ENTERTAINMENT = "ENTERTAINMENT"
    GENERAL = "GENERAL"


class ArticleStatus(str, Enum):
    """Lifecycle status of a stored article."""
    PUBLISHED = "PUBLISHED"


# =============================================================================
# Articles
# =============================================================================

class ArticleCandidate(BaseModel):
    """
    Canonical normalized article flowing through the ingestion pipeline.

    Produced by the transformer from a provider-specific raw record. A
    candidate is either admitted (handed to storage) or discarded; it is
    never mutated after creation.
    """
    model_config = ConfigDict(frozen=True)

    title: str
    content: str
    summary: str = ""
    source_url: str = ""
    image_url: str
    author: str = "Unknown"
    category: Category = Category.GENERAL
    published_at: datetime
    provider: str
    keywords: list[str] = Field(default_factory=list)
    scraped_at: datetime = Field(default_factory=datetime.utcnow)


class ArticleSummary(BaseModel):
    """Projection of a stored article used for duplicate comparison."""
    title: str
    summary: str = ""
    source_url: str = ""
    created_at: datetime


class StoredArticle(BaseModel):
    """A persisted article as exposed by the admin surface."""
    id: int
    title: str
    summary: str
    source_url: str
    image_url: str
    author: str
    category: Category
    provider: str
    published_at: datetime
    created_at: datetime
    status: ArticleStatus = ArticleStatus.PUBLISHED
