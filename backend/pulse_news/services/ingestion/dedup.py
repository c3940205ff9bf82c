"""
Duplicate detection against recently ingested articles.

Checks run cheapest and most certain first:
1. Exact title match (case-insensitive)
2. Exact source URL match
3. Fuzzy similarity: Levenshtein title ratio or Jaccard over summary keywords

A failing storage query never blocks ingestion: the detector fails open.
"""

import re
from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog
from rapidfuzz.distance import Levenshtein

from pulse_news.models.domain import ArticleCandidate, ArticleSummary
from pulse_news.services.article_store import ArticleRepository

logger = structlog.get_logger(__name__)

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    "is", "are", "was", "were", "be", "been", "being", "have", "has", "had", "do", "does", "did",
    "will", "would", "could", "should", "may", "might", "can", "this", "that", "these", "those",
    "i", "you", "he", "she", "it", "we", "they", "me", "him", "her", "us", "them", "my", "your",
    "his", "its", "our", "their", "from", "up", "about", "into", "over", "after",
})

_PUNCTUATION = re.compile(r"[^\w\s]")


def title_similarity(a: str, b: str) -> float:
    """
    Normalized Levenshtein similarity of two titles.

    ``(maxLen - editDistance) / maxLen`` on the lower-cased strings; two
    empty strings are identical (1.0).
    """
    return Levenshtein.normalized_similarity(a.lower(), b.lower())


def extract_keywords(text: Optional[str]) -> set[str]:
    """Lower-cased tokens longer than two characters, minus stop words."""
    if not text:
        return set()
    words = _PUNCTUATION.sub(" ", text.lower()).split()
    return {w for w in words if len(w) > 2 and w not in STOP_WORDS}


def jaccard_similarity(a: set[str], b: set[str]) -> float:
    """|a ∩ b| / |a ∪ b|; an empty side shares nothing."""
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


class DuplicateDetector:
    """Three-tier duplicate check over the store's recent window."""

    def __init__(
        self,
        store: ArticleRepository,
        title_threshold: float = 0.70,
        summary_threshold: float = 0.80,
        exact_window: timedelta = timedelta(hours=24),
        fuzzy_window: timedelta = timedelta(hours=24),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            store: Storage collaborator providing the recent window
            title_threshold: Title similarity above which a candidate is a duplicate
            summary_threshold: Summary keyword similarity above which a candidate is a duplicate
            exact_window: Trailing window for exact title/URL checks
            fuzzy_window: Trailing window for fuzzy checks
            clock: Returns the current naive UTC time (injectable for tests)
        """
        self.store = store
        self.title_threshold = title_threshold
        self.summary_threshold = summary_threshold
        self.exact_window = exact_window
        self.fuzzy_window = fuzzy_window
        self._clock = clock or datetime.utcnow

    @classmethod
    def from_settings(cls, store: ArticleRepository, settings) -> "DuplicateDetector":
        """Build a detector from ``DuplicateDetectionSettings``."""
        return cls(
            store,
            title_threshold=settings.title_similarity_threshold,
            summary_threshold=settings.summary_similarity_threshold,
            exact_window=timedelta(hours=settings.exact_window_hours),
            fuzzy_window=timedelta(hours=settings.fuzzy_window_hours),
        )

    async def is_duplicate(self, candidate: ArticleCandidate) -> bool:
        title = candidate.title.strip()
        if not title:
            return False

        now = self._clock()
        try:
            recent = await self.store.find_recent(now - max(self.exact_window, self.fuzzy_window))
        except Exception as e:
            logger.error(
                "Duplicate check failed, admitting candidate",
                title=title[:80],
                error=str(e),
            )
            return False

        exact_since = now - self.exact_window
        fuzzy_since = now - self.fuzzy_window
        exact_pool = [a for a in recent if a.created_at >= exact_since]
        fuzzy_pool = [a for a in recent if a.created_at >= fuzzy_since]

        return (
            self._matches_title(title, exact_pool)
            or self._matches_url(candidate.source_url, exact_pool)
            or self._matches_fuzzy(candidate, fuzzy_pool)
        )

    def _matches_title(self, title: str, pool: list[ArticleSummary]) -> bool:
        lowered = title.lower()
        for existing in pool:
            if existing.title.strip().lower() == lowered:
                logger.info("Found exact title duplicate", title=title[:80])
                return True
        return False

    def _matches_url(self, url: str, pool: list[ArticleSummary]) -> bool:
        if not url:
            return False
        for existing in pool:
            if existing.source_url == url:
                logger.info("Found exact URL duplicate", url=url)
                return True
        return False

    def _matches_fuzzy(self, candidate: ArticleCandidate, pool: list[ArticleSummary]) -> bool:
        summary_words = extract_keywords(candidate.summary)

        for existing in pool:
            title_score = title_similarity(candidate.title, existing.title)
            summary_score = jaccard_similarity(summary_words, extract_keywords(existing.summary))

            if title_score > self.title_threshold or summary_score > self.summary_threshold:
                logger.info(
                    "Found similar article",
                    title=candidate.title[:80],
                    existing=existing.title[:80],
                    title_similarity=round(title_score, 2),
                    summary_similarity=round(summary_score, 2),
                )
                return True
        return False
