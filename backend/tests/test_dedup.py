"""
Tests for duplicate detection against the recent article window.
"""

from datetime import datetime, timedelta

import pytest

from conftest import make_candidate
from pulse_news.services.ingestion.dedup import (
    DuplicateDetector,
    extract_keywords,
    jaccard_similarity,
    title_similarity,
)


class TestSimilarity:
    """Test the similarity primitives."""

    def test_title_similarity_identical(self):
        assert title_similarity("Markets rally", "markets RALLY") == 1.0

    def test_title_similarity_fed_pair(self):
        score = title_similarity(
            "Fed raises interest rates again",
            "Federal Reserve raises interest rates again",
        )
        assert score == pytest.approx(31 / 43, abs=1e-6)

    def test_extract_keywords(self):
        keywords = extract_keywords("The quick, brown fox jumps over a lazy dog!")
        assert keywords == {"quick", "brown", "fox", "jumps", "lazy", "dog"}

    def test_extract_keywords_empty(self):
        assert extract_keywords("") == set()
        assert extract_keywords(None) == set()

    def test_jaccard(self):
        assert jaccard_similarity({"a", "b"}, {"b", "c"}) == pytest.approx(1 / 3)
        assert jaccard_similarity({"a"}, {"a"}) == 1.0

    def test_jaccard_empty_side_is_zero(self):
        assert jaccard_similarity(set(), set()) == 0.0
        assert jaccard_similarity({"a"}, set()) == 0.0


class TestDuplicateDetector:
    """Test the three-tier duplicate check."""

    @pytest.mark.asyncio
    async def test_exact_title_case_insensitive(self, store):
        store.seed("Stocks Rally On Strong Earnings")
        detector = DuplicateDetector(store)

        assert await detector.is_duplicate(make_candidate("stocks rally on strong earnings"))

    @pytest.mark.asyncio
    async def test_exact_url(self, store):
        store.seed("Completely different headline", source_url="https://example.com/a")
        detector = DuplicateDetector(store)

        candidate = make_candidate("Brand new story", source_url="https://example.com/a")
        assert await detector.is_duplicate(candidate)

    @pytest.mark.asyncio
    async def test_empty_url_never_matches(self, store):
        store.seed("Something else entirely", source_url="")
        detector = DuplicateDetector(store)

        assert not await detector.is_duplicate(make_candidate("Brand new story", source_url=""))

    @pytest.mark.asyncio
    async def test_fuzzy_title(self, store):
        store.seed("Federal Reserve raises interest rates again")
        detector = DuplicateDetector(store)

        assert await detector.is_duplicate(make_candidate("Fed raises interest rates again"))

    @pytest.mark.asyncio
    async def test_fuzzy_title_respects_threshold(self, store):
        store.seed("Federal Reserve raises interest rates again")
        detector = DuplicateDetector(store, title_threshold=0.75)

        assert not await detector.is_duplicate(make_candidate("Fed raises interest rates again"))

    @pytest.mark.asyncio
    async def test_similar_summary(self, store):
        summary = "Apple unveils new iPhone lineup with faster chips and longer battery life"
        store.seed("Apple event recap", summary=summary)
        detector = DuplicateDetector(store)

        candidate = make_candidate("Everything announced at Cupertino today", summary=summary)
        assert await detector.is_duplicate(candidate)

    @pytest.mark.asyncio
    async def test_unrelated_articles(self, store):
        store.seed(
            "Local team wins championship",
            summary="The hometown squad lifted the trophy after overtime",
        )
        detector = DuplicateDetector(store)

        candidate = make_candidate(
            "New smartphone released",
            summary="A manufacturer launched its latest handset on Tuesday",
        )
        assert not await detector.is_duplicate(candidate)

    @pytest.mark.asyncio
    async def test_outside_window_is_not_duplicate(self, store):
        store.seed("Stocks rally", created_at=datetime.utcnow() - timedelta(hours=30))
        detector = DuplicateDetector(store)

        assert not await detector.is_duplicate(make_candidate("Stocks rally"))

    @pytest.mark.asyncio
    async def test_separate_exact_and_fuzzy_windows(self, store):
        store.seed(
            "Federal Reserve raises interest rates again",
            created_at=datetime.utcnow() - timedelta(hours=48),
        )
        detector = DuplicateDetector(
            store,
            exact_window=timedelta(hours=72),
            fuzzy_window=timedelta(hours=24),
        )

        assert await detector.is_duplicate(make_candidate("federal reserve raises interest rates again"))
        assert not await detector.is_duplicate(make_candidate("Fed raises interest rates again"))
        assert store.find_recent_calls == 2

    @pytest.mark.asyncio
    async def test_fails_open_on_storage_error(self, store):
        store.seed("Stocks rally")
        store.fail_queries = True
        detector = DuplicateDetector(store)

        assert not await detector.is_duplicate(make_candidate("Stocks rally"))

    @pytest.mark.asyncio
    async def test_blank_title_is_not_duplicate(self, store):
        store.seed("   ")
        detector = DuplicateDetector(store)

        assert not await detector.is_duplicate(make_candidate("   "))
        assert store.find_recent_calls == 0
