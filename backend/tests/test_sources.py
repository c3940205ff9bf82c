"""
Tests for provider adapters.

HTTP is mocked with httpx.MockTransport so no network access is needed.
"""

import httpx
import pytest

from pulse_news.config import Settings
from pulse_news.services.ingestion.base import FetchTask
from pulse_news.services.ingestion.errors import ProviderAPIError, TransportError, UnknownProviderError
from pulse_news.sources import build_adapters, build_provider_configs
from pulse_news.sources.currents import CurrentsAdapter, create_currents_config
from pulse_news.sources.finlight import FinlightAdapter, create_finlight_config
from pulse_news.sources.newsapi import NewsAPIAdapter, create_newsapi_config
from pulse_news.sources.newsdata import NewsDataAdapter, create_newsdata_config

SAMPLE_NEWSDATA_RESPONSE = {
    "status": "success",
    "totalResults": 2,
    "results": [
        {"title": "Markets open higher", "link": "https://example.com/1"},
        {"title": "Chipmaker beats estimates", "link": "https://example.com/2"},
    ],
}

SAMPLE_NEWSAPI_RESPONSE = {
    "status": "ok",
    "totalResults": 1,
    "articles": [{"title": "Top story", "url": "https://example.com/top"}],
}

SAMPLE_FINLIGHT_RESPONSE = {
    "articles": [{"title": "Bitcoin steadies", "link": "https://example.com/btc"}],
}

SAMPLE_CURRENTS_RESPONSE = {
    "status": "ok",
    "news": [{"title": "Late goal seals win", "url": "https://example.com/goal"}],
}


def recording_transport(handler):
    """MockTransport that keeps every request it served."""
    requests = []

    def wrapped(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    return httpx.MockTransport(wrapped), requests


class TestNewsDataAdapter:
    """Test the NewsData.io envelope and parameters."""

    @pytest.mark.asyncio
    async def test_fetch(self):
        transport, requests = recording_transport(
            lambda request: httpx.Response(200, json=SAMPLE_NEWSDATA_RESPONSE)
        )
        adapter = NewsDataAdapter(create_newsdata_config("nd-key"), transport=transport)

        records = await adapter.fetch(FetchTask(provider="newsdata", category="general"))

        assert [r["title"] for r in records] == ["Markets open higher", "Chipmaker beats estimates"]
        (request,) = requests
        assert request.url.path == "/api/1/latest"
        assert request.url.params["apikey"] == "nd-key"
        assert request.url.params["category"] == "top"
        assert request.url.params["language"] == "en"

    @pytest.mark.asyncio
    async def test_error_status(self):
        transport, _ = recording_transport(
            lambda request: httpx.Response(200, json={"status": "error", "message": "Invalid key"})
        )
        adapter = NewsDataAdapter(create_newsdata_config("bad"), transport=transport)

        with pytest.raises(ProviderAPIError) as exc_info:
            await adapter.fetch(FetchTask(provider="newsdata", category="general"))
        assert "Invalid key" in str(exc_info.value)
        assert exc_info.value.provider == "newsdata"

    @pytest.mark.asyncio
    async def test_http_error(self):
        transport, _ = recording_transport(
            lambda request: httpx.Response(429, json={"message": "Too many requests"})
        )
        adapter = NewsDataAdapter(create_newsdata_config("nd-key"), transport=transport)

        with pytest.raises(TransportError) as exc_info:
            await adapter.fetch(FetchTask(provider="newsdata", category="general"))
        assert exc_info.value.status_code == 429
        assert not exc_info.value.timed_out

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        transport, _ = recording_transport(lambda request: httpx.Response(200, text="<html>"))
        adapter = NewsDataAdapter(create_newsdata_config("nd-key"), transport=transport)

        with pytest.raises(ProviderAPIError):
            await adapter.fetch(FetchTask(provider="newsdata", category="general"))


class TestNewsAPIAdapter:
    """Test the NewsAPI.org envelope and parameters."""

    @pytest.mark.asyncio
    async def test_fetch(self):
        transport, requests = recording_transport(
            lambda request: httpx.Response(200, json=SAMPLE_NEWSAPI_RESPONSE)
        )
        adapter = NewsAPIAdapter(create_newsapi_config("na-key"), transport=transport)

        records = await adapter.fetch(FetchTask(provider="newsapi", category="business"))

        assert len(records) == 1
        (request,) = requests
        assert request.url.path == "/v2/top-headlines"
        assert request.url.params["apiKey"] == "na-key"
        assert request.url.params["category"] == "business"

    @pytest.mark.asyncio
    async def test_missing_articles_is_empty(self):
        transport, _ = recording_transport(lambda request: httpx.Response(200, json={"status": "ok"}))
        adapter = NewsAPIAdapter(create_newsapi_config("na-key"), transport=transport)

        assert await adapter.fetch(FetchTask(provider="newsapi", category="general")) == []


class TestFinlightAdapter:
    """Test Finlight auth, subtypes and envelope checks."""

    @pytest.mark.asyncio
    async def test_fetch_with_bearer_and_subtype(self):
        transport, requests = recording_transport(
            lambda request: httpx.Response(200, json=SAMPLE_FINLIGHT_RESPONSE)
        )
        adapter = FinlightAdapter(create_finlight_config("fl-key"), transport=transport)

        records = await adapter.fetch(FetchTask(provider="finlight", category="financial", subtype="crypto"))

        assert records[0]["title"] == "Bitcoin steadies"
        (request,) = requests
        assert request.headers["Authorization"] == "Bearer fl-key"
        assert request.url.params["category"] == "crypto"
        assert request.url.params["limit"] == "30"
        assert "fl-key" not in str(request.url)

    @pytest.mark.asyncio
    async def test_missing_articles_list(self):
        transport, _ = recording_transport(lambda request: httpx.Response(200, json={"data": []}))
        adapter = FinlightAdapter(create_finlight_config("fl-key"), transport=transport)

        with pytest.raises(ProviderAPIError):
            await adapter.fetch(FetchTask(provider="finlight", category="financial", subtype="markets"))


class TestCurrentsAdapter:
    """Test the Currents one-shot timeout fallback."""

    @pytest.mark.asyncio
    async def test_timeout_fallback(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params["page_size"] == "20":
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(200, json=SAMPLE_CURRENTS_RESPONSE)

        transport, requests = recording_transport(handler)
        adapter = CurrentsAdapter(create_currents_config("cu-key"), transport=transport)

        records = await adapter.fetch(FetchTask(provider="currents", category="sports"))

        assert [r["title"] for r in records] == ["Late goal seals win"]
        assert [r.url.params["page_size"] for r in requests] == ["20", "10"]
        assert requests[0].headers["Authorization"] == "cu-key"
        assert requests[0].url.params["category"] == "sports"
        assert "category" not in requests[1].url.params
        assert requests[1].url.params["language"] == "en"

    @pytest.mark.asyncio
    async def test_fallback_happens_once(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        transport, requests = recording_transport(handler)
        adapter = CurrentsAdapter(create_currents_config("cu-key"), transport=transport)

        with pytest.raises(TransportError) as exc_info:
            await adapter.fetch(FetchTask(provider="currents", category="general"))
        assert exc_info.value.timed_out
        assert len(requests) == 2

    @pytest.mark.asyncio
    async def test_no_fallback_on_http_error(self):
        transport, requests = recording_transport(lambda request: httpx.Response(503))
        adapter = CurrentsAdapter(create_currents_config("cu-key"), transport=transport)

        with pytest.raises(TransportError) as exc_info:
            await adapter.fetch(FetchTask(provider="currents", category="general"))
        assert exc_info.value.status_code == 503
        assert len(requests) == 1


class TestConnectionProbe:
    """Test test_connection results."""

    @pytest.mark.asyncio
    async def test_success(self):
        transport, requests = recording_transport(
            lambda request: httpx.Response(200, json=SAMPLE_NEWSDATA_RESPONSE)
        )
        adapter = NewsDataAdapter(create_newsdata_config("nd-key"), transport=transport)

        result = await adapter.test_connection()

        assert result["success"] is True
        assert result["count"] == 2
        assert requests[0].url.params["size"] == "3"

    @pytest.mark.asyncio
    async def test_failure(self):
        transport, _ = recording_transport(lambda request: httpx.Response(401, json={"message": "bad key"}))
        adapter = NewsAPIAdapter(create_newsapi_config("bad"), transport=transport)

        result = await adapter.test_connection()

        assert result["success"] is False
        assert "401" in result["message"]


class TestRegistry:
    """Test building adapters from settings."""

    def test_providers_without_keys_are_skipped(self):
        settings = Settings(newsdata_api_key="nd", currents_api_key="cu", _env_file=None)

        configs = build_provider_configs(settings)

        assert [c.name for c in configs] == ["newsdata", "currents"]

    def test_build_adapters(self):
        settings = Settings(newsdata_api_key="nd", finlight_api_key="fl", _env_file=None)

        adapters = build_adapters(build_provider_configs(settings))

        assert isinstance(adapters["newsdata"], NewsDataAdapter)
        assert isinstance(adapters["finlight"], FinlightAdapter)

    def test_unknown_adapter(self):
        config = create_newsdata_config("k")
        unknown = type(config)(name="mystery", display_name="Mystery", base_url="https://x")

        with pytest.raises(UnknownProviderError):
            build_adapters([unknown])
