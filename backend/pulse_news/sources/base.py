"""
Base interface for news provider adapters.
All providers (NewsData.io, NewsAPI.org, Finlight, Currents) implement this interface.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
import structlog

from pulse_news.services.ingestion.base import FetchTask, ProviderConfig, RawRecord
from pulse_news.services.ingestion.errors import ProviderAPIError, TransportError

logger = structlog.get_logger(__name__)


class ProviderAdapter(ABC):
    """
    Abstract base class for provider adapters.

    Each adapter owns its provider's transport quirks (auth placement,
    endpoint, response envelope) and maps failures onto ``TransportError``
    or ``ProviderAPIError``. Adapters never retry; that is the scheduler's call.
    """

    #: Endpoint path relative to the provider base URL
    endpoint: str = ""

    #: Value of the envelope ``status`` field signaling success (None = no status field)
    success_status: Optional[str] = "ok"

    #: Envelope key holding the list of articles
    records_key: str = "articles"

    def __init__(
        self,
        config: ProviderConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            config: Provider configuration
            transport: Optional httpx transport (used to mock HTTP in tests)
        """
        self.config = config
        self._transport = transport

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def display_name(self) -> str:
        return self.config.display_name

    @abstractmethod
    def build_params(self, task: FetchTask, page_size: Optional[int] = None) -> dict[str, Any]:
        """Query parameters for a task."""
        pass

    def build_headers(self) -> dict[str, str]:
        """Request headers (auth for header-authenticated providers)."""
        return {}

    async def fetch(self, task: FetchTask, page_size: Optional[int] = None) -> list[RawRecord]:
        """
        Fetch raw records for a task.

        Raises:
            TransportError: the HTTP call failed
            ProviderAPIError: the provider signaled failure or sent a malformed envelope
        """
        data = await self._get(
            self.build_params(task, page_size),
            timeout=self.config.timeout_seconds,
        )
        records = self.extract_records(data)
        logger.info(
            "Fetched articles",
            provider=self.name,
            category=task.category,
            subtype=task.subtype,
            count=len(records),
        )
        return records

    async def _get(self, params: dict[str, Any], timeout: float) -> dict:
        """GET the provider endpoint and validate the response envelope."""
        url = f"{self.config.base_url.rstrip('/')}/{self.endpoint.lstrip('/')}"

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(
                    url,
                    params=params,
                    headers=self.build_headers(),
                    timeout=timeout,
                )
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise TransportError(
                f"{self.display_name} request timed out after {timeout}s",
                provider=self.name,
                timed_out=True,
            ) from e
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"{self.display_name} HTTP {e.response.status_code}: {_error_message(e.response)}",
                provider=self.name,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"{self.display_name} request failed: {e}",
                provider=self.name,
            ) from e

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderAPIError(
                f"{self.display_name} returned invalid JSON", provider=self.name
            ) from e

        self.check_envelope(data)
        return data

    def check_envelope(self, data: Any):
        """Raise ``ProviderAPIError`` unless the envelope signals success."""
        if not isinstance(data, dict):
            raise ProviderAPIError(
                f"Invalid response format from {self.display_name}", provider=self.name
            )
        if self.success_status is not None and data.get("status") != self.success_status:
            raise ProviderAPIError(
                f"{self.display_name} error: {data.get('message') or 'Unknown error'}",
                provider=self.name,
            )

    def extract_records(self, data: dict) -> list[RawRecord]:
        records = data.get(self.records_key) or []
        if not isinstance(records, list):
            raise ProviderAPIError(
                f"Invalid response format from {self.display_name}", provider=self.name
            )
        return [r for r in records if isinstance(r, dict)]

    async def test_connection(self) -> dict:
        """Fetch a tiny page to check credentials and reachability."""
        task = FetchTask(
            provider=self.name,
            category=self.config.categories[0] if self.config.categories else "general",
            subtype=self.config.subtypes[0] if self.config.subtypes else None,
        )
        try:
            records = await self.fetch(task, page_size=3)
            return {
                "success": True,
                "message": f"{self.display_name} reachable",
                "count": len(records),
            }
        except (TransportError, ProviderAPIError) as e:
            return {"success": False, "message": str(e), "count": 0, "kind": e.kind}


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict):
        return body.get("message") or response.reason_phrase
    return response.reason_phrase
