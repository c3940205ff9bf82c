"""
Currents API adapter, used as a backup source and for sports coverage.
API docs: https://currentsapi.services/en/docs/
"""
from typing import Any, Optional

import structlog

from pulse_news.services.ingestion.base import FetchTask, ProviderConfig, RateBudget, RawRecord
from pulse_news.services.ingestion.errors import TransportError
from pulse_news.sources.base import ProviderAdapter

logger = structlog.get_logger(__name__)

FALLBACK_PAGE_SIZE = 10
FALLBACK_TIMEOUT_SECONDS = 10.0


def create_currents_config(api_key: Optional[str]) -> ProviderConfig:
    """Create Currents config: every third hour."""
    return ProviderConfig(
        name="currents",
        display_name="Currents API",
        base_url="https://api.currentsapi.services/v1",
        api_key=api_key,
        default_params={"language": "en", "page_size": 20},
        budget=RateBudget(per_day=600, per_hour=50),
        priority=4,
        categories=("general", "sports"),
        every_n_hours=3,
        timeout_seconds=15.0,
    )


class CurrentsAdapter(ProviderAdapter):
    """
    Adapter for Currents API (raw key in the ``Authorization`` header).

    The search endpoint is slow under load; on a timeout the request is
    repeated exactly once with only the language filter, a smaller page and
    a shorter timeout.
    """

    endpoint = "search"
    success_status = "ok"
    records_key = "news"

    def build_headers(self) -> dict[str, str]:
        return {"Authorization": self.config.api_key or ""}

    def build_params(self, task: FetchTask, page_size: Optional[int] = None) -> dict[str, Any]:
        params = dict(self.config.default_params)
        if task.category and task.category != "general":
            params["category"] = task.category
        if page_size is not None:
            params["page_size"] = page_size
        return params

    async def fetch(self, task: FetchTask, page_size: Optional[int] = None) -> list[RawRecord]:
        try:
            return await super().fetch(task, page_size)
        except TransportError as e:
            if not e.timed_out:
                raise
            logger.warning(
                "Currents request timed out, retrying with smaller page",
                page_size=FALLBACK_PAGE_SIZE,
            )

        # Narrower request: no category filter
        params = {
            "language": self.config.default_params.get("language", "en"),
            "page_size": FALLBACK_PAGE_SIZE,
        }
        data = await self._get(params, timeout=FALLBACK_TIMEOUT_SECONDS)
        records = self.extract_records(data)
        logger.info("Fallback fetch succeeded", provider=self.name, count=len(records))
        return records
