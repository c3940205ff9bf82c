"""
NewsData.io adapter for breaking news.
API docs: https://newsdata.io/documentation
"""
from typing import Any, Optional

from pulse_news.services.ingestion.base import FetchTask, ProviderConfig, RateBudget
from pulse_news.sources.base import ProviderAdapter

# Our rotation categories -> NewsData.io category names
CATEGORY_MAP = {
    "general": "top",
    "business": "business",
    "technology": "technology",
    "health": "health",
    "sports": "sports",
}


def create_newsdata_config(api_key: Optional[str]) -> ProviderConfig:
    """Create NewsData.io config: highest priority, every tick."""
    return ProviderConfig(
        name="newsdata",
        display_name="NewsData.io",
        base_url="https://newsdata.io/api/1",
        api_key=api_key,
        default_params={"language": "en", "size": 15},
        budget=RateBudget(per_day=1000, per_hour=200),
        priority=1,
        categories=("general", "business", "technology"),
        timeout_seconds=15.0,
    )


class NewsDataAdapter(ProviderAdapter):
    """Adapter for NewsData.io (API key in the ``apikey`` query parameter)."""

    endpoint = "latest"
    success_status = "success"
    records_key = "results"

    def build_params(self, task: FetchTask, page_size: Optional[int] = None) -> dict[str, Any]:
        params = {"apikey": self.config.api_key, **self.config.default_params}
        params["category"] = CATEGORY_MAP.get(task.category, task.category)
        if page_size is not None:
            params["size"] = page_size
        return params
