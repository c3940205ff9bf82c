"""
NewsAPI.org adapter for top headlines.
API docs: https://newsapi.org/docs
"""
from typing import Any, Optional

from pulse_news.services.ingestion.base import FetchTask, ProviderConfig, RateBudget
from pulse_news.sources.base import ProviderAdapter

# Categories accepted by the top-headlines endpoint
SUPPORTED_CATEGORIES = {
    "business", "entertainment", "general", "health", "science", "sports", "technology",
}


def create_newsapi_config(api_key: Optional[str]) -> ProviderConfig:
    """Create NewsAPI.org config: general news on even hours."""
    return ProviderConfig(
        name="newsapi",
        display_name="NewsAPI.org",
        base_url="https://newsapi.org/v2",
        api_key=api_key,
        default_params={"language": "en", "pageSize": 30},
        budget=RateBudget(per_day=1000),
        priority=2,
        categories=("general", "business", "technology", "health"),
        every_n_hours=2,
        timeout_seconds=15.0,
    )


class NewsAPIAdapter(ProviderAdapter):
    """Adapter for NewsAPI.org (API key in the ``apiKey`` query parameter)."""

    endpoint = "top-headlines"
    success_status = "ok"
    records_key = "articles"

    def build_params(self, task: FetchTask, page_size: Optional[int] = None) -> dict[str, Any]:
        params = {"apiKey": self.config.api_key, **self.config.default_params}
        if task.category in SUPPORTED_CATEGORIES:
            params["category"] = task.category
        if page_size is not None:
            params["pageSize"] = page_size
        return params
