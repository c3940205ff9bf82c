"""
Finlight adapter for financial and crypto news.
API docs: https://docs.finlight.me
"""
from typing import Any, Optional

from pulse_news.services.ingestion.base import FetchTask, ProviderConfig, RateBudget
from pulse_news.services.ingestion.errors import ProviderAPIError
from pulse_news.sources.base import ProviderAdapter

# Subtype -> extra query parameters
SUBTYPE_PARAMS = {
    "crypto": {"category": "crypto", "tags": "bitcoin,ethereum,cryptocurrency,blockchain"},
    "markets": {"category": "markets", "tags": "stocks,trading,market,finance"},
}


def create_finlight_config(api_key: Optional[str]) -> ProviderConfig:
    """Create Finlight config: business hours only, 5000 calls a month."""
    return ProviderConfig(
        name="finlight",
        display_name="Finlight API",
        base_url="https://api.finlight.me/v1",
        api_key=api_key,
        default_params={"limit": 30},
        budget=RateBudget(per_day=166, per_month=5000),
        priority=3,
        categories=("financial",),
        active_hours=(9, 17),
        subtypes=("crypto", "markets"),
        primary_subtype_every_n_hours=3,
        timeout_seconds=15.0,
    )


class FinlightAdapter(ProviderAdapter):
    """
    Adapter for Finlight (bearer token auth).

    The response has no status field; a missing or non-list ``articles``
    key is the only failure signal.
    """

    endpoint = "articles"
    success_status = None
    records_key = "articles"

    def build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

    def build_params(self, task: FetchTask, page_size: Optional[int] = None) -> dict[str, Any]:
        params = dict(self.config.default_params)
        params.update(SUBTYPE_PARAMS.get(task.subtype or "", {}))
        if page_size is not None:
            params["limit"] = page_size
        return params

    def check_envelope(self, data: Any):
        super().check_envelope(data)
        if not isinstance(data.get("articles"), list):
            raise ProviderAPIError(
                f"Invalid response format from {self.display_name}", provider=self.name
            )
