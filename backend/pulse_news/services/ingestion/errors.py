"""
Error taxonomy for news ingestion.

Every error raised while executing a single fetch task is an
``IngestionError``; the scheduler catches and classifies them so that one
provider's failure never aborts a tick.
"""

from typing import Optional


class IngestionError(Exception):
    """Base class for ingestion failures."""

    kind = "ingestion"

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class TransportError(IngestionError):
    """Network or HTTP failure talking to a provider."""

    kind = "transport"

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        timed_out: bool = False,
    ):
        super().__init__(message, provider)
        self.status_code = status_code
        self.timed_out = timed_out


class ProviderAPIError(IngestionError):
    """Provider responded but signaled failure or sent a malformed envelope."""

    kind = "provider_api"


class TransformError(IngestionError):
    """Raw record cannot be turned into a candidate."""

    kind = "transform"


class RateLimitExceeded(IngestionError):
    """Provider has no remaining headroom in one of its budgets."""

    kind = "rate_limit"


class StorageQueryError(IngestionError):
    """The article store failed to answer a query."""

    kind = "storage"


class UnknownProviderError(IngestionError, KeyError):
    """A provider name that was never configured."""

    kind = "configuration"

    def __str__(self) -> str:
        return self.args[0] if self.args else ""
