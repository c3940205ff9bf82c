"""
Normalization of raw provider records into article candidates.
"""

from dataclasses import dataclass
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Optional

import structlog

from pulse_news.models.domain import ArticleCandidate
from pulse_news.services.ingestion.base import RawRecord
from pulse_news.services.ingestion.categorizer import Categorizer
from pulse_news.services.ingestion.errors import TransformError

logger = structlog.get_logger(__name__)

MAX_TITLE_LENGTH = 200
MAX_SUMMARY_LENGTH = 300
DEFAULT_IMAGE_URL = "/consumer-pulse-banner.svg"

# Values providers use to mean "no value"
_EMPTY_SENTINELS = {"", "none", "null", "undefined", "[removed]"}


@dataclass(frozen=True)
class FieldMap:
    """Where each canonical field lives in a provider's raw record."""
    title: tuple[str, ...] = ("title",)
    description: tuple[str, ...] = ("description",)
    url: tuple[str, ...] = ("url",)
    image: tuple[str, ...] = ("image",)
    author: tuple[str, ...] = ("author",)
    published: tuple[str, ...] = ("publishedAt",)
    categories: tuple[str, ...] = ("category",)
    keywords: tuple[str, ...] = ("keywords",)


FIELD_MAPS: dict[str, FieldMap] = {
    "newsdata": FieldMap(
        url=("link",),
        image=("image_url",),
        author=("creator",),
        published=("pubDate",),
    ),
    "newsapi": FieldMap(
        image=("urlToImage",),
        categories=(),
        keywords=(),
    ),
    "finlight": FieldMap(
        description=("summary", "description"),
        url=("url", "link"),
        image=("image", "imageUrl", "images"),
        author=("author", "source"),
        published=("publishedAt", "publishDate", "date"),
        categories=("categories",),
        keywords=(),
    ),
    "currents": FieldMap(
        published=("published",),
        keywords=(),
    ),
}

PROVIDER_DISPLAY_NAMES = {
    "newsdata": "NewsData.io",
    "newsapi": "NewsAPI.org",
    "finlight": "Finlight API",
    "currents": "Currents API",
}


class ArticleTransformer:
    """Turns provider-specific raw records into ``ArticleCandidate`` values."""

    def __init__(
        self,
        categorizer: Optional[Categorizer] = None,
        fallback_image_url: str = DEFAULT_IMAGE_URL,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.categorizer = categorizer or Categorizer()
        self.fallback_image_url = fallback_image_url
        self._clock = clock or datetime.utcnow

    def transform(self, raw: RawRecord, provider: str) -> ArticleCandidate:
        """
        Normalize a raw record.

        Only what the provider sent about the article itself (title,
        description, its own category tags) feeds categorization; the
        category a fetch task asked for does not.

        Args:
            raw: Record as returned by the provider adapter
            provider: Provider name (selects the field mapping)

        Raises:
            TransformError: if the record has no usable title
        """
        fields = FIELD_MAPS.get(provider, FieldMap())

        title = _text(_first(raw, fields.title))
        if not title:
            raise TransformError("Record has no usable title", provider=provider)
        title = title[:MAX_TITLE_LENGTH]

        description = _text(_first(raw, fields.description))
        url = _text(_first(raw, fields.url))

        content = title
        if description and description != title:
            content = f"{title}\n\n{description}"
        if url:
            content += f"\n\nSource: {url}"

        native_categories = _as_list(_first(raw, fields.categories))
        category = self.categorizer.categorize_parts(title, description, " ".join(native_categories))

        keywords = _as_list(_first(raw, fields.keywords)) or native_categories

        return ArticleCandidate(
            title=title,
            content=content,
            summary=(description or title)[:MAX_SUMMARY_LENGTH],
            source_url=url,
            image_url=self._image(raw, fields) or self.fallback_image_url,
            author=(_as_list(_first(raw, fields.author)) or ["Unknown"])[0],
            category=category,
            published_at=self._published_at(_first(raw, fields.published)),
            provider=PROVIDER_DISPLAY_NAMES.get(provider, provider),
            keywords=keywords,
            scraped_at=self._clock(),
        )

    def try_transform(self, raw: RawRecord, provider: str) -> Optional[ArticleCandidate]:
        """Like ``transform`` but returns None for unusable records."""
        try:
            return self.transform(raw, provider)
        except TransformError as e:
            logger.debug("Discarding raw record", provider=provider, reason=str(e))
            return None

    @staticmethod
    def _image(raw: RawRecord, fields: FieldMap) -> str:
        value = _first(raw, fields.image)
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        if isinstance(value, dict):
            value = value.get("url")
        return _text(value)

    def _published_at(self, value: Any) -> datetime:
        parsed = parse_datetime(value)
        return parsed if parsed is not None else self._clock()


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse the timestamp formats providers send; None when unparseable."""
    if isinstance(value, datetime):
        return value
    text = _text(value)
    if not text:
        return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass

    # RFC 822, as sent in feed-style payloads
    try:
        return parsedate_to_datetime(text)
    except (ValueError, TypeError):
        pass

    # Currents: "2024-06-10 14:30:00 +0000"
    try:
        return datetime.strptime(text, "%Y-%m-%d %H:%M:%S %z")
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(text[:19])
    except ValueError:
        pass

    logger.debug("Unparseable timestamp", value=text)
    return None


def _first(raw: RawRecord, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, "", []):
            return value
    return None


def _text(value: Any) -> str:
    if value is None or isinstance(value, (list, dict)):
        return ""
    text = str(value).strip()
    if text.lower() in _EMPTY_SENTINELS:
        return ""
    return text


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(",")
    return [t for t in (_text(i) for i in items) if t]
