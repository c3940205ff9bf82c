"""
Services layer for Consumer Pulse news ingestion.

1. Article store (article_store.py):
   - SQLAlchemy-backed persistence for admitted articles
   - Recent-window queries used by duplicate detection

2. Broadcast (broadcast.py):
   - Live notification of admitted articles and scheduler status

3. Ingestion (ingestion/):
   - Rate budgets, fetch planning, normalization, categorization,
     duplicate detection and the periodic scheduler
"""

from pulse_news.services.article_store import ArticleRepository, ArticleStore
from pulse_news.services.broadcast import Broadcaster, LogBroadcaster, WebSocketBroadcaster

__all__ = [
    "ArticleRepository",
    "ArticleStore",
    "Broadcaster",
    "LogBroadcaster",
    "WebSocketBroadcaster",
]
