"""
Broadcasters notified of newly admitted articles.

Notification is fire-and-forget: a failing broadcaster is logged and never
affects ingestion.
"""

import asyncio
from typing import Protocol

import structlog
from fastapi import WebSocket

from pulse_news.models.domain import ArticleCandidate

logger = structlog.get_logger(__name__)


class Broadcaster(Protocol):
    async def notify_admitted(self, articles: list[ArticleCandidate]) -> None: ...

    async def notify_status(self, status: dict) -> None: ...


class LogBroadcaster:
    """Broadcaster that only logs; used by the CLI and when no clients exist."""

    async def notify_admitted(self, articles: list[ArticleCandidate]) -> None:
        for article in articles:
            logger.info(
                "Article admitted",
                title=article.title[:80],
                category=article.category.value,
                provider=article.provider,
            )

    async def notify_status(self, status: dict) -> None:
        logger.debug("Status update", running=status.get("running"))


class WebSocketBroadcaster:
    """Fans out live updates to connected WebSocket clients."""

    def __init__(self):
        self._clients: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        async with self._lock:
            self._clients.add(websocket)
        logger.info("WebSocket client connected", clients=len(self._clients))

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            self._clients.discard(websocket)
        logger.info("WebSocket client disconnected", clients=len(self._clients))

    async def notify_admitted(self, articles: list[ArticleCandidate]) -> None:
        if not articles:
            return
        await self._send({
            "type": "live_update",
            "articles": [a.model_dump(mode="json") for a in articles],
        })

    async def notify_status(self, status: dict) -> None:
        await self._send({"type": "api_status", "status": status})

    async def _send(self, message: dict):
        async with self._lock:
            clients = list(self._clients)

        dead = []
        for websocket in clients:
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning("Dropping WebSocket client", error=str(e))
                dead.append(websocket)

        if dead:
            async with self._lock:
                self._clients.difference_update(dead)
