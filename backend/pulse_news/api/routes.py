"""
FastAPI routes for Consumer Pulse news ingestion.
"""

from datetime import datetime
from typing import Annotated, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status

from pulse_news.config import get_settings
from pulse_news.models.domain import StoredArticle
from pulse_news.services.article_store import ArticleStore
from pulse_news.services.broadcast import WebSocketBroadcaster
from pulse_news.services.ingestion.scheduler import IngestionScheduler

logger = structlog.get_logger(__name__)
router = APIRouter()

# Set by the application lifespan
_scheduler: Optional[IngestionScheduler] = None
_store: Optional[ArticleStore] = None
_broadcaster: Optional[WebSocketBroadcaster] = None


def set_services(
    scheduler: Optional[IngestionScheduler],
    store: Optional[ArticleStore],
    broadcaster: Optional[WebSocketBroadcaster] = None,
):
    """Register the process-wide ingestion services used by the routes."""
    global _scheduler, _store, _broadcaster
    _scheduler = scheduler
    _store = store
    _broadcaster = broadcaster


def get_scheduler() -> IngestionScheduler:
    if _scheduler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Ingestion scheduler not initialized",
        )
    return _scheduler


def get_store() -> ArticleStore:
    if _store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Article store not initialized",
        )
    return _store


SchedulerDep = Annotated[IngestionScheduler, Depends(get_scheduler)]
StoreDep = Annotated[ArticleStore, Depends(get_store)]


# ============================================================================
# News Admin Routes
# ============================================================================


@router.get("/admin/news/status")
async def get_news_status(scheduler: SchedulerDep, store: StoreDep):
    """
    Get ingestion status.

    Returns scheduler state, today's stats (admitted counts by provider and
    category, recorded errors) and per-provider rate counters.
    """
    return {
        **scheduler.get_status(),
        "total_articles": await store.count(),
        "websocket_clients": _broadcaster.client_count if _broadcaster else 0,
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.post("/admin/news/fetch-now")
async def fetch_news_now(
    scheduler: SchedulerDep,
    count_against_budget: Annotated[Optional[bool], Query()] = None,
):
    """
    Run the fetch plan immediately.

    Uses the same planner and per-task path as a scheduled tick. Provider
    calls count against rate budgets only when ``count_against_budget`` is
    set (or the configured default says so).
    """
    summary = await scheduler.run_now(count_against_budget=count_against_budget)
    logger.info("Manual fetch completed", admitted=summary.total_admitted)
    return summary.to_dict()


@router.post("/admin/news/start")
async def start_news_scheduler(scheduler: SchedulerDep):
    """Start the periodic ingestion trigger."""
    if scheduler.is_running:
        return {"message": "Scheduler already running", "running": True}
    await scheduler.start()
    return {"message": "Scheduler started", "running": True}


@router.post("/admin/news/stop")
async def stop_news_scheduler(scheduler: SchedulerDep):
    """Stop future ticks. A tick already in progress completes."""
    if not scheduler.is_running:
        return {"message": "Scheduler not running", "running": False}
    await scheduler.stop()
    return {"message": "Scheduler stopped", "running": False}


@router.get("/admin/news/connections")
async def test_news_connections(scheduler: SchedulerDep):
    """Probe every configured provider with a minimal request."""
    results = await scheduler.test_connections()
    return {
        "providers": results,
        "healthy": sum(1 for r in results.values() if r["success"]),
        "total": len(results),
    }


@router.get("/admin/news/articles", response_model=list[StoredArticle])
async def list_recent_articles(
    store: StoreDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
):
    """Most recently admitted articles, newest first."""
    return await store.list_recent(limit)


# ============================================================================
# Live Updates
# ============================================================================


@router.websocket("/ws/news")
async def news_websocket(websocket: WebSocket):
    """
    Live updates: ``live_update`` messages carry newly admitted articles,
    ``api_status`` messages carry scheduler status.
    """
    if _broadcaster is None:
        await websocket.close(code=1013)
        return

    await _broadcaster.connect(websocket)
    try:
        if _scheduler is not None:
            await websocket.send_json({"type": "api_status", "status": _scheduler.get_status()})
        while True:
            # Clients only listen; drain anything they send
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await _broadcaster.disconnect(websocket)


# ============================================================================
# Health Check
# ============================================================================


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": get_settings().app_version,
    }
