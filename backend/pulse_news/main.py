"""
Main FastAPI application for Consumer Pulse news ingestion.
"""
import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pulse_news.api.routes import router, set_services
from pulse_news.config import get_settings
from pulse_news.models.database import Database
from pulse_news.services.article_store import ArticleStore
from pulse_news.services.broadcast import WebSocketBroadcaster
from pulse_news.services.ingestion.scheduler import IngestionScheduler

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - handles startup and shutdown."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(message)s")

    # Initialize database
    logger.info("Initializing database", url=settings.database_url)
    database = Database(settings.database_url)
    await database.create_tables()
    store = ArticleStore(database)

    # Initialize ingestion scheduler
    broadcaster = WebSocketBroadcaster()
    scheduler = IngestionScheduler.from_settings(settings, store, broadcaster=broadcaster)
    set_services(scheduler, store, broadcaster)

    if scheduler.adapters:
        await scheduler.start()
    else:
        logger.warning("No news provider API keys configured, scheduler not started")

    yield

    # Shutdown
    logger.info("Shutting down")
    await scheduler.stop()
    set_services(None, None)
    await database.dispose()


# Create FastAPI app
app = FastAPI(
    title="Consumer Pulse",
    description="Multi-provider news ingestion with rate budgets and de-duplication.",
    version=get_settings().app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "consumer-pulse-ingestion",
        "version": get_settings().app_version,
    }


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Consumer Pulse News Ingestion API",
        "version": get_settings().app_version,
        "docs": "/docs",
        "endpoints": {
            "status": "/api/v1/admin/news/status",
            "fetch_now": "/api/v1/admin/news/fetch-now",
            "start": "/api/v1/admin/news/start",
            "stop": "/api/v1/admin/news/stop",
            "connections": "/api/v1/admin/news/connections",
            "articles": "/api/v1/admin/news/articles",
            "live_updates": "/api/v1/ws/news",
        },
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "pulse_news.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
