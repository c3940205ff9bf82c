#!/usr/bin/env python3
"""
CLI tool for news ingestion.

Usage:
    # Run one scheduling tick
    python -m scripts.ingest run

    # Show the fetch plan for the current hour
    python -m scripts.ingest plan

    # Show provider budgets and stored article count
    python -m scripts.ingest status

    # Probe every configured provider
    python -m scripts.ingest test-connections

    # Run the scheduler until interrupted
    python -m scripts.ingest serve

    # Delete articles older than N days
    python -m scripts.ingest cleanup --days 7
"""

import argparse
import asyncio
import json
import logging
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(__file__).rsplit("/", 2)[0])

import structlog

from pulse_news.config import Settings, get_settings
from pulse_news.models.database import Database
from pulse_news.services.article_store import ArticleStore
from pulse_news.services.broadcast import LogBroadcaster
from pulse_news.services.ingestion.base import RunSummary
from pulse_news.services.ingestion.scheduler import IngestionScheduler


def configure_logging(level: str):
    logging.basicConfig(level=level.upper(), format="%(message)s", stream=sys.stderr)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


logger = structlog.get_logger(__name__)


async def create_scheduler(settings: Settings) -> tuple[IngestionScheduler, ArticleStore, Database]:
    """Create a scheduler wired to the configured database."""
    database = Database(settings.database_url)
    await database.create_tables()
    store = ArticleStore(database)
    scheduler = IngestionScheduler.from_settings(settings, store, broadcaster=LogBroadcaster())
    return scheduler, store, database


def print_results(summary: RunSummary):
    print("\n" + "=" * 60)
    print("INGESTION RESULTS")
    print("=" * 60)

    for result in summary.results:
        print(result)
        if result.error:
            print(f"    error: {result.error}")

    print("-" * 60)
    succeeded = sum(1 for r in summary.results if r.success)
    print(f"Tasks: {succeeded}/{len(summary.results)} succeeded")
    print(f"Admitted articles: {summary.total_admitted}")


async def cmd_run(args):
    """Run one scheduling tick."""
    scheduler, _, database = await create_scheduler(get_settings())
    try:
        if not scheduler.adapters:
            print("No providers configured (set *_API_KEY environment variables)")
            return 1

        summary = await scheduler.run_tick()
        print_results(summary)
        return 0 if all(r.success for r in summary.results) else 1
    finally:
        await database.dispose()


async def cmd_plan(args):
    """Print the fetch plan for the current hour."""
    scheduler, _, database = await create_scheduler(get_settings())
    try:
        plan = scheduler.planner.build_plan(scheduler.now())

        print("\n" + "=" * 50)
        print("FETCH PLAN")
        print("=" * 50)
        if not plan:
            print("  (no provider active or within budget)")
        for task in plan:
            subtype = f" ({task.subtype})" if task.subtype else ""
            print(f"  {task.priority}. {task.provider}/{task.category}{subtype}")
        return 0
    finally:
        await database.dispose()


async def cmd_status(args):
    """Show provider budgets and stored article count."""
    scheduler, store, database = await create_scheduler(get_settings())
    try:
        status = scheduler.get_status()
        status["total_articles"] = await store.count()

        if args.json:
            print(json.dumps(status, indent=2))
            return 0

        print("\n" + "=" * 50)
        print("PROVIDERS")
        print("=" * 50)
        for name, provider in status["providers"].items():
            print(f"  {provider['display_name']} ({name})")
            print(f"    Priority: {provider['priority']}")
            print(f"    Limits: {provider['limits']}")
            print(
                f"    Remaining: hour={provider['remaining_hourly']} "
                f"day={provider['remaining_daily']} month={provider['remaining_monthly']}"
            )
            print()

        print(f"Stored articles: {status['total_articles']}")
        return 0
    finally:
        await database.dispose()


async def cmd_test_connections(args):
    """Probe every configured provider."""
    scheduler, _, database = await create_scheduler(get_settings())
    try:
        print("Testing provider connections...")
        results = await scheduler.test_connections()

        print("\n" + "=" * 40)
        print("PROVIDER CONNECTIONS")
        print("=" * 40)

        all_healthy = True
        for name, result in results.items():
            mark = "✓ OK" if result["success"] else "✗ FAILED"
            print(f"  {name}: {mark} - {result['message']}")
            if not result["success"]:
                all_healthy = False

        return 0 if all_healthy else 1
    finally:
        await database.dispose()


async def cmd_serve(args):
    """Run the scheduler until interrupted."""
    settings = get_settings()
    scheduler, _, database = await create_scheduler(settings)

    print(f"Starting scheduler (fetch every {settings.scheduler.interval_minutes} minutes)")
    print("Press Ctrl+C to stop")

    try:
        await scheduler.start()
        while scheduler.is_running:
            await asyncio.sleep(60)
            status = scheduler.get_status()
            logger.debug("Scheduler heartbeat", last_run=status["last_run"], next_run=status["next_run"])
    finally:
        print("\nShutting down...")
        await scheduler.stop()
        await database.dispose()

    return 0


async def cmd_cleanup(args):
    """Delete articles older than the given number of days."""
    settings = get_settings()
    database = Database(settings.database_url)
    try:
        await database.create_tables()
        deleted = await ArticleStore(database).cleanup_older_than(args.days)
        print(f"Deleted {deleted} articles older than {args.days} days")
        return 0
    finally:
        await database.dispose()


COMMANDS = {
    "run": cmd_run,
    "plan": cmd_plan,
    "status": cmd_status,
    "test-connections": cmd_test_connections,
    "serve": cmd_serve,
    "cleanup": cmd_cleanup,
}


def main():
    parser = argparse.ArgumentParser(
        description="Consumer Pulse - News Ingestion CLI"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: from settings)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("run", help="Run one scheduling tick")
    subparsers.add_parser("plan", help="Show the fetch plan for the current hour")

    status_parser = subparsers.add_parser("status", help="Show provider budgets")
    status_parser.add_argument(
        "--json",
        action="store_true",
        help="Print raw JSON status"
    )

    subparsers.add_parser("test-connections", help="Probe every configured provider")
    subparsers.add_parser("serve", help="Run the scheduler until interrupted")

    cleanup_parser = subparsers.add_parser("cleanup", help="Delete old articles")
    cleanup_parser.add_argument(
        "--days", "-d",
        type=int,
        default=get_settings().cleanup_days,
        help="Delete articles older than this many days (default: from settings)"
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    configure_logging(args.log_level or get_settings().log_level)

    try:
        return asyncio.run(COMMANDS[args.command](args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
