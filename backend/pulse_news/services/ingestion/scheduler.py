"""
Ingestion Scheduler - periodic multi-provider news fetching.

Each tick asks the planner for an ordered task list and executes the tasks
one after another: fetch, transform, duplicate check, store, notify. A
task's failure is recorded and the tick moves on to the next task.
"""

import asyncio
import time
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from pulse_news.config import SchedulerSettings, Settings
from pulse_news.models.domain import ArticleCandidate
from pulse_news.services.article_store import ArticleRepository
from pulse_news.services.broadcast import Broadcaster, LogBroadcaster
from pulse_news.services.ingestion.base import FetchTask, RawRecord, RunSummary, TaskResult
from pulse_news.services.ingestion.categorizer import Categorizer
from pulse_news.services.ingestion.dedup import DuplicateDetector
from pulse_news.services.ingestion.errors import (
    IngestionError,
    ProviderAPIError,
    RateLimitExceeded,
    TransportError,
    UnknownProviderError,
)
from pulse_news.services.ingestion.planner import FetchPlanner
from pulse_news.services.ingestion.rate_budget import RateBudgetTracker
from pulse_news.services.ingestion.stats import DailyStats
from pulse_news.services.ingestion.transformer import ArticleTransformer
from pulse_news.sources import build_adapters, build_provider_configs
from pulse_news.sources.base import ProviderAdapter

logger = structlog.get_logger(__name__)

JOB_ID = "news_ingestion"


class IngestionScheduler:
    """
    Owns the ingestion pipeline and its process-wide state.

    Rate counters and daily stats are only touched while holding
    ``_run_lock``, so a scheduled tick and an administrative "fetch now"
    never interleave.
    """

    def __init__(
        self,
        adapters: dict[str, ProviderAdapter],
        store: ArticleRepository,
        detector: Optional[DuplicateDetector] = None,
        transformer: Optional[ArticleTransformer] = None,
        broadcaster: Optional[Broadcaster] = None,
        settings: Optional[SchedulerSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            adapters: Provider adapters keyed by provider name
            store: Article storage collaborator
            detector: Duplicate detector (defaults to one over ``store``)
            transformer: Raw record normalizer
            broadcaster: Notified of admitted articles and status changes
            settings: Interval, delays, retry and budget options
            clock: Returns the current local time (injectable for tests)
        """
        self.settings = settings or SchedulerSettings()
        self._tz = ZoneInfo(self.settings.timezone)
        self._clock = clock or (lambda: datetime.now(self._tz))

        self.adapters = adapters
        self.store = store
        self.detector = detector or DuplicateDetector(store)
        self.transformer = transformer or ArticleTransformer()
        self.broadcaster: Broadcaster = broadcaster or LogBroadcaster()

        configs = [a.config for a in adapters.values()]
        self.tracker = RateBudgetTracker(configs, clock=self._clock)
        self.planner = FetchPlanner(configs, self.tracker)
        self.stats = DailyStats(clock=self._clock)

        self._run_lock = asyncio.Lock()
        self._running = False
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._last_run: Optional[datetime] = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: ArticleRepository,
        broadcaster: Optional[Broadcaster] = None,
    ) -> "IngestionScheduler":
        """Build a scheduler for every provider that has credentials."""
        adapters = build_adapters(build_provider_configs(settings))
        logger.info("Provider adapters initialized", providers=list(adapters))

        return cls(
            adapters=adapters,
            store=store,
            detector=DuplicateDetector.from_settings(store, settings.dedup),
            transformer=ArticleTransformer(
                categorizer=Categorizer(),
                fallback_image_url=settings.fallback_image_url,
            ),
            broadcaster=broadcaster,
            settings=settings.scheduler,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self):
        """Start the periodic trigger, with an immediate first tick."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._scheduler = AsyncIOScheduler(timezone=self._tz)
        job_kwargs = {}
        if self.settings.run_on_start:
            job_kwargs["next_run_time"] = datetime.now(self._tz)

        self._scheduler.add_job(
            self._scheduled_tick,
            IntervalTrigger(minutes=self.settings.interval_minutes, timezone=self._tz),
            id=JOB_ID,
            name="Multi-provider news ingestion",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **job_kwargs,
        )
        self._scheduler.start()
        self._running = True

        logger.info(
            "Ingestion scheduler started",
            interval_minutes=self.settings.interval_minutes,
            providers=list(self.adapters),
        )
        await self._broadcast_status()

    async def stop(self):
        """Stop future ticks; an in-flight tick is allowed to complete."""
        if not self._running or self._scheduler is None:
            return

        self._scheduler.remove_job(JOB_ID)
        self._running = False

        # Wait for an in-flight tick, including its status broadcast, before
        # the executor cancels pending jobs
        async with self._run_lock:
            pass
        self._scheduler.shutdown(wait=False)
        self._scheduler = None

        logger.info("Ingestion scheduler stopped")
        await self._broadcast_status()

    @property
    def is_running(self) -> bool:
        return self._running

    def now(self) -> datetime:
        """Current time in the scheduler's timezone."""
        return self._clock()

    # -------------------------------------------------------------------------
    # Runs
    # -------------------------------------------------------------------------

    async def _scheduled_tick(self):
        try:
            await self.run_tick()
        except Exception as e:
            logger.error("Scheduled fetch failed", error=str(e), exc_info=True)

    async def run_tick(self) -> RunSummary:
        """Execute one scheduled tick."""
        return await self._run(
            manual=False,
            count_against_budget=True,
            delay_seconds=self.settings.task_delay_seconds,
        )

    async def run_now(self, count_against_budget: Optional[bool] = None) -> RunSummary:
        """
        Administrative "fetch now" using the same plan and task path.

        Args:
            count_against_budget: Whether provider calls made by this run are
                recorded against rate budgets. Defaults to the
                ``manual_fetch_counts_against_budget`` setting.
        """
        if count_against_budget is None:
            count_against_budget = self.settings.manual_fetch_counts_against_budget

        return await self._run(
            manual=True,
            count_against_budget=count_against_budget,
            delay_seconds=self.settings.manual_task_delay_seconds,
        )

    async def _run(self, manual: bool, count_against_budget: bool, delay_seconds: float) -> RunSummary:
        async with self._run_lock:
            started_at = self._clock()
            self.stats.reset_if_needed()
            plan = self.planner.build_plan(started_at)

            logger.info(
                "Starting news fetch",
                manual=manual,
                tasks=[f"{t.provider}/{t.category}" for t in plan],
            )

            summary = RunSummary(manual=manual, started_at=started_at)
            for index, task in enumerate(plan):
                if index:
                    await asyncio.sleep(delay_seconds)
                result = await self._execute_task(task, count_against_budget)
                summary.results.append(result)
                logger.info("Fetch task finished", **result.to_dict())

            self._last_run = started_at
            logger.info(
                "News fetch completed",
                manual=manual,
                tasks=len(summary.results),
                admitted=summary.total_admitted,
            )
            # stop() waits on the lock, so no awaits may follow its release
            await self._broadcast_status()

        return summary

    async def _execute_task(self, task: FetchTask, count_against_budget: bool) -> TaskResult:
        result = TaskResult(provider=task.provider, category=task.category, subtype=task.subtype)
        start_time = time.monotonic()
        admitted: list[ArticleCandidate] = []

        try:
            adapter = self._adapter(task.provider)
            records = await self._fetch(adapter, task, count_against_budget)
            result.fetched = len(records)
            admitted = await self._ingest(task, records, result)

        except IngestionError as e:
            result.error = str(e)
            self.stats.record_error(task.provider, str(e), kind=e.kind)
            logger.warning(
                "Fetch task failed",
                provider=task.provider,
                category=task.category,
                kind=e.kind,
                error=str(e),
            )

        except Exception as e:
            result.error = str(e)
            self.stats.record_error(task.provider, str(e), kind="unexpected")
            logger.error(
                "Unexpected error in fetch task",
                provider=task.provider,
                error=str(e),
                exc_info=True,
            )

        result.duration_seconds = time.monotonic() - start_time
        self.stats.record_result(result, admitted)

        if admitted:
            await self._notify(admitted)
        return result

    def _adapter(self, provider: str) -> ProviderAdapter:
        try:
            return self.adapters[provider]
        except KeyError:
            raise UnknownProviderError(f"Unknown provider: {provider}") from None

    async def _fetch(
        self,
        adapter: ProviderAdapter,
        task: FetchTask,
        count_against_budget: bool,
    ) -> list[RawRecord]:
        """Call the provider, retrying transport failures when configured."""
        records: list[RawRecord] = []
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.settings.fetch_retry_attempts),
                wait=wait_exponential(multiplier=self.settings.fetch_retry_wait_seconds, max=30),
                retry=retry_if_exception_type(TransportError),
                reraise=True,
            ):
                with attempt:
                    records = await adapter.fetch(task)
        except ProviderAPIError:
            # The provider answered, so the call still counts
            if count_against_budget:
                self.tracker.record_fetch(task.provider)
            raise

        if count_against_budget:
            self.tracker.record_fetch(task.provider)
        return records

    async def _ingest(
        self,
        task: FetchTask,
        records: list[RawRecord],
        result: TaskResult,
    ) -> list[ArticleCandidate]:
        """Transform, de-duplicate and store raw records; returns admitted candidates."""
        admitted = []

        for raw in records:
            candidate = self.transformer.try_transform(raw, task.provider)
            if candidate is None:
                result.skipped += 1
                continue

            if await self.detector.is_duplicate(candidate):
                result.duplicates += 1
                continue

            try:
                await self.store.create(candidate)
            except Exception as e:
                result.skipped += 1
                self.stats.record_error(
                    task.provider, f"Failed to store article: {e}", kind="storage"
                )
                logger.error(
                    "Failed to store article",
                    provider=task.provider,
                    title=candidate.title[:80],
                    error=str(e),
                )
                continue

            admitted.append(candidate)

        result.admitted = len(admitted)
        return admitted

    async def _notify(self, admitted: list[ArticleCandidate]):
        try:
            await self.broadcaster.notify_admitted(admitted)
        except Exception as e:
            logger.warning("Broadcasting new articles failed", error=str(e))

    async def _broadcast_status(self):
        try:
            await self.broadcaster.notify_status(self.get_status())
        except Exception as e:
            logger.warning("Broadcasting status failed", error=str(e))

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def get_status(self) -> dict:
        """Scheduler state, daily stats and per-provider rate counters."""
        next_run = None
        if self._scheduler is not None:
            job = self._scheduler.get_job(JOB_ID)
            if job is not None and job.next_run_time is not None:
                next_run = job.next_run_time.isoformat()

        return {
            "running": self._running,
            "interval_minutes": self.settings.interval_minutes,
            "last_run": self._last_run.isoformat() if self._last_run else None,
            "next_run": next_run,
            "rotation_index": self.planner.rotation_index,
            "daily_stats": self.stats.to_dict(),
            "providers": {
                name: {
                    "display_name": adapter.display_name,
                    "priority": adapter.config.priority,
                    **self.tracker.get_status(name),
                }
                for name, adapter in self.adapters.items()
            },
        }

    async def test_connections(self) -> dict[str, dict]:
        """Probe every provider that still has budget headroom."""
        results = {}
        async with self._run_lock:
            for name, adapter in self.adapters.items():
                try:
                    self.tracker.ensure_can_fetch(name)
                except RateLimitExceeded as e:
                    results[name] = {"success": False, "message": str(e), "count": 0, "kind": e.kind}
                    continue

                result = await adapter.test_connection()
                # Counted like a task fetch: any reply from the provider is a call
                if result["success"] or result.get("kind") == ProviderAPIError.kind:
                    self.tracker.record_fetch(name)
                results[name] = result
        return results
