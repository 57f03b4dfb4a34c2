"""
Pipeline schedulers.

Two periodic jobs aligned to wall-clock boundaries:
- IngestionScheduler: runs the feed ingester in-process (hourly by default)
- ClassificationScheduler: spawns the classification worker as a
  subprocess (every 10 minutes by default)

Each job runs once on start, never overlaps itself, and is stopped
through SchedulerManager on SIGINT/SIGTERM.
"""

import asyncio
import logging
import signal
import sys
from datetime import datetime, timedelta
from typing import Awaitable, Callable

from .config import config
from .database import Database
from .ingest import FeedIngester

logger = logging.getLogger(__name__)

WORKER_COMMAND = (sys.executable, "-m", "av_insights.worker")


def next_aligned_run(now: datetime, interval_minutes: int) -> datetime:
    """
    First whole minute after `now` that falls on an interval boundary.

    Boundaries follow cron step semantics: for intervals up to an hour the
    minute must be a multiple of the interval (*/10 -> :00, :10, ... :50);
    longer intervals must be whole hours and fire at minute 0 of every
    interval_minutes // 60 hours.
    """
    if interval_minutes <= 0:
        raise ValueError("interval_minutes must be positive")

    candidate = now.replace(second=0, microsecond=0) + timedelta(minutes=1)
    if interval_minutes <= 60:
        while candidate.minute % interval_minutes != 0:
            candidate += timedelta(minutes=1)
        return candidate

    hours = interval_minutes // 60
    while candidate.minute != 0 or candidate.hour % hours != 0:
        candidate += timedelta(minutes=1)
    return candidate


class PeriodicScheduler:
    """
    Base class for a periodic job with an overlap guard.

    Subclasses implement run_job(); stop_job() may be overridden to wind
    down an in-flight run.
    """

    name = "job"

    def __init__(
        self,
        interval_minutes: int,
        run_on_start: bool = True,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.interval_minutes = interval_minutes
        self.run_on_start = run_on_start
        self._clock = clock
        self._sleep = sleep
        self._task: asyncio.Task | None = None
        self._current: asyncio.Task | None = None
        self._running = False
        self.is_job_running = False
        self.runs_started = 0
        self.ticks_skipped = 0

    async def run_job(self):
        raise NotImplementedError

    async def stop_job(self):
        """Cancel the in-flight run."""
        if self._current and not self._current.done():
            self._current.cancel()

    async def start(self):
        """Start the scheduling loop."""
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(f"{self.name} scheduler started (every {self.interval_minutes} minutes)")

    async def stop(self):
        """Stop ticking and wind down any in-flight run."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        await self.stop_job()
        if self._current:
            try:
                await self._current
            except asyncio.CancelledError:
                pass
            self._current = None

        logger.info(f"{self.name} scheduler stopped")

    def tick(self) -> asyncio.Task | None:
        """Launch a run unless the previous one is still going."""
        if self.is_job_running:
            self.ticks_skipped += 1
            logger.warning(f"{self.name} still running, skipping this tick")
            return None
        self.is_job_running = True
        self.runs_started += 1
        self._current = asyncio.create_task(self._guarded_run())
        return self._current

    async def _guarded_run(self):
        started = self._clock()
        logger.info(f"{self.name} run starting at {started.isoformat()}")
        try:
            await self.run_job()
        except asyncio.CancelledError:
            logger.info(f"{self.name} run cancelled")
            raise
        except Exception as e:
            logger.exception(f"{self.name} run failed: {e}")
        finally:
            self.is_job_running = False

    async def _loop(self):
        if self.run_on_start:
            self.tick()

        while self._running:
            now = self._clock()
            next_run = next_aligned_run(now, self.interval_minutes)
            logger.debug(f"{self.name} next run at {next_run.isoformat()}")
            await self._sleep(max(0.0, (next_run - now).total_seconds()))
            if not self._running:
                break
            self.tick()


class IngestionScheduler(PeriodicScheduler):
    """Runs feed ingestion in-process."""

    name = "Ingestion"

    def __init__(
        self,
        ingester_factory: Callable[[], FeedIngester] | None = None,
        interval_minutes: int | None = None,
        **kwargs,
    ):
        super().__init__(interval_minutes or config.INGEST_INTERVAL_MINUTES, **kwargs)
        self._ingester_factory = ingester_factory or (
            lambda: FeedIngester(Database(config.DB_PATH))
        )

    async def run_job(self):
        summary = await self._ingester_factory().ingest_all()
        logger.info(
            f"Ingestion run complete: {summary.upserted} upserted, {summary.failed} source(s) failed"
        )


class ClassificationScheduler(PeriodicScheduler):
    """
    Runs the classification worker as a supervised subprocess.

    On stop the worker gets SIGTERM, then SIGKILL if it has not exited
    within the grace period.
    """

    name = "Classification"

    def __init__(
        self,
        command: tuple[str, ...] = WORKER_COMMAND,
        interval_minutes: int | None = None,
        kill_grace_seconds: float | None = None,
        spawn: Callable[..., Awaitable[asyncio.subprocess.Process]] = asyncio.create_subprocess_exec,
        **kwargs,
    ):
        super().__init__(interval_minutes or config.AI_INTERVAL_MINUTES, **kwargs)
        self.command = command
        self.kill_grace_seconds = (
            config.WORKER_KILL_GRACE_SECONDS if kill_grace_seconds is None else kill_grace_seconds
        )
        self._spawn = spawn
        self._process: asyncio.subprocess.Process | None = None
        self.last_exit_code: int | None = None

    async def run_job(self):
        self._process = await self._spawn(*self.command)
        logger.info(f"Worker started (pid {self._process.pid})")
        try:
            code = await self._process.wait()
        finally:
            self._process = None

        self.last_exit_code = code
        if code == 0:
            logger.info("Worker exited cleanly")
        else:
            logger.error(f"Worker exited with code {code}")

    async def stop_job(self):
        process = self._process
        if process is None or process.returncode is not None:
            return

        logger.info(f"Sending SIGTERM to worker (pid {process.pid})")
        process.terminate()
        try:
            await asyncio.wait_for(process.wait(), timeout=self.kill_grace_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                f"Worker did not exit within {self.kill_grace_seconds}s, sending SIGKILL"
            )
            process.kill()
            await process.wait()


class SchedulerManager:
    """Owns both schedulers and their shared shutdown."""

    def __init__(
        self,
        ingestion: IngestionScheduler | None = None,
        classification: ClassificationScheduler | None = None,
    ):
        self.ingestion = ingestion or IngestionScheduler()
        self.classification = classification or ClassificationScheduler()
        self._stop_event = asyncio.Event()

    @property
    def schedulers(self) -> list[PeriodicScheduler]:
        return [self.ingestion, self.classification]

    def request_stop(self):
        if not self._stop_event.is_set():
            logger.info("Shutdown requested")
        self._stop_event.set()

    async def start(self):
        for scheduler in self.schedulers:
            await scheduler.start()

    async def stop(self):
        await asyncio.gather(*(scheduler.stop() for scheduler in self.schedulers))

    async def run(self, install_signal_handlers: bool = True):
        """Run both schedulers until request_stop() or a termination signal."""
        if install_signal_handlers:
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self.request_stop)

        await self.start()
        try:
            await self._stop_event.wait()
        finally:
            await self.stop()
        logger.info("Schedulers stopped")
