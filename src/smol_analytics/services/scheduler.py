"""Periodic report scheduler.

Runs two independent background loops:
- hourly: sends the current-hour report immediately on start, then on a
  fixed grid of intervals measured from start. A report that overruns its
  slot skips the missed ticks.
- daily: once per day at a fixed wall-clock hour, sends the report for the
  previous completed day.

A failing tick is logged and the loop carries on; only stop() ends a loop.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from smol_analytics.keys import HOUR_SECONDS
from smol_analytics.services.reports import ReportService

logger = logging.getLogger(__name__)


def is_daily_report_hour(now: datetime, hour: int) -> bool:
    """Gate for the daily report."""
    return now.hour == hour


def seconds_until_daily_report(now: datetime, hour: int) -> float:
    """Seconds from ``now`` until the next ``hour:00`` on the same clock."""
    target = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


def utc_now() -> datetime:
    return datetime.now(UTC)


def local_now() -> datetime:
    return datetime.now().astimezone()


class ReportScheduler:
    """Background service that sends hourly and daily visit reports."""

    def __init__(
        self,
        reports: ReportService,
        *,
        hourly_interval_seconds: float = float(HOUR_SECONDS),
        daily_report_hour: int = 1,
        use_utc: bool = True,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._reports = reports
        self._hourly_interval_seconds = max(1.0, hourly_interval_seconds)
        self._daily_report_hour = daily_report_hour
        self._clock = clock or (utc_now if use_utc else local_now)
        self._stop_event = asyncio.Event()
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    async def start(self) -> None:
        if self._tasks:
            return
        self._stop_event.clear()
        self._tasks = [
            asyncio.create_task(self._hourly_loop()),
            asyncio.create_task(self._daily_loop()),
        ]
        logger.info(
            "Report scheduler started (hourly_interval=%.0fs, daily_hour=%02d:00)",
            self._hourly_interval_seconds,
            self._daily_report_hour,
        )

    async def stop(self) -> None:
        if not self._tasks:
            return
        self._stop_event.set()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Report scheduler stopped")

    async def run_hourly_tick(self) -> bool:
        """Send the current-hour report. Never raises."""
        try:
            return await self._reports.send_hourly_report(
                now=self._clock().timestamp()
            )
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Hourly report tick failed")
            return False

    async def run_daily_tick(self) -> bool:
        """Send the previous day's report if the clock is at the report hour."""
        now = self._clock()
        if not is_daily_report_hour(now, self._daily_report_hour):
            return False
        try:
            return await self._reports.send_daily_report(
                use_previous_day=True,
                now=now.timestamp(),
            )
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Daily report tick failed")
            return False

    async def _hourly_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time()
        while not self._stop_event.is_set():
            # Ticks stay on a fixed grid measured from start.
            next_at += self._hourly_interval_seconds
            await self.run_hourly_tick()
            now = loop.time()
            if next_at < now:
                skipped = int((now - next_at) // self._hourly_interval_seconds) + 1
                logger.warning("Hourly report overran; skipping %d tick(s)", skipped)
                next_at += skipped * self._hourly_interval_seconds
            if await self._wait(next_at - now):
                return

    async def _daily_loop(self) -> None:
        # A process started during the report hour still sends that day's report.
        await self.run_daily_tick()
        while not self._stop_event.is_set():
            delay = seconds_until_daily_report(self._clock(), self._daily_report_hour)
            if await self._wait(delay):
                return
            await self.run_daily_tick()

    async def _wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; True if stop() was requested meanwhile."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except TimeoutError:
            return False
        return True
