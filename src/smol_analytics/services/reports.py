"""Report pipeline: aggregate a bucket, render it, deliver it."""

import logging
from collections.abc import Sequence

from smol_analytics.keys import Granularity
from smol_analytics.services.aggregator import VisitAggregator, VisitCount
from smol_analytics.services.notifier import WebhookNotifier
from smol_analytics.services.report import render_report

logger = logging.getLogger(__name__)

SERVER_STARTED_MESSAGE = "server started"
SERVER_STOPPED_MESSAGE = "server stopped"


class ReportService:
    """Builds hourly and daily visit reports and sends them to the notifier."""

    def __init__(self, aggregator: VisitAggregator, notifier: WebhookNotifier) -> None:
        self._aggregator = aggregator
        self._notifier = notifier

    async def send_report(self, granularity: Granularity, visits: Sequence[VisitCount]) -> bool:
        content = render_report(granularity.value, visits)
        sent = await self._notifier.send(content)
        logger.info(
            "%s report routes=%d delivered=%s",
            granularity.value.capitalize(),
            len(visits),
            sent,
        )
        return sent

    async def send_hourly_report(self, *, now: float | None = None) -> bool:
        visits = await self._aggregator.scan_hourly_visits(now=now)
        return await self.send_report(Granularity.HOURLY, visits)

    async def send_daily_report(
        self,
        *,
        use_previous_day: bool = True,
        now: float | None = None,
    ) -> bool:
        visits = await self._aggregator.scan_daily_visits(use_previous_day, now=now)
        return await self.send_report(Granularity.DAILY, visits)

    async def notify_started(self) -> bool:
        return await self._notifier.send(SERVER_STARTED_MESSAGE)

    async def notify_stopped(self) -> bool:
        return await self._notifier.send(SERVER_STOPPED_MESSAGE)
