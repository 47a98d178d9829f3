"""smol-analytics HTTP server."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from smol_analytics.config import Settings, get_settings
from smol_analytics.logging import configure_logging
from smol_analytics.middleware import RequestIDMiddleware
from smol_analytics.routes import health_router, visits_router
from smol_analytics.services.aggregator import VisitAggregator
from smol_analytics.services.notifier import WebhookNotifier
from smol_analytics.services.recorder import VisitRecorder
from smol_analytics.services.redis import close_redis, connect_redis
from smol_analytics.services.reports import ReportService
from smol_analytics.services.scheduler import ReportScheduler

logger = logging.getLogger(__name__)


async def _notify_with_timeout(
    reports: ReportService,
    *,
    started: bool,
    timeout: float,
) -> None:
    """Best-effort lifecycle notification bounded by ``timeout`` seconds."""
    notify = reports.notify_started if started else reports.notify_stopped
    try:
        await asyncio.wait_for(notify(), timeout=max(0.1, timeout))
    except TimeoutError:
        logger.warning(
            "Lifecycle notification (%s) timed out after %.1fs",
            "started" if started else "stopped",
            timeout,
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""

    settings: Settings = get_settings()
    logger.info("Starting smol-analytics server...")

    # Fatal when Redis is unreachable: the server must not accept visits it cannot count.
    redis_client = await connect_redis(
        settings.redis_url,
        timeout_seconds=settings.store_timeout_seconds,
    )

    recorder = VisitRecorder(
        redis_client,
        key_prefix=settings.key_prefix,
        hourly_ttl_seconds=settings.hourly_bucket_ttl_seconds,
        daily_ttl_seconds=settings.daily_bucket_ttl_seconds,
    )
    aggregator = VisitAggregator(redis_client, key_prefix=settings.key_prefix)
    notifier = WebhookNotifier(
        settings.webhook_url,
        timeout_seconds=settings.webhook_timeout_seconds,
    )
    if not notifier.enabled:
        logger.warning("Webhook URL not set (SMOL_WEBHOOK_URL); reports will not be delivered")

    reports = ReportService(aggregator, notifier)
    scheduler = ReportScheduler(
        reports,
        hourly_interval_seconds=settings.hourly_report_interval_seconds,
        daily_report_hour=settings.daily_report_hour,
        use_utc=settings.daily_report_uses_utc,
    )

    app.state.redis = redis_client
    app.state.recorder = recorder
    app.state.aggregator = aggregator
    app.state.notifier = notifier
    app.state.reports = reports
    app.state.scheduler = scheduler

    # Sent in the background so startup never waits on the webhook. Uvicorn binds
    # the socket only after lifespan startup returns, so this races the bind.
    started_task = asyncio.create_task(
        _notify_with_timeout(
            reports,
            started=True,
            timeout=settings.webhook_timeout_seconds,
        )
    )
    await scheduler.start()

    yield

    logger.info("Shutting down smol-analytics server...")

    await scheduler.stop()
    if not started_task.done():
        started_task.cancel()
    await asyncio.gather(started_task, return_exceptions=True)

    await recorder.drain(timeout=settings.shutdown_drain_timeout_seconds)
    await _notify_with_timeout(
        reports,
        started=False,
        timeout=settings.shutdown_notify_timeout_seconds,
    )

    await close_redis(redis_client)


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = get_settings()
    configure_logging(log_format=settings.log_format, debug=settings.debug)

    app = FastAPI(
        title="smol-analytics",
        description="Visit counter with hourly and daily webhook reports",
        version=settings.version,
        lifespan=lifespan,
    )
    app.add_middleware(RequestIDMiddleware)
    app.include_router(visits_router)
    app.include_router(health_router)
    return app


app = create_app()


def main() -> None:
    """Run the server."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "smol_analytics.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    main()
