"""On-demand visit reports."""

import asyncio

import typer
from rich.markup import escape

from smol_analytics.cli._console import console, error_panel, setup_logging, success, warning
from smol_analytics.config import get_settings
from smol_analytics.keys import Granularity
from smol_analytics.services.aggregator import VisitAggregator
from smol_analytics.services.notifier import WebhookNotifier
from smol_analytics.services.redis import StoreConnectionError, close_redis, connect_redis
from smol_analytics.services.report import render_report


async def _build_report(
    granularity: Granularity,
    *,
    previous_day: bool,
    redis_url: str,
) -> str:
    settings = get_settings()
    client = await connect_redis(redis_url, timeout_seconds=settings.store_timeout_seconds)
    try:
        aggregator = VisitAggregator(client, key_prefix=settings.key_prefix)
        if granularity is Granularity.HOURLY:
            visits = await aggregator.scan_hourly_visits()
        else:
            visits = await aggregator.scan_daily_visits(previous_day)
    finally:
        await close_redis(client)
    return render_report(granularity.value, visits)


def report_command(
    granularity: Granularity = typer.Argument(..., help="Bucket size to report on"),
    previous_day: bool = typer.Option(
        False,
        "--previous-day/--current-day",
        help="Daily reports only: report on the previous completed day",
    ),
    send: bool = typer.Option(
        False,
        "--send",
        help="Deliver the report to the configured webhook",
    ),
    redis_url: str | None = typer.Option(
        None,
        "--redis-url",
        help="Redis URL (overrides SMOL_REDIS_URL)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """
    Print the current hourly or daily report, optionally sending it.

    Examples:
        smol-analytics report hourly
        smol-analytics report daily --previous-day --send
    """
    setup_logging(verbose=verbose)
    settings = get_settings()

    try:
        content = asyncio.run(
            _build_report(
                granularity,
                previous_day=previous_day,
                redis_url=redis_url or settings.redis_url,
            )
        )
    except StoreConnectionError as e:
        error_panel(str(e), title="Redis unavailable")
        raise typer.Exit(1) from e

    console.print(escape(content))

    if not send:
        return

    notifier = WebhookNotifier(
        settings.webhook_url,
        timeout_seconds=settings.webhook_timeout_seconds,
    )
    if not notifier.enabled:
        warning("Webhook URL not set (SMOL_WEBHOOK_URL); nothing sent")
        raise typer.Exit(1)

    if asyncio.run(notifier.send(content)):
        success("Report delivered")
    else:
        error_panel("Webhook rejected the report, see log above", title="Delivery failed")
        raise typer.Exit(1)
