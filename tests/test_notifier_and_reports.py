from __future__ import annotations

import httpx
import pytest
from fakeredis.aioredis import FakeRedis

import smol_analytics.services.notifier as notifier_module
from smol_analytics.schemas import NotificationDeliveryStats
from smol_analytics.keys import Granularity
from smol_analytics.services.aggregator import VisitAggregator
from smol_analytics.services.notifier import WebhookNotifier
from smol_analytics.services.recorder import VisitRecorder
from smol_analytics.services.reports import (
    SERVER_STARTED_MESSAGE,
    SERVER_STOPPED_MESSAGE,
    ReportService,
)
from tests._fixtures.notifier import FakeNotifier
from tests._fixtures.time import utc_ts

WEBHOOK_URL = "https://example.test/hooks/smol"


class _Response:
    def __init__(self, status_code: int = 204) -> None:
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            request = httpx.Request("POST", WEBHOOK_URL)
            raise httpx.HTTPStatusError(
                f"status {self.status_code}",
                request=request,
                response=httpx.Response(self.status_code, request=request),
            )


def _client_factory(sent: list[dict], *, status_code: int = 204, error: Exception | None = None):
    class _Client:
        def __init__(self, timeout: float) -> None:
            self.timeout = timeout

        async def __aenter__(self) -> _Client:
            return self

        async def __aexit__(self, *args) -> None:  # type: ignore[no-untyped-def]
            return None

        async def post(self, url: str, json: dict) -> _Response:  # noqa: A002
            if error is not None:
                raise error
            sent.append({"url": url, "json": json, "timeout": self.timeout})
            return _Response(status_code)

    return _Client


@pytest.mark.asyncio
async def test_send_posts_content_payload(monkeypatch) -> None:
    sent: list[dict] = []
    monkeypatch.setattr(notifier_module.httpx, "AsyncClient", _client_factory(sent))

    notifier = WebhookNotifier(WEBHOOK_URL, timeout_seconds=2.5)
    assert await notifier.send("hello") is True

    assert sent == [{"url": WEBHOOK_URL, "json": {"content": "hello"}, "timeout": 2.5}]
    stats = notifier.stats()
    assert isinstance(stats, NotificationDeliveryStats)
    assert stats.attempted == 1
    assert stats.sent == 1
    assert stats.failures == 0
    assert stats.last_sent_at is not None


@pytest.mark.asyncio
async def test_http_error_status_is_logged_and_counted(monkeypatch, caplog) -> None:
    sent: list[dict] = []
    monkeypatch.setattr(
        notifier_module.httpx,
        "AsyncClient",
        _client_factory(sent, status_code=500),
    )

    notifier = WebhookNotifier(WEBHOOK_URL)
    assert await notifier.send("hello") is False

    stats = notifier.stats()
    assert stats.failures == 1
    assert stats.sent == 0
    assert "status 500" in str(stats.last_error)
    assert "Failed to deliver webhook notification" in caplog.text


@pytest.mark.asyncio
async def test_transport_errors_never_raise(monkeypatch) -> None:
    monkeypatch.setattr(
        notifier_module.httpx,
        "AsyncClient",
        _client_factory([], error=httpx.ConnectTimeout("timed out")),
    )

    notifier = WebhookNotifier(WEBHOOK_URL)
    assert await notifier.send("hello") is False
    assert notifier.stats().last_error == "timed out"


@pytest.mark.asyncio
async def test_missing_url_drops_without_attempt(monkeypatch) -> None:
    sent: list[dict] = []
    monkeypatch.setattr(notifier_module.httpx, "AsyncClient", _client_factory(sent))

    notifier = WebhookNotifier(None)
    assert notifier.enabled is False
    assert await notifier.send("hello") is False
    assert sent == []
    assert notifier.stats().attempted == 0


@pytest.mark.asyncio
async def test_hourly_report_renders_current_hour(fake_redis: FakeRedis) -> None:
    now = utc_ts(2026, 10, 19, 11, 20)
    recorder = VisitRecorder(fake_redis)
    for _ in range(4):
        await recorder.record_visit("home", now=now)
    await recorder.record_visit("about", now=now)

    notifier = FakeNotifier()
    reports = ReportService(VisitAggregator(fake_redis), notifier)

    assert await reports.send_hourly_report(now=now) is True
    assert len(notifier.messages) == 1
    message = notifier.messages[0]
    assert message.startswith("**hourly visits**")
    assert "home  " in message
    assert message.index("home") < message.index("about")


@pytest.mark.asyncio
async def test_daily_report_defaults_to_previous_day(fake_redis: FakeRedis) -> None:
    recorder = VisitRecorder(fake_redis)
    await recorder.record_visit("yesterday", now=utc_ts(2026, 10, 18, 23))
    await recorder.record_visit("today", now=utc_ts(2026, 10, 19, 0, 30))

    notifier = FakeNotifier()
    reports = ReportService(VisitAggregator(fake_redis), notifier)

    await reports.send_daily_report(now=utc_ts(2026, 10, 19, 1))

    assert notifier.messages[0].startswith("**daily visits**")
    assert "yesterday" in notifier.messages[0]
    assert "today" not in notifier.messages[0]


@pytest.mark.asyncio
async def test_empty_period_sends_no_visits_message(fake_redis: FakeRedis) -> None:
    notifier = FakeNotifier()
    reports = ReportService(VisitAggregator(fake_redis), notifier)

    await reports.send_report(Granularity.HOURLY, [])

    assert notifier.messages == ["**hourly visits**\nno visits recorded"]


@pytest.mark.asyncio
async def test_report_result_reflects_delivery(fake_redis: FakeRedis) -> None:
    notifier = FakeNotifier(accept=False)
    reports = ReportService(VisitAggregator(fake_redis), notifier)

    assert await reports.send_report(Granularity.DAILY, [("home", 1)]) is False


@pytest.mark.asyncio
async def test_lifecycle_notifications(fake_redis: FakeRedis) -> None:
    notifier = FakeNotifier()
    reports = ReportService(VisitAggregator(fake_redis), notifier)

    await reports.notify_started()
    await reports.notify_stopped()

    assert notifier.messages == [SERVER_STARTED_MESSAGE, SERVER_STOPPED_MESSAGE]


@pytest.mark.asyncio
async def test_stats_are_a_snapshot(monkeypatch) -> None:
    monkeypatch.setattr(notifier_module.httpx, "AsyncClient", _client_factory([]))
    notifier = WebhookNotifier(WEBHOOK_URL)

    before = notifier.stats()
    await notifier.send("hello")

    assert before.attempted == 0
    assert notifier.stats().attempted == 1
