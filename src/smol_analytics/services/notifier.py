"""Webhook notification sink.

Delivery is best-effort: one POST per message, no retries, failures are logged
and counted but never raised.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import httpx

from smol_analytics.schemas import NotificationDeliveryStats
from smol_analytics.services.report import build_payload

logger = logging.getLogger(__name__)


class WebhookNotifier:
    """Posts ``{"content": ...}`` messages to a webhook URL."""

    def __init__(self, url: str | None, *, timeout_seconds: float = 5.0) -> None:
        self._url = url
        self._timeout_seconds = max(0.1, timeout_seconds)
        self._stats = NotificationDeliveryStats()

    @property
    def enabled(self) -> bool:
        return bool(self._url)

    def stats(self) -> NotificationDeliveryStats:
        """Snapshot of in-process delivery counters for the health endpoint."""
        return self._stats.model_copy()

    async def send(self, content: str) -> bool:
        """Deliver one message. Returns True when the webhook accepted it."""
        if not self._url:
            logger.debug("Webhook URL not configured; dropping notification")
            return False

        self._stats.attempted += 1
        self._stats.last_attempt_at = datetime.now(UTC).isoformat()

        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                response = await client.post(self._url, json=build_payload(content))
                response.raise_for_status()
        except Exception as exc:
            logger.warning("Failed to deliver webhook notification: %s", exc)
            self._stats.failures += 1
            self._stats.last_error = str(exc)
            return False

        self._stats.sent += 1
        self._stats.last_sent_at = datetime.now(UTC).isoformat()
        self._stats.last_error = None
        return True
