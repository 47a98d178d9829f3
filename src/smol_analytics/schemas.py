"""HTTP response payloads."""

from pydantic import BaseModel, Field


class NotificationDeliveryStats(BaseModel):
    """Webhook delivery counters surfaced by /health."""

    attempted: int = 0
    sent: int = 0
    failures: int = 0
    last_attempt_at: str | None = None
    last_sent_at: str | None = None
    last_error: str | None = None


class DependencyHealth(BaseModel):
    """Readiness status for a dependency."""

    status: str = "ok"
    detail: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    redis: DependencyHealth = Field(default_factory=DependencyHealth)
    notifications: NotificationDeliveryStats = Field(
        default_factory=NotificationDeliveryStats
    )
    pending_recordings: int = 0
    scheduler_running: bool = False


__all__ = [
    "DependencyHealth",
    "HealthResponse",
    "NotificationDeliveryStats",
]
