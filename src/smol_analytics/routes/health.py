"""Health check routes."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Response, status

from smol_analytics.config import get_settings
from smol_analytics.routes.depends import (
    get_notifier,
    get_recorder,
    get_redis_client,
    get_scheduler,
)
from smol_analytics.schemas import (
    DependencyHealth,
    HealthResponse,
    NotificationDeliveryStats,
)
from smol_analytics.services.notifier import WebhookNotifier
from smol_analytics.services.recorder import VisitRecorder
from smol_analytics.services.scheduler import ReportScheduler

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_redis(redis_client: Any | None) -> DependencyHealth:
    if redis_client is None:
        return DependencyHealth(status="error", detail="Redis not connected")

    try:
        pong = await redis_client.ping()
    except Exception as exc:
        return DependencyHealth(status="error", detail=f"Redis ping failed: {exc}")

    if pong is False:
        return DependencyHealth(status="error", detail="Redis ping returned false")

    return DependencyHealth(status="ok")


async def _build_health_response(
    redis_client: Any | None,
    notifier: WebhookNotifier | None,
    recorder: VisitRecorder | None,
    scheduler: ReportScheduler | None,
) -> tuple[HealthResponse, bool]:
    redis_health = await _check_redis(redis_client)
    ready = redis_health.status == "ok"

    payload = HealthResponse(
        status="ok" if ready else "degraded",
        version=get_settings().version,
        redis=redis_health,
        notifications=(
            notifier.stats()
            if notifier is not None
            else NotificationDeliveryStats()
        ),
        pending_recordings=recorder.pending if recorder is not None else 0,
        scheduler_running=scheduler.running if scheduler is not None else False,
    )
    return payload, ready


@router.get("/health", response_model=HealthResponse)
async def health_check(
    redis_client: Any | None = Depends(get_redis_client),
    notifier: WebhookNotifier | None = Depends(get_notifier),
    recorder: VisitRecorder | None = Depends(get_recorder),
    scheduler: ReportScheduler | None = Depends(get_scheduler),
) -> HealthResponse:
    """
    Liveness endpoint with dependency status details.

    Always returns 200 while the process is alive. See /ready for strict
    readiness signaling.
    """
    payload, _ = await _build_health_response(redis_client, notifier, recorder, scheduler)
    return payload


@router.get("/ready", response_model=HealthResponse)
async def readiness_check(
    response: Response,
    redis_client: Any | None = Depends(get_redis_client),
    notifier: WebhookNotifier | None = Depends(get_notifier),
    recorder: VisitRecorder | None = Depends(get_recorder),
    scheduler: ReportScheduler | None = Depends(get_scheduler),
) -> HealthResponse:
    """Readiness endpoint for load balancers."""
    payload, ready = await _build_health_response(redis_client, notifier, recorder, scheduler)
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return payload
