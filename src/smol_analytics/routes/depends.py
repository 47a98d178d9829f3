"""Shared FastAPI dependencies for route handlers.

Services are created in the application lifespan and kept on ``app.state``.
"""

from typing import Any

from fastapi import Request

from smol_analytics.services.notifier import WebhookNotifier
from smol_analytics.services.recorder import VisitRecorder
from smol_analytics.services.scheduler import ReportScheduler


def get_recorder(request: Request) -> VisitRecorder | None:
    return getattr(request.app.state, "recorder", None)


def get_redis_client(request: Request) -> Any | None:
    return getattr(request.app.state, "redis", None)


def get_notifier(request: Request) -> WebhookNotifier | None:
    return getattr(request.app.state, "notifier", None)


def get_scheduler(request: Request) -> ReportScheduler | None:
    return getattr(request.app.state, "scheduler", None)
