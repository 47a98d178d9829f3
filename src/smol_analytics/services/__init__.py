"""Counting, aggregation and reporting services."""

from smol_analytics.services.aggregator import VisitAggregator, VisitCount
from smol_analytics.services.notifier import WebhookNotifier
from smol_analytics.services.recorder import VisitRecorder
from smol_analytics.services.redis import StoreConnectionError, close_redis, connect_redis
from smol_analytics.services.report import build_payload, render_chart, render_report
from smol_analytics.services.reports import ReportService
from smol_analytics.services.scheduler import ReportScheduler

__all__ = [
    # Redis
    "connect_redis",
    "close_redis",
    "StoreConnectionError",
    # Counting
    "VisitRecorder",
    "VisitAggregator",
    "VisitCount",
    # Reporting
    "render_chart",
    "render_report",
    "build_payload",
    "WebhookNotifier",
    "ReportService",
    "ReportScheduler",
]
