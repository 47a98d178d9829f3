"""HTTP routes."""

from smol_analytics.routes.health import router as health_router
from smol_analytics.routes.visits import router as visits_router

__all__ = [
    "health_router",
    "visits_router",
]
