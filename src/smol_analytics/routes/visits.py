"""Visit recording routes."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from smol_analytics.routes.depends import get_recorder
from smol_analytics.services.recorder import VisitRecorder

logger = logging.getLogger(__name__)

router = APIRouter(tags=["visits"])

INFO_TEXT = (
    "smol analytics server keeping track of visit counts\n"
    "POST /visit/<route> to record a visit"
)


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Static informational text."""
    return INFO_TEXT


@router.post("/visit/{route:path}", response_class=PlainTextResponse)
async def record_visit(
    route: str,
    recorder: VisitRecorder | None = Depends(get_recorder),
) -> str:
    """
    Record a visit for everything after ``/visit/``.

    Recording runs in the background; the response is always ``ok``.
    """
    if recorder is None:
        logger.warning(
            "Visit recorder not ready; dropping visit route=%s",
            route,
            extra={"route": route},
        )
    else:
        recorder.record_visit_in_background(route)
    return "ok"
