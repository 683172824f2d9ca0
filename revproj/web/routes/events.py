"""Analytics event API routes."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Query

from revproj.db.connection import get_session
from revproj.db.events import append_event, events_by_slug
from revproj.web.models import EventRequest, EventResponse, ReportErrorRequest

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Analytics"])


@router.post("/events", response_model=EventResponse)
async def log_event(body: EventRequest):
    async with get_session() as session:
        logged = await append_event(session, body.to_new_event())
    return EventResponse(event_id=logged.id)


@router.get("/events")
async def list_events(
    slug: str = Query(..., min_length=1),
    event: str | None = None,
):
    """All events recorded for a projection slug, oldest first."""
    async with get_session() as session:
        events = await events_by_slug(session, slug, event=event)
    return {
        "ok": True,
        "count": len(events),
        "events": [e.to_json_dict() for e in events],
    }


@router.post("/report-error")
async def report_error(body: ReportErrorRequest):
    """Landing page could not load its projection."""
    logger.warning(
        "projection_page_error_reported",
        slug=body.slug,
        owner_slug=body.owner_slug,
        attempted_url=body.attempted_url,
    )
    async with get_session() as session:
        await append_event(session, body.to_new_event())
    return {"ok": True}
