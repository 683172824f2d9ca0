"""Append-only analytics event log."""

from __future__ import annotations

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from revproj.db.models import AnalyticsEventModel
from revproj.models import AnalyticsEvent, NewEvent

logger = structlog.get_logger(__name__)


async def append_event(session: AsyncSession, event: NewEvent) -> AnalyticsEvent:
    """Write one event row and return it with its assigned id.

    Duplicates are stored as-is.

    Raises:
        ValueError: If the event name is blank
    """
    if not event.event.strip():
        raise ValueError("Event name must not be empty")

    row = AnalyticsEventModel(
        event=event.event,
        slug=event.slug,
        owner_slug=event.owner_slug,
        lead_id=event.lead_id,
        campaign=event.campaign,
        source=event.source,
        meta=event.meta,
    )
    session.add(row)
    await session.flush()

    logger.info("event_logged", event_id=row.id, event_name=row.event, slug=row.slug)
    return AnalyticsEvent.model_validate(row.as_dict())


async def events_by_slug(
    session: AsyncSession,
    slug: str,
    event: str | None = None,
) -> list[AnalyticsEvent]:
    """All events tagged with ``slug`` in insertion order, optionally by name."""
    stmt = select(AnalyticsEventModel).where(AnalyticsEventModel.slug == slug)
    if event:
        stmt = stmt.where(AnalyticsEventModel.event == event)
    stmt = stmt.order_by(AnalyticsEventModel.id)

    rows = (await session.execute(stmt)).scalars().all()
    return [AnalyticsEvent.model_validate(row.as_dict()) for row in rows]
