"""Tracked email link redirect."""

from __future__ import annotations

from urllib.parse import urlencode

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import RedirectResponse

from revproj.config import get_config
from revproj.core.tasks import run_best_effort
from revproj.db.connection import get_session
from revproj.db.events import append_event
from revproj.db.projections import get_projection_by_slug
from revproj.integrations.salesforce import SalesforceClient
from revproj.models import EventName, NewEvent
from revproj.notifications.followups import record_link_click_followup
from revproj.projections.service import build_public_url
from revproj.web.dependencies import get_salesforce_client

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Tracking"])


@router.get("/t")
async def track_click(
    background_tasks: BackgroundTasks,
    lid: str | None = None,
    slug: str | None = None,
    ae: str | None = None,
    campaign: str | None = None,
    salesforce: SalesforceClient = Depends(get_salesforce_client),
):
    """Log the click and redirect to the landing page with tracking params.

    The page owner always comes from the stored record, so links sent before
    an owner change still land on the current page. Links whose record is
    missing go to the fallback site.
    """
    config = get_config()
    site = config.site

    owner_slug = None
    async with get_session() as session:
        if slug:
            record = await get_projection_by_slug(session, slug)
            owner_slug = record.owner_slug if record else None
            if owner_slug and ae and ae != owner_slug:
                logger.info(
                    "tracking_owner_changed", slug=slug, link_owner=ae, owner_slug=owner_slug
                )
        await append_event(
            session,
            NewEvent(
                event=EventName.LINK_CLICK.value,
                slug=slug or None,
                owner_slug=owner_slug or ae or None,
                lead_id=lid or None,
                campaign=campaign or None,
                source=site.tracking_source,
            ),
        )

    if not slug or not owner_slug:
        logger.warning("tracking_link_unresolved", slug=slug, lead_id=lid)
        return RedirectResponse(url=site.fallback_redirect_url, status_code=307)

    if lid:
        background_tasks.add_task(
            run_best_effort,
            "record_link_click_followup",
            record_link_click_followup,
            salesforce,
            lid,
            slug,
            timeout=config.notifications.timeout_seconds,
        )

    params = {"lid": lid, "src": site.tracking_source, "campaign": campaign}
    query = urlencode({k: v for k, v in params.items() if v})
    target = build_public_url(site.base_url, owner_slug, slug)
    return RedirectResponse(url=f"{target}?{query}", status_code=307)
