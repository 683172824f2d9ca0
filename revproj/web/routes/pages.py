"""Server-rendered landing pages.

Included last by the app factory: ``/{owner_slug}/{slug}`` matches any
two-segment path.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from revproj.config import get_config
from revproj.db.connection import get_session
from revproj.db.events import append_event
from revproj.db.projections import get_projection_by_owner_and_slug
from revproj.models import EventName, NewEvent
from revproj.web.dependencies import get_templates

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Pages"])

# First path segments owned by the API and tooling, never by an agent
RESERVED_PREFIXES = frozenset({"api", "admin", "static", "health", "docs", "redoc", "metrics"})


@router.get("/", include_in_schema=False)
async def home():
    return RedirectResponse(url=get_config().site.fallback_redirect_url, status_code=307)


@router.get("/{owner_slug}/{slug}", response_class=HTMLResponse)
async def projection_page(
    request: Request,
    owner_slug: str,
    slug: str,
    lid: str | None = None,
    src: str | None = None,
    campaign: str | None = None,
    templates: Jinja2Templates = Depends(get_templates),
):
    """Render the landing page, or the branded error page on a miss.

    A miss is logged and recorded as a page error event.
    """
    if owner_slug.lower() in RESERVED_PREFIXES:
        raise HTTPException(status_code=404)

    async with get_session() as session:
        record = await get_projection_by_owner_and_slug(session, owner_slug, slug)
        if record is None:
            await append_event(
                session,
                NewEvent(
                    event=EventName.PAGE_ERROR.value,
                    slug=slug,
                    owner_slug=owner_slug,
                    lead_id=lid,
                    campaign=campaign,
                    source=src,
                    meta={
                        "reason": "not_found",
                        "attemptedUrl": str(request.url),
                        "userAgent": request.headers.get("user-agent"),
                        "referer": request.headers.get("referer"),
                    },
                ),
            )

    if record is None:
        logger.warning("projection_page_not_found", slug=slug, owner_slug=owner_slug)
        return templates.TemplateResponse(request, "error.html", {}, status_code=404)

    tracking = {
        "slug": record.slug,
        "aeSlug": record.owner_slug,
        "lid": lid or record.meta.lead_id,
        "campaign": campaign,
        "src": src,
    }
    return templates.TemplateResponse(
        request,
        "projection.html",
        {"record": record, "tracking": tracking},
    )
