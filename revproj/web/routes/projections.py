"""Projection publish and lookup API routes."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from revproj.config import get_config
from revproj.core.tasks import run_best_effort
from revproj.db.connection import get_session
from revproj.db.projections import get_projection_by_owner_and_slug, get_projection_by_slug
from revproj.exceptions import FieldError, ProjectionValidationError
from revproj.integrations.salesforce import SalesforceClient
from revproj.notifications.followups import sync_lead_projection_url
from revproj.projections.service import publish_projection
from revproj.web.dependencies import get_salesforce_client

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/projections", tags=["Projections"])


def _not_found() -> JSONResponse:
    return JSONResponse(status_code=404, content={"ok": False, "error": "Projection not found"})


@router.post("")
async def create_projection(
    request: Request,
    background_tasks: BackgroundTasks,
    salesforce: SalesforceClient = Depends(get_salesforce_client),
):
    """Create or replace a projection from any accepted payload shape.

    The CRM lead is pointed at the tracking link after the response is sent.
    """
    try:
        payload = await request.json()
    except ValueError as exc:
        raise ProjectionValidationError(
            [FieldError(field="body", message="Request body must be valid JSON")]
        ) from exc

    config = get_config()
    async with get_session() as session:
        result = await publish_projection(session, payload, config.site)

    background_tasks.add_task(
        run_best_effort,
        "sync_lead_projection_url",
        sync_lead_projection_url,
        salesforce,
        result.lead_id,
        result.urls.tracking_url,
        timeout=config.notifications.timeout_seconds,
    )
    return result.to_response()


@router.get("/{slug}")
async def get_projection(slug: str):
    async with get_session() as session:
        record = await get_projection_by_slug(session, slug)
    if record is None:
        return _not_found()
    return {"ok": True, "data": record.to_json_dict()}


@router.get("/{owner_slug}/{slug}")
async def get_owned_projection(owner_slug: str, slug: str):
    """Fetch a projection only through its current owner's URL."""
    async with get_session() as session:
        record = await get_projection_by_owner_and_slug(session, owner_slug, slug)
    if record is None:
        return _not_found()
    return {"ok": True, "data": record.to_json_dict()}
