"""Operator views of the projection run log."""

from __future__ import annotations

import csv
import io
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates

from revproj.db.connection import get_session
from revproj.db.runs import DEFAULT_RUN_LIMIT, MAX_RUN_LIMIT, list_runs
from revproj.models import ProjectionRun
from revproj.web.dependencies import get_templates

router = APIRouter(tags=["Admin"])

CSV_COLUMNS = [
    ("Run Date", lambda run: run.created_at.isoformat()),
    ("Action", lambda run: run.action.value),
    ("Team Member Name", lambda run: run.actor_name),
    ("Team Member Email", lambda run: run.actor_email),
    ("Owner Name", lambda run: run.homeowner_name),
    ("Address", lambda run: run.address),
    ("City", lambda run: run.city),
    ("State", lambda run: run.state),
    ("Market", lambda run: run.market),
    ("LVR ID", lambda run: run.internal_id),
    ("Lead ID", lambda run: run.lead_id),
    ("Public URL", lambda run: run.public_url),
    ("Preview URL", lambda run: run.preview_url),
    ("Google Sheet URL", lambda run: run.sheet_url),
]

_limit_query = Query(DEFAULT_RUN_LIMIT, ge=1, le=MAX_RUN_LIMIT)


async def _recent_runs(limit: int) -> list[ProjectionRun]:
    async with get_session() as session:
        return await list_runs(session, limit=limit)


def runs_to_csv(runs: list[ProjectionRun]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL)
    writer.writerow([header for header, _ in CSV_COLUMNS])
    for run in runs:
        writer.writerow([getter(run) or "" for _, getter in CSV_COLUMNS])
    return buffer.getvalue()


@router.get("/api/admin/runs")
async def get_runs(limit: int = _limit_query):
    runs = await _recent_runs(limit)
    return {"ok": True, "count": len(runs), "runs": [run.to_json_dict() for run in runs]}


@router.get("/api/admin/runs.csv")
async def export_runs_csv(limit: int = _limit_query):
    runs = await _recent_runs(limit)
    filename = f"projection-runs-{datetime.now(timezone.utc).date().isoformat()}.csv"
    return Response(
        content=runs_to_csv(runs),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/admin", response_class=HTMLResponse)
async def admin_runs_page(
    request: Request,
    limit: int = _limit_query,
    templates: Jinja2Templates = Depends(get_templates),
):
    runs = await _recent_runs(limit)
    return templates.TemplateResponse(
        request,
        "admin_runs.html",
        {"runs": runs, "limit": limit},
    )
