"""Append-only audit trail of projection create/update runs."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from revproj.db.models import ProjectionRunModel
from revproj.models import NewProjectionRun, ProjectionRun

DEFAULT_RUN_LIMIT = 100
MAX_RUN_LIMIT = 1000


async def append_run(session: AsyncSession, run: NewProjectionRun) -> ProjectionRun:
    """Write one audit row."""
    row = ProjectionRunModel(**run.model_dump(mode="json"))
    session.add(row)
    await session.flush()
    return ProjectionRun.model_validate(row.as_dict())


async def list_runs(session: AsyncSession, limit: int = DEFAULT_RUN_LIMIT) -> list[ProjectionRun]:
    """Most recent runs first. ``limit`` is clamped to 1..1000."""
    limit = max(1, min(limit, MAX_RUN_LIMIT))
    stmt = (
        select(ProjectionRunModel)
        .order_by(ProjectionRunModel.created_at.desc(), ProjectionRunModel.id.desc())
        .limit(limit)
    )
    rows = (await session.execute(stmt)).scalars().all()
    return [ProjectionRun.model_validate(row.as_dict()) for row in rows]
