"""Slug-keyed projection store.

One row per slug. Writes are upserts: the latest write for a slug replaces
the stored record and owner slug while ``created_at`` is preserved.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from revproj.db.models import ProjectionModel, utcnow
from revproj.models import ProjectionRecord, StoredProjection

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


async def put_projection(
    session: AsyncSession,
    record: ProjectionRecord,
) -> tuple[StoredProjection, bool]:
    """Insert or replace the record stored under ``record.slug``.

    Args:
        session: Open session; the caller commits
        record: Canonical record to store

    Returns:
        The stored envelope and whether a new row was created
    """
    slug = record.slug
    now = utcnow()
    values = {
        "slug": slug,
        "owner_slug": record.owner_slug,
        "data": record.to_json_dict(),
        "created_at": now,
    }

    existing_id = (
        await session.execute(select(ProjectionModel.id).where(ProjectionModel.slug == slug))
    ).scalar_one_or_none()
    created = existing_id is None

    dialect = session.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)
    if insert is not None:
        stmt = insert(ProjectionModel).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[ProjectionModel.slug],
            set_={
                "owner_slug": stmt.excluded.owner_slug,
                "data": stmt.excluded.data,
                "updated_at": now,
            },
        )
        await session.execute(stmt)
    elif created:
        session.add(ProjectionModel(**values))
    else:
        row = await session.get(ProjectionModel, existing_id)
        row.owner_slug = record.owner_slug
        row.data = values["data"]
        row.updated_at = now
    await session.flush()

    row = await _fetch_row(session, slug)
    return _to_stored(row), created


async def get_projection_by_slug(session: AsyncSession, slug: str) -> ProjectionRecord | None:
    """Return the record stored under ``slug``, if any."""
    row = await _fetch_row(session, slug)
    if row is None:
        return None
    return ProjectionRecord.model_validate(row.data)


async def get_projection_by_owner_and_slug(
    session: AsyncSession,
    owner_slug: str,
    slug: str,
) -> ProjectionRecord | None:
    """Return the record under ``slug`` only if ``owner_slug`` currently owns it."""
    stmt = select(ProjectionModel).where(
        ProjectionModel.slug == slug,
        ProjectionModel.owner_slug == owner_slug,
    )
    row = (await session.execute(stmt)).scalar_one_or_none()
    if row is None:
        return None
    return ProjectionRecord.model_validate(row.data)


async def get_stored_projection(session: AsyncSession, slug: str) -> StoredProjection | None:
    """Return the full envelope (with timestamps) for ``slug``."""
    row = await _fetch_row(session, slug)
    return _to_stored(row) if row is not None else None


async def _fetch_row(session: AsyncSession, slug: str) -> ProjectionModel | None:
    stmt = (
        select(ProjectionModel)
        .where(ProjectionModel.slug == slug)
        .execution_options(populate_existing=True)
    )
    return (await session.execute(stmt)).scalar_one_or_none()


def _to_stored(row: ProjectionModel) -> StoredProjection:
    return StoredProjection(
        slug=row.slug,
        owner_slug=row.owner_slug,
        data=ProjectionRecord.model_validate(row.data),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
