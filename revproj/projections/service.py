"""Publish flow: normalize a payload, store it and record the run.

Normalization runs before any database call, so a rejected payload never
touches the store or either log.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, urlencode

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from revproj.canonical.markets import MarketCatalog
from revproj.canonical.normalizer import extract_sheet_url, normalize_projection
from revproj.config import SiteConfig
from revproj.db.projections import put_projection
from revproj.db.runs import append_run
from revproj.models import NewProjectionRun, ProjectionRecord, RunAction

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class ProjectionUrls:
    public_url: str
    tracking_url: str
    preview_url: str


@dataclass(slots=True)
class PublishResult:
    slug: str
    owner_slug: str
    lead_id: str
    action: RunAction
    urls: ProjectionUrls

    def to_response(self) -> dict[str, Any]:
        return {
            "ok": True,
            "slug": self.slug,
            "ownerSlug": self.owner_slug,
            "leadId": self.lead_id,
            "action": self.action.value,
            "publicUrl": self.urls.public_url,
            "trackingUrl": self.urls.tracking_url,
            "previewUrl": self.urls.preview_url,
        }


def build_public_url(base_url: str, owner_slug: str, slug: str) -> str:
    return f"{base_url.rstrip('/')}/{quote(owner_slug)}/{quote(slug)}"


def build_urls(record: ProjectionRecord, site: SiteConfig) -> ProjectionUrls:
    """Public page, tracked email link and internal preview link for a record."""
    public_url = build_public_url(site.base_url, record.owner_slug, record.slug)
    query = urlencode({
        "lid": record.meta.lead_id,
        "slug": record.slug,
        "ae": record.owner_slug,
    })
    return ProjectionUrls(
        public_url=public_url,
        tracking_url=f"{site.base_url}/t?{query}",
        preview_url=f"{public_url}?src=preview",
    )


async def publish_projection(
    session: AsyncSession,
    payload: Any,
    site: SiteConfig,
    catalog: MarketCatalog | None = None,
) -> PublishResult:
    """Normalize, upsert and audit one projection payload.

    The caller owns the transaction; store write and run row commit together.

    Raises:
        ProjectionValidationError: If the payload cannot be normalized
    """
    record = normalize_projection(payload, catalog=catalog)
    urls = build_urls(record, site)

    stored, created = await put_projection(session, record)
    action = RunAction.CREATE if created else RunAction.UPDATE

    await append_run(
        session,
        NewProjectionRun(
            slug=stored.slug,
            owner_slug=stored.owner_slug,
            action=action,
            actor_name=record.cta.ae_name,
            actor_email=record.cta.ae_email,
            lead_id=record.meta.lead_id,
            internal_id=record.property.internal_id or None,
            homeowner_name=record.meta.homeowner_full_name,
            address=record.property.address,
            city=record.property.city or None,
            state=record.property.state or None,
            market=record.property.market or None,
            public_url=urls.public_url,
            preview_url=urls.preview_url,
            sheet_url=extract_sheet_url(payload),
        ),
    )

    logger.info(
        "projection_saved",
        slug=stored.slug,
        owner_slug=stored.owner_slug,
        action=action.value,
        market_code=record.property.market_code,
    )
    return PublishResult(
        slug=stored.slug,
        owner_slug=stored.owner_slug,
        lead_id=record.meta.lead_id,
        action=action,
        urls=urls,
    )
