"""Pydantic models for projection records, analytics events and run logs.

Field names are snake_case in Python and camelCase on the wire; always dump
with ``by_alias=True`` when producing JSON for clients or storage.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MONTHS_PER_YEAR = 12


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ============================================================================
# Canonical projection record
# ============================================================================


class ProjectionMeta(CamelModel):
    slug: str
    lead_id: str
    homeowner_first_name: str
    homeowner_full_name: str

    @field_validator("slug", "lead_id", "homeowner_first_name", "homeowner_full_name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v


class PropertyInfo(CamelModel):
    internal_id: str = ""
    market_code: str
    address: str
    bedrooms: int = Field(ge=0)
    bathrooms: float = Field(ge=0)
    square_feet: int | None = Field(default=None, ge=0)
    city: str = ""
    state: str = ""
    market: str = ""
    is_luxe: bool = False

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v


class ProjectionEstimates(CamelModel):
    """Annual revenue range. Ordering of low/expected/high is not enforced."""

    expected_revenue: float = Field(ge=0)
    high_revenue: float = Field(ge=0)
    low_revenue: float = Field(ge=0)
    disclaimer: str


class MonthlyRevenue(CamelModel):
    month: str
    low: float = Field(ge=0)
    high: float = Field(ge=0)


class SeasonalBreakdownItem(CamelModel):
    key: str
    label: str
    subtitle: str = ""
    days_booked_min: float = Field(ge=0)
    days_booked_max: float = Field(ge=0)
    days_available: float = Field(ge=0)
    occupancy_min_pct: float = Field(ge=0)
    occupancy_max_pct: float = Field(ge=0)
    adr_min: float = Field(ge=0)
    adr_max: float = Field(ge=0)


class AINarrativePlaceholders(CamelModel):
    summary: str
    insights: str
    optimization_tips: str


class TrustStats(CamelModel):
    homeowner_satisfaction: str
    guest_reviews: str
    higher_revenue: str
    local_team: bool


class TrustSection(CamelModel):
    stats: TrustStats
    pillars: list[str]


class CTAInfo(CamelModel):
    """Call-to-action block. ``ae_slug`` is the owning agent's slug."""

    ae_slug: str
    ae_id: str | None = None
    schedule_call_url: str
    ae_name: str
    ae_title: str
    ae_phone: str
    ae_email: str
    ae_headshot_url: str | None = None

    @field_validator("ae_slug", "ae_name", "ae_title", "ae_phone", "ae_email")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v


class Testimonial(CamelModel):
    quote: str
    name: str


class Benefit(CamelModel):
    title: str
    description: str
    icon: str


class ComparableProperty(CamelModel):
    image: str
    title: str
    location: str
    bedrooms: int
    bathrooms: str
    property_url: str


class ProjectionRecord(CamelModel):
    """Fully normalized projection record, as stored and served."""

    meta: ProjectionMeta
    property: PropertyInfo
    projections: ProjectionEstimates
    monthly_revenue: list[MonthlyRevenue] = Field(
        min_length=MONTHS_PER_YEAR, max_length=MONTHS_PER_YEAR
    )
    seasonal_breakdown: list[SeasonalBreakdownItem] = Field(default_factory=list)
    ai_narrative_placeholders: AINarrativePlaceholders
    trust: TrustSection
    cta: CTAInfo
    testimonials: list[Testimonial]
    benefits: list[Benefit]
    comparable_properties: list[ComparableProperty]

    @property
    def slug(self) -> str:
        return self.meta.slug

    @property
    def owner_slug(self) -> str:
        return self.cta.ae_slug


@dataclass(slots=True)
class StoredProjection:
    """Envelope returned by the slug-keyed store."""

    slug: str
    owner_slug: str
    data: ProjectionRecord
    created_at: datetime
    updated_at: datetime | None


# ============================================================================
# Analytics events
# ============================================================================


class EventName(str, Enum):
    """Event names emitted by this service and its landing page.

    The event log accepts any non-empty name; these are the ones we produce.
    """

    PAGE_VIEW = "projection_page_view"
    INTERACTION = "projection_interaction"
    FORM_SUBMIT = "projection_form_submit"
    TIME_ON_PAGE = "projection_time_on_page"
    LINK_CLICK = "projection_link_click"
    PAGE_ERROR = "projection_page_error"


class NewEvent(CamelModel):
    event: str = Field(min_length=1)
    slug: str | None = None
    owner_slug: str | None = None
    lead_id: str | None = None
    campaign: str | None = None
    source: str | None = None
    meta: dict[str, Any] | None = None


class AnalyticsEvent(NewEvent):
    id: int
    created_at: datetime


# ============================================================================
# Projection runs (audit trail)
# ============================================================================


class RunAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"


class NewProjectionRun(CamelModel):
    slug: str
    owner_slug: str
    action: RunAction
    actor_name: str | None = None
    actor_email: str | None = None
    lead_id: str | None = None
    internal_id: str | None = None
    homeowner_name: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    market: str | None = None
    public_url: str | None = None
    preview_url: str | None = None
    sheet_url: str | None = None


class ProjectionRun(NewProjectionRun):
    id: int
    created_at: datetime
