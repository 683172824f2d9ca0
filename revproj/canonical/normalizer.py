"""Normalize loosely-shaped projection payloads into canonical records.

Producers (a spreadsheet macro, scripts, people) have posted several shapes
over time. Normalization happens in two steps:

1. The payload is validated against :class:`RawProjectionInput`, a permissive
   schema that only checks container types and names every tolerated
   variant explicitly.
2. Each canonical field is resolved from its sources in a fixed order, gaps
   are filled from the market default bundle, and the result is validated as
   a :class:`~revproj.models.ProjectionRecord`.

Either a complete record comes out or :class:`ProjectionValidationError` is
raised with every field-level problem. Nothing here touches storage.

Field precedence (first present wins; ``None`` and blank strings are absent):

=============================  ==============================================  ===================
Canonical field                Sources                                         Fallback
=============================  ==============================================  ===================
meta.slug                      meta.slug, slug, property.address, address      required
meta.leadId                    meta.leadId, leadId, lid                        required
meta.homeownerFirstName        meta.homeownerFirstName, homeownerFirstName     required
meta.homeownerFullName         meta.homeownerFullName, homeownerFullName,      required
                               ownerName
property.address               property.address, address                       required
property.bedrooms/bathrooms    property.*, top-level                           required
property.internalId            property.internalId, internalId, lvrId          ""
property.marketCode            parsed from internalId                          default market
property.market                property.market, market                         bundle display name
projections.<x>Revenue         projections.<x>Revenue,                         0
                               projections.<x>AnnualRevenue,
                               <x>Revenue, <x>AnnualRevenue
projections.disclaimer         projections.disclaimer, disclaimer              bundle disclaimer
seasonalBreakdown              seasonalBreakdown, seasonality.seasons          []
cta                            bundle CTA floor, overridden key by key         per key
cta.scheduleCallUrl            cta.scheduleCallUrl, cta.calendlyUrl,           bundle URL
                               scheduleCallUrl, calendlyUrl
cta.aeSlug (owner slug)        ownerSlug, aeSlug, cta.aeSlug, cta.aeName       required
trust, testimonials,           literal payload value                           whole bundle value
benefits, comparableProperties,
aiNarrativePlaceholders
=============================  ==============================================  ===================
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from revproj.canonical.markets import MarketCatalog, get_market_catalog, parse_market_code
from revproj.canonical.slug import slugify
from revproj.exceptions import FieldError, ProjectionValidationError
from revproj.models import ProjectionRecord

REVENUE_KINDS = ("expected", "high", "low")

# Display sections substituted wholesale from the market bundle when absent.
_BUNDLE_SECTIONS = (
    ("trust", "trust"),
    ("testimonials", "testimonials"),
    ("benefits", "benefits"),
    ("comparable_properties", "comparableProperties"),
    ("ai_narrative_placeholders", "aiNarrativePlaceholders"),
)


class RawProjectionInput(BaseModel):
    """Every payload shape the normalizer accepts.

    Only container types are checked here; values are validated once they
    have been resolved into the canonical shape.
    """

    model_config = ConfigDict(extra="allow")

    meta: dict[str, Any] | None = None
    slug: Any = None
    lead_id: Any = Field(default=None, alias="leadId")
    lid: Any = None
    homeowner_first_name: Any = Field(default=None, alias="homeownerFirstName")
    homeowner_full_name: Any = Field(default=None, alias="homeownerFullName")
    owner_name: Any = Field(default=None, alias="ownerName")

    property: dict[str, Any] | None = None
    address: Any = None
    bedrooms: Any = None
    bathrooms: Any = None
    square_feet: Any = Field(default=None, alias="squareFeet")
    city: Any = None
    state: Any = None
    market: Any = None
    is_luxe: Any = Field(default=None, alias="isLuxe")
    internal_id: Any = Field(default=None, alias="internalId")
    lvr_id: Any = Field(default=None, alias="lvrId")

    projections: dict[str, Any] | None = None
    expected_revenue: Any = Field(default=None, alias="expectedRevenue")
    expected_annual_revenue: Any = Field(default=None, alias="expectedAnnualRevenue")
    high_revenue: Any = Field(default=None, alias="highRevenue")
    high_annual_revenue: Any = Field(default=None, alias="highAnnualRevenue")
    low_revenue: Any = Field(default=None, alias="lowRevenue")
    low_annual_revenue: Any = Field(default=None, alias="lowAnnualRevenue")
    disclaimer: Any = None

    monthly_revenue: list[Any] | None = Field(default=None, alias="monthlyRevenue")
    seasonal_breakdown: list[Any] | None = Field(default=None, alias="seasonalBreakdown")
    seasonality: dict[str, Any] | None = None

    cta: dict[str, Any] | None = None
    schedule_call_url: Any = Field(default=None, alias="scheduleCallUrl")
    calendly_url: Any = Field(default=None, alias="calendlyUrl")
    owner_slug: Any = Field(default=None, alias="ownerSlug")
    ae_slug: Any = Field(default=None, alias="aeSlug")

    trust: Any = None
    testimonials: Any = None
    benefits: Any = None
    comparable_properties: Any = Field(default=None, alias="comparableProperties")
    ai_narrative_placeholders: Any = Field(default=None, alias="aiNarrativePlaceholders")

    sheet_url: Any = Field(default=None, alias="sheetUrl")
    gsheet_url: Any = Field(default=None, alias="gsheetUrl")


def normalize_projection(
    payload: Any,
    catalog: MarketCatalog | None = None,
) -> ProjectionRecord:
    """Turn an inbound payload into a canonical projection record.

    Args:
        payload: Decoded JSON body
        catalog: Market bundles (defaults to the configured catalog)

    Returns:
        The canonical record

    Raises:
        ProjectionValidationError: With one entry per rejected field
    """
    raw = parse_raw_input(payload)
    if catalog is None:
        catalog = get_market_catalog()

    candidate = build_candidate(raw, catalog)
    try:
        return ProjectionRecord.model_validate(candidate)
    except ValidationError as exc:
        raise ProjectionValidationError(_field_errors(exc)) from exc


def parse_raw_input(payload: Any) -> RawProjectionInput:
    """Validate container types of an inbound payload."""
    if not isinstance(payload, Mapping):
        raise ProjectionValidationError(
            [FieldError(field="body", message="Expected a JSON object")]
        )
    try:
        return RawProjectionInput.model_validate(dict(payload))
    except ValidationError as exc:
        raise ProjectionValidationError(_field_errors(exc)) from exc


def build_candidate(raw: RawProjectionInput, catalog: MarketCatalog) -> dict[str, Any]:
    """Resolve every canonical field from the raw input.

    Required values that cannot be resolved are left out so that the
    canonical schema reports them as missing.
    """
    meta = raw.meta or {}
    prop = raw.property or {}
    projections = raw.projections or {}
    cta_in = raw.cta or {}

    internal_id = _first_present(prop.get("internalId"), raw.internal_id, raw.lvr_id)
    internal_id = str(internal_id).strip() if internal_id is not None else ""
    market_code = parse_market_code(internal_id, default=catalog.default_code)
    bundle = catalog.bundle_for(market_code)

    address = _first_present(prop.get("address"), raw.address)

    candidate_meta: dict[str, Any] = {}
    _put(candidate_meta, "slug", resolve_slug(raw))
    _put(candidate_meta, "leadId", _first_present(meta.get("leadId"), raw.lead_id, raw.lid))
    _put(
        candidate_meta,
        "homeownerFirstName",
        _first_present(meta.get("homeownerFirstName"), raw.homeowner_first_name),
    )
    _put(
        candidate_meta,
        "homeownerFullName",
        _first_present(
            meta.get("homeownerFullName"), raw.homeowner_full_name, raw.owner_name
        ),
    )

    candidate_property: dict[str, Any] = {
        "internalId": internal_id,
        "marketCode": market_code,
        "city": _first_present(prop.get("city"), raw.city) or "",
        "state": _first_present(prop.get("state"), raw.state) or "",
        "market": _first_present(prop.get("market"), raw.market) or bundle.display_name,
        "isLuxe": _first_present(prop.get("isLuxe"), raw.is_luxe) or False,
        "squareFeet": _first_present(prop.get("squareFeet"), raw.square_feet),
    }
    _put(candidate_property, "address", address)
    _put(candidate_property, "bedrooms", _first_present(prop.get("bedrooms"), raw.bedrooms))
    _put(candidate_property, "bathrooms", _first_present(prop.get("bathrooms"), raw.bathrooms))

    candidate_projections: dict[str, Any] = {
        f"{kind}Revenue": resolve_revenue(kind, raw) for kind in REVENUE_KINDS
    }
    candidate_projections["disclaimer"] = (
        _first_present(projections.get("disclaimer"), raw.disclaimer)
        or bundle.projection_disclaimer
    )

    candidate: dict[str, Any] = {
        "meta": candidate_meta,
        "property": candidate_property,
        "projections": candidate_projections,
        "seasonalBreakdown": resolve_seasonal_breakdown(raw),
        "cta": resolve_cta(raw, cta_in, bundle.cta_floor()),
    }
    _put(candidate, "monthlyRevenue", raw.monthly_revenue)

    for attr, key in _BUNDLE_SECTIONS:
        value = getattr(raw, attr)
        candidate[key] = value if value is not None else bundle.section(attr)

    return candidate


def resolve_slug(raw: RawProjectionInput) -> str | None:
    """Record slug: explicit slug if given, else derived from the address."""
    meta = raw.meta or {}
    prop = raw.property or {}
    source = _first_present(
        meta.get("slug"), raw.slug, prop.get("address"), raw.address
    )
    if source is None:
        return None
    return slugify(str(source)) or None


def resolve_revenue(kind: str, raw: RawProjectionInput) -> Any:
    """Short names win over "Annual"-suffixed names; nested wins over flat."""
    projections = raw.projections or {}
    value = _first_present(
        projections.get(f"{kind}Revenue"),
        projections.get(f"{kind}AnnualRevenue"),
        getattr(raw, f"{kind}_revenue"),
        getattr(raw, f"{kind}_annual_revenue"),
    )
    return 0 if value is None else value


def resolve_seasonal_breakdown(raw: RawProjectionInput) -> list[Any]:
    if raw.seasonal_breakdown is not None:
        return raw.seasonal_breakdown
    seasons = (raw.seasonality or {}).get("seasons")
    if isinstance(seasons, list):
        return seasons
    return []


def resolve_cta(
    raw: RawProjectionInput,
    cta_in: Mapping[str, Any],
    floor: Mapping[str, Any],
) -> dict[str, Any]:
    """Merge payload CTA fields over the market floor and stamp the owner slug."""
    overrides = {
        key: value
        for key, value in cta_in.items()
        if key != "calendlyUrl" and not _is_blank(value)
    }
    cta = deep_merge(floor, overrides)

    schedule_url = _first_present(
        cta_in.get("scheduleCallUrl"),
        cta_in.get("calendlyUrl"),
        raw.schedule_call_url,
        raw.calendly_url,
    )
    if schedule_url is not None:
        cta["scheduleCallUrl"] = schedule_url

    owner = _first_present(raw.owner_slug, raw.ae_slug, cta_in.get("aeSlug"), cta_in.get("aeName"))
    owner_slug = slugify(str(owner)) if owner is not None else ""
    if owner_slug:
        cta["aeSlug"] = owner_slug
    else:
        cta.pop("aeSlug", None)
    return cta


def extract_sheet_url(payload: Any) -> str | None:
    """Spreadsheet link some producers attach for the run log."""
    if not isinstance(payload, Mapping):
        return None
    value = _first_present(payload.get("sheetUrl"), payload.get("gsheetUrl"))
    return str(value) if value is not None else None


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` onto ``base`` without mutating either."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _first_present(*values: Any) -> Any:
    for value in values:
        if not _is_blank(value):
            return value
    return None


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _put(target: dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        target[key] = value


def _field_errors(exc: ValidationError) -> list[FieldError]:
    errors = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "body"
        errors.append(FieldError(field=loc, message=err["msg"]))
    return errors
