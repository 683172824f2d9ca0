"""Market codes and market-level default content.

Every property carries an internal identifier such as ``LVR-30A-RE1281``.
Its second hyphen-delimited segment is the market code, which selects the
bundle of default display content (CTA floor, trust stats, testimonials,
benefits, comparable properties and narrative copy) used whenever a payload
leaves those sections out.

Bundles live in a YAML file so that onboarding a market does not touch code.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError

from revproj.models import (
    AINarrativePlaceholders,
    Benefit,
    ComparableProperty,
    Testimonial,
    TrustSection,
)

logger = logging.getLogger(__name__)

DEFAULT_MARKET_CODE = "30A"
PACKAGED_MARKETS_PATH = Path(__file__).resolve().parent.parent / "data" / "markets.yaml"

_MARKET_CODE_RE = re.compile(r"^[A-Za-z0-9]+$")


def parse_market_code(internal_id: str | None, default: str = DEFAULT_MARKET_CODE) -> str:
    """Extract the market code from a property's internal identifier.

    Args:
        internal_id: Identifier shaped ``<PREFIX>-<MARKET>-<SUFFIX>``
        default: Code returned when the identifier is absent or malformed

    Returns:
        Upper-cased market code

    Examples:
        >>> parse_market_code("LVR-BC-10293")
        'BC'
        >>> parse_market_code("")
        '30A'
    """
    if not internal_id:
        return default
    parts = internal_id.strip().split("-")
    if len(parts) < 3 or not parts[0] or not parts[2]:
        return default
    code = parts[1].strip()
    if not _MARKET_CODE_RE.match(code):
        return default
    return code.upper()


class MarketCTADefaults(BaseModel):
    """Non-identity CTA fields a market can supply.

    Agent name, title, phone and email always come from the payload.
    """

    schedule_call_url: str
    ae_headshot_url: str | None = None


class MarketDefaults(BaseModel):
    """Default content bundle for one market."""

    code: str
    display_name: str
    projection_disclaimer: str
    cta: MarketCTADefaults
    trust: TrustSection
    testimonials: list[Testimonial]
    benefits: list[Benefit]
    comparable_properties: list[ComparableProperty]
    ai_narrative_placeholders: AINarrativePlaceholders

    def cta_floor(self) -> dict[str, Any]:
        """CTA defaults as camelCase keys, without unset optional fields."""
        floor = {"scheduleCallUrl": self.cta.schedule_call_url}
        if self.cta.ae_headshot_url:
            floor["aeHeadshotUrl"] = self.cta.ae_headshot_url
        return floor

    def section(self, name: str) -> Any:
        """Return a display section as plain camelCase JSON data."""
        value = getattr(self, name)
        if isinstance(value, list):
            return [item.model_dump(mode="json", by_alias=True) for item in value]
        return value.model_dump(mode="json", by_alias=True)


@dataclass
class MarketCatalog:
    """All configured market bundles plus the fallback market."""

    default_code: str
    markets: dict[str, MarketDefaults]

    def __post_init__(self) -> None:
        if self.default_code not in self.markets:
            raise ValueError(
                f"Default market '{self.default_code}' has no bundle "
                f"(configured: {sorted(self.markets)})"
            )

    def bundle_for(self, code: str | None) -> MarketDefaults:
        """Bundle for ``code``, or the default market's bundle if unknown."""
        if code and code.upper() in self.markets:
            return self.markets[code.upper()]
        return self.markets[self.default_code]

    @property
    def codes(self) -> list[str]:
        return sorted(self.markets)


def load_market_catalog(path: Path) -> MarketCatalog:
    """Load and validate market bundles from YAML.

    Expected structure::

        default_market: 30A
        markets:
          30A:
            display_name: ...
            ...

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the YAML is malformed or a bundle is incomplete
    """
    if not path.exists():
        raise FileNotFoundError(f"Market defaults file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Malformed market defaults YAML in {path}: {exc}") from exc

    default_code = str(raw.get("default_market", DEFAULT_MARKET_CODE)).upper()
    markets: dict[str, MarketDefaults] = {}
    for code, bundle in (raw.get("markets") or {}).items():
        code = str(code).upper()
        try:
            markets[code] = MarketDefaults.model_validate({"code": code, **(bundle or {})})
        except ValidationError as exc:
            raise ValueError(f"Invalid market bundle '{code}' in {path}: {exc}") from exc

    logger.info("Loaded %d market bundles from %s", len(markets), path)
    return MarketCatalog(default_code=default_code, markets=markets)


# Singleton instance (lazy-loaded)
_catalog: MarketCatalog | None = None


def get_market_catalog() -> MarketCatalog:
    """Get or load the market catalog.

    Reads ``MARKETS_CONFIG_PATH`` when set, otherwise the bundled defaults.
    """
    global _catalog
    if _catalog is None:
        path = Path(os.getenv("MARKETS_CONFIG_PATH") or PACKAGED_MARKETS_PATH)
        _catalog = load_market_catalog(path)
    return _catalog


def reset_market_catalog() -> None:
    global _catalog
    _catalog = None
