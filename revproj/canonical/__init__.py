"""Canonicalization of inbound projection payloads."""

from revproj.canonical.markets import (
    DEFAULT_MARKET_CODE,
    MarketCatalog,
    MarketDefaults,
    get_market_catalog,
    load_market_catalog,
    parse_market_code,
)
from revproj.canonical.normalizer import normalize_projection
from revproj.canonical.slug import slugify

__all__ = [
    "DEFAULT_MARKET_CODE",
    "MarketCatalog",
    "MarketDefaults",
    "get_market_catalog",
    "load_market_catalog",
    "normalize_projection",
    "parse_market_code",
    "slugify",
]
