"""Address to URL slug conversion."""

from __future__ import annotations

import re
import unicodedata

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_SEPARATORS = re.compile(r"[\s-]+")


def slugify(text: str | None) -> str:
    """Derive a URL-safe slug from a human-readable string.

    Lowercases, folds accents to ASCII, strips everything except letters,
    digits, whitespace and hyphens, then collapses runs of whitespace and
    hyphens into a single hyphen.

    Examples:
        >>> slugify("456 Beachside Dr, Seacrest Beach, FL 32461")
        '456-beachside-dr-seacrest-beach-fl-32461'
        >>> slugify("  Café  Row #2 ")
        'cafe-row-2'

    Returns:
        The slug, or an empty string when nothing usable remains.
    """
    if not text:
        return ""
    s = unicodedata.normalize("NFKD", text)
    s = s.encode("ascii", "ignore").decode("ascii").lower()
    s = _NON_SLUG_CHARS.sub("", s)
    s = _SEPARATORS.sub("-", s)
    return s.strip("-")
