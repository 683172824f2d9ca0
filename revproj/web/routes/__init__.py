"""revproj web route modules.

Each module exports a ``router`` (APIRouter instance) that
:func:`revproj.web.app.create_app` includes. The pages router serves
``/{owner_slug}/{slug}`` and must be included last.
"""

from revproj.web.routes import (
    admin,
    contact,
    events,
    health,
    pages,
    projections,
    tracking,
)

__all__ = [
    "admin",
    "contact",
    "events",
    "health",
    "pages",
    "projections",
    "tracking",
]
