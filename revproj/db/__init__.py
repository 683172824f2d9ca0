"""Database layer for revproj with async SQLAlchemy."""

from revproj.db.connection import get_session, init_db
from revproj.db.models import (
    AnalyticsEventModel,
    Base,
    ProjectionModel,
    ProjectionRunModel,
)

__all__ = [
    "Base",
    "ProjectionModel",
    "AnalyticsEventModel",
    "ProjectionRunModel",
    "get_session",
    "init_db",
]
