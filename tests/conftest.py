"""Pytest configuration and fixtures for revproj tests.

Every test runs against a throwaway SQLite file with outbound integrations
unconfigured.
"""

from __future__ import annotations

from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from revproj import config as config_module
from revproj.canonical import markets as markets_module
from revproj.db import connection as connection_module
from revproj.db.models import Base
from revproj.web import dependencies as dependencies_module

ISOLATED_ENV_VARS = (
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASSWORD",
    "SMTP_PASS",
    "FROM_EMAIL",
    "NOTIFY_FALLBACK_EMAIL",
    "SALESFORCE_INSTANCE_URL",
    "SALESFORCE_CLIENT_ID",
    "SALESFORCE_CLIENT_SECRET",
    "SALESFORCE_ACCESS_TOKEN",
    "MARKETS_CONFIG_PATH",
    "FALLBACK_REDIRECT_URL",
    "TRACKING_SOURCE",
    "JSON_LOGS",
    "LOG_LEVEL",
)

BASE_URL = "https://projections.example.com"
ADDRESS = "456 Beachside Dr, Seacrest Beach, FL 32461"
SLUG = "456-beachside-dr-seacrest-beach-fl-32461"
LEAD_ID = "00Q5f000001AbCdEAF"
OWNER_SLUG = "jordan-blake"

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


@pytest.fixture(autouse=True)
def app_env(monkeypatch, tmp_path):
    """Isolated environment and fresh singletons for each test."""
    for var in ISOLATED_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'revproj.db'}")
    monkeypatch.setenv("METRICS_ENABLED", "false")
    monkeypatch.setenv("PUBLIC_BASE_URL", BASE_URL)

    monkeypatch.setattr(config_module, "_config", None)
    monkeypatch.setattr(markets_module, "_catalog", None)
    monkeypatch.setattr(connection_module, "_engine", None)
    monkeypatch.setattr(connection_module, "_session_factory", None)
    monkeypatch.setattr(dependencies_module, "_email_service", None)
    monkeypatch.setattr(dependencies_module, "_salesforce_client", None)
    yield


def monthly_revenue() -> list[dict[str, Any]]:
    return [
        {"month": month, "low": 3000 + i * 250, "high": 5200 + i * 300}
        for i, month in enumerate(MONTHS)
    ]


@pytest.fixture
def raw_payload() -> dict[str, Any]:
    """Payload shaped the way the spreadsheet exporter sends it."""
    return {
        "meta": {
            "leadId": LEAD_ID,
            "homeownerFirstName": "Dana",
            "homeownerFullName": "Dana Whitfield",
        },
        "property": {
            "internalId": "LVR-30A-RE1281",
            "address": ADDRESS,
            "bedrooms": 4,
            "bathrooms": 3.5,
            "squareFeet": 2400,
            "city": "Seacrest Beach",
            "state": "FL",
            "isLuxe": False,
        },
        "projections": {
            "expectedRevenue": 92500,
            "highRevenue": 110000,
            "lowRevenue": 78000,
        },
        "monthlyRevenue": monthly_revenue(),
        "seasonalBreakdown": [
            {
                "key": "peak",
                "label": "Peak Summer",
                "subtitle": "Jun - Aug",
                "daysBookedMin": 78,
                "daysBookedMax": 85,
                "daysAvailable": 92,
                "occupancyMinPct": 85,
                "occupancyMaxPct": 92,
                "adrMin": 650,
                "adrMax": 780,
            }
        ],
        "cta": {
            "aeName": "Jordan Blake",
            "aeTitle": "Revenue Consultant",
            "aePhone": "850-555-0142",
            "aeEmail": "jordan@golocalvr.com",
        },
        "sheetUrl": "https://docs.google.com/spreadsheets/d/abc123",
    }


@pytest_asyncio.fixture()
async def db_session() -> AsyncSession:
    """Create in-memory database for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    SessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()
