"""Shared dependencies for revproj web routes.

Dependencies are injected using FastAPI's Depends() system, so tests can
swap them with ``app.dependency_overrides``.

Usage:
    from fastapi import Depends
    from revproj.web.dependencies import get_email_service

    @router.post("/api/contact")
    async def submit(email_service = Depends(get_email_service)):
        ...
"""

from __future__ import annotations

from pathlib import Path

from fastapi.templating import Jinja2Templates

from revproj.config import get_config
from revproj.integrations.salesforce import SalesforceClient
from revproj.notifications.email import EmailService, format_currency

# Global singletons
_templates: Jinja2Templates | None = None
_email_service: EmailService | None = None
_salesforce_client: SalesforceClient | None = None


def get_templates() -> Jinja2Templates:
    """Get Jinja2Templates instance for rendering HTML pages.

    The templates directory is only initialized once.
    """
    global _templates
    if _templates is None:
        _templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
        _templates.env.filters["currency"] = format_currency
    return _templates


def get_email_service() -> EmailService:
    global _email_service
    if _email_service is None:
        _email_service = EmailService(get_config().email)
    return _email_service


def get_salesforce_client() -> SalesforceClient:
    global _salesforce_client
    if _salesforce_client is None:
        _salesforce_client = SalesforceClient(get_config().salesforce)
    return _salesforce_client


async def close_dependencies() -> None:
    """Release outbound clients. Call this on application shutdown."""
    global _email_service, _salesforce_client
    if _salesforce_client is not None:
        await _salesforce_client.aclose()
    _salesforce_client = None
    _email_service = None
