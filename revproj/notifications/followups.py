"""Follow-up work triggered by publishes, link clicks and contact forms.

These coroutines are scheduled after the response with
:func:`revproj.core.tasks.run_best_effort`; any exception they raise is
logged there and never reaches the caller.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from revproj.config import SiteConfig
from revproj.db.connection import get_session
from revproj.db.projections import get_projection_by_slug
from revproj.integrations.salesforce import SalesforceClient
from revproj.notifications.email import EmailService, FormSubmission
from revproj.projections.service import build_public_url

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class ContactDetails:
    name: str
    email: str
    phone: str | None = None
    message: str | None = None
    slug: str | None = None
    ae_email: str | None = None
    lead_id: str | None = None


async def sync_lead_projection_url(
    salesforce: SalesforceClient,
    lead_id: str,
    tracking_url: str,
) -> bool:
    """Point the CRM lead at its tracked projection link."""
    return await salesforce.update_lead_projection_url(lead_id, tracking_url)


async def record_link_click_followup(
    salesforce: SalesforceClient,
    lead_id: str,
    slug: str,
) -> str | None:
    """Open a follow-up task for the lead owner after a tracked click."""
    return await salesforce.create_click_tracking_task(lead_id, slug)


async def record_form_submission_followup(
    salesforce: SalesforceClient,
    lead_id: str,
    slug: str,
    message: str | None = None,
) -> str | None:
    return await salesforce.create_form_submission_task(lead_id, slug, message)


async def notify_form_submission(
    email_service: EmailService,
    contact: ContactDetails,
    site: SiteConfig,
) -> bool:
    """Email the owning agent about a landing-page form submission.

    The recipient is the agent email sent with the form, else the agent on the
    stored record, else the configured fallback address.

    Returns:
        True if an email was sent
    """
    record = None
    if contact.slug:
        async with get_session() as session:
            record = await get_projection_by_slug(session, contact.slug)

    recipient = (
        contact.ae_email
        or (record.cta.ae_email if record else None)
        or email_service.config.fallback_recipient
    )
    if not recipient:
        logger.warning("form_notification_skipped", reason="no_recipient", slug=contact.slug)
        return False

    if record is not None:
        submission = FormSubmission(
            homeowner_name=contact.name,
            homeowner_email=contact.email,
            homeowner_phone=contact.phone,
            message=contact.message,
            property_address=record.property.address,
            property_city=record.property.city,
            property_market=record.property.market or None,
            projection_low=record.projections.low_revenue,
            projection_expected=record.projections.expected_revenue,
            projection_high=record.projections.high_revenue,
            projection_page_url=build_public_url(site.base_url, record.owner_slug, record.slug),
            lead_id=contact.lead_id or record.meta.lead_id,
        )
    else:
        submission = FormSubmission(
            homeowner_name=contact.name,
            homeowner_email=contact.email,
            homeowner_phone=contact.phone,
            message=contact.message,
            property_address=contact.slug or "Unknown property",
            property_city="",
            projection_low=0,
            projection_expected=0,
            projection_high=0,
            projection_page_url=site.base_url,
            lead_id=contact.lead_id,
        )

    email = email_service.build_form_submission_email(submission, to=recipient)
    sent = await email_service.send(email)
    logger.info("form_notification_processed", slug=contact.slug, recipient=recipient, sent=sent)
    return sent
