"""Landing page contact form route."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends

from revproj.config import get_config
from revproj.core.tasks import run_best_effort
from revproj.db.connection import get_session
from revproj.db.events import append_event
from revproj.integrations.salesforce import SalesforceClient
from revproj.notifications.email import EmailService
from revproj.notifications.followups import (
    notify_form_submission,
    record_form_submission_followup,
)
from revproj.web.dependencies import get_email_service, get_salesforce_client
from revproj.web.models import ContactForm, ContactResponse

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Contact"])


@router.post("/contact", response_model=ContactResponse)
async def submit_contact(
    form: ContactForm,
    background_tasks: BackgroundTasks,
    email_service: EmailService = Depends(get_email_service),
    salesforce: SalesforceClient = Depends(get_salesforce_client),
):
    """Record a form submission, then notify the agent and CRM best-effort.

    Succeeds as soon as the event is committed.
    """
    async with get_session() as session:
        logged = await append_event(session, form.to_new_event())

    logger.info(
        "contact_form_submitted",
        event_id=logged.id,
        slug=form.slug,
        lead_id=form.lead_id,
    )

    config = get_config()
    timeout = config.notifications.timeout_seconds
    background_tasks.add_task(
        run_best_effort,
        "notify_form_submission",
        notify_form_submission,
        email_service,
        form.to_contact_details(),
        config.site,
        timeout=timeout,
    )
    if form.lead_id and form.slug:
        background_tasks.add_task(
            run_best_effort,
            "record_form_submission_followup",
            record_form_submission_followup,
            salesforce,
            form.lead_id,
            form.slug,
            form.message,
            timeout=timeout,
        )
    return ContactResponse()
