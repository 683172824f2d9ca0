"""Email notification service for revproj.

Sends agent notifications via SMTP using Jinja2 templates. When SMTP is not
configured the message is logged instead of sent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Any

import aiosmtplib
from jinja2 import Environment, FileSystemLoader, select_autoescape

from revproj.config import EmailConfig
from revproj.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"


def format_currency(amount: float | int | None) -> str:
    """Whole US dollars with thousands separators, e.g. ``$92,500``."""
    return f"${round(amount or 0):,}"


@dataclass(slots=True)
class FormSubmission:
    """Homeowner contact details plus the projection they were looking at."""

    homeowner_name: str
    homeowner_email: str
    property_address: str
    property_city: str
    projection_low: float
    projection_expected: float
    projection_high: float
    projection_page_url: str
    homeowner_phone: str | None = None
    message: str | None = None
    property_market: str | None = None
    lead_id: str | None = None


@dataclass(slots=True)
class OutgoingEmail:
    to: str
    subject: str
    html: str
    text: str
    reply_to: str | None = None


class EmailService:
    """Service for sending emails with template support."""

    def __init__(self, config: EmailConfig, template_dir: Path = TEMPLATE_DIR):
        self.config = config
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.jinja_env.filters["currency"] = format_currency

    @property
    def configured(self) -> bool:
        return self.config.configured

    def render_template(self, template_name: str, context: dict[str, Any]) -> str:
        """Render an email template with the given context.

        Args:
            template_name: Name of the template file (e.g., "form_submission.html")
            context: Variables to pass to the template

        Returns:
            Rendered string
        """
        template = self.jinja_env.get_template(template_name)
        return template.render(**context)

    def build_form_submission_email(self, submission: FormSubmission, to: str) -> OutgoingEmail:
        """Build the agent notification for a landing-page form submission."""
        context = {"submission": submission}
        return OutgoingEmail(
            to=to,
            subject=f"New Projection Page Form Submission - {submission.property_address}",
            html=self.render_template("form_submission.html", context),
            text=self.render_template("form_submission.txt", context).strip(),
            reply_to=submission.homeowner_email,
        )

    async def send(self, email: OutgoingEmail) -> bool:
        """Send an email.

        Returns:
            True if sent, False if SMTP is not configured (the email is logged)

        Raises:
            EmailDeliveryError: If the SMTP server rejects the message
        """
        if not self.configured:
            logger.warning(
                "SMTP not configured, email not sent. Would send to %s: %s",
                email.to,
                email.subject,
            )
            logger.info("Email body preview: %s", email.text[:200])
            return False

        sender = self.config.from_email or self.config.smtp_user
        msg = MIMEMultipart("alternative")
        msg["Subject"] = email.subject
        msg["From"] = f'"{self.config.from_name}" <{sender}>'
        msg["To"] = email.to
        msg["Reply-To"] = email.reply_to or email.to
        msg.attach(MIMEText(email.text, "plain"))
        msg.attach(MIMEText(email.html, "html"))

        try:
            await aiosmtplib.send(
                msg,
                hostname=self.config.smtp_host,
                port=self.config.smtp_port,
                username=self.config.smtp_user,
                password=self.config.smtp_password,
                use_tls=self.config.smtp_port == 465,
            )
        except aiosmtplib.SMTPException as exc:
            raise EmailDeliveryError(f"Failed to send email to {email.to}: {exc}") from exc

        logger.info("Email sent to %s: %s", email.to, email.subject)
        return True
