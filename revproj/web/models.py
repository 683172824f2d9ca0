"""Request/response models for the revproj web API.

Usage:
    from revproj.web.models import EventRequest

    @router.post("/api/events")
    async def log_event(request: EventRequest):
        ...
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from revproj.models import EventName, NewEvent
from revproj.notifications.followups import ContactDetails

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class _RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)


# ============================================================================
# Analytics
# ============================================================================


class EventRequest(_RequestModel):
    """Analytics event posted by the landing page.

    Used by: POST /api/events
    """

    event: str = Field(min_length=1)
    slug: str | None = None
    owner_slug: str | None = Field(
        default=None, validation_alias=AliasChoices("ownerSlug", "aeSlug", "owner_slug")
    )
    lead_id: str | None = Field(
        default=None, validation_alias=AliasChoices("leadId", "lid", "lead_id")
    )
    campaign: str | None = None
    source: str | None = Field(default=None, validation_alias=AliasChoices("source", "src"))
    meta: dict[str, Any] | None = None

    @field_validator("event")
    @classmethod
    def validate_event(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    def to_new_event(self) -> NewEvent:
        return NewEvent(
            event=self.event,
            slug=self.slug or None,
            owner_slug=self.owner_slug or None,
            lead_id=self.lead_id or None,
            campaign=self.campaign or None,
            source=self.source or None,
            meta=self.meta,
        )


class ReportErrorRequest(_RequestModel):
    """Landing page failed to load its projection.

    Used by: POST /api/report-error
    """

    slug: str | None = None
    owner_slug: str | None = Field(
        default=None, validation_alias=AliasChoices("ownerSlug", "aeSlug", "owner_slug")
    )
    attempted_url: str | None = Field(
        default=None, validation_alias=AliasChoices("attemptedUrl", "attempted_url")
    )
    user_agent: str | None = Field(
        default=None, validation_alias=AliasChoices("userAgent", "user_agent")
    )
    referer: str | None = None

    def to_new_event(self) -> NewEvent:
        return NewEvent(
            event=EventName.PAGE_ERROR.value,
            slug=self.slug or None,
            owner_slug=self.owner_slug or None,
            meta={
                "attemptedUrl": self.attempted_url,
                "userAgent": self.user_agent,
                "referer": self.referer,
            },
        )


# ============================================================================
# Contact form
# ============================================================================


class ContactForm(_RequestModel):
    """Homeowner contact form on the landing page.

    Used by: POST /api/contact
    """

    name: str = Field(min_length=1)
    email: str
    phone: str | None = None
    message: str | None = None
    slug: str | None = None
    ae_id: str | None = Field(default=None, validation_alias=AliasChoices("aeId", "ae_id"))
    ae_email: str | None = Field(
        default=None, validation_alias=AliasChoices("aeEmail", "ae_email")
    )
    lead_id: str | None = Field(
        default=None, validation_alias=AliasChoices("leadId", "lid", "lead_id")
    )
    campaign: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip()
        if not EMAIL_RE.match(v):
            raise ValueError("value is not a valid email address")
        return v

    def to_new_event(self) -> NewEvent:
        return NewEvent(
            event=EventName.FORM_SUBMIT.value,
            slug=self.slug or None,
            owner_slug=self.ae_id or None,
            lead_id=self.lead_id or None,
            campaign=self.campaign or None,
            meta={"name": self.name, "email": self.email, "phone": self.phone},
        )

    def to_contact_details(self) -> ContactDetails:
        return ContactDetails(
            name=self.name,
            email=self.email,
            phone=self.phone or None,
            message=self.message or None,
            slug=self.slug or None,
            ae_email=self.ae_email or None,
            lead_id=self.lead_id or None,
        )


# ============================================================================
# Responses
# ============================================================================


class EventResponse(BaseModel):
    ok: bool = True
    event_id: int = Field(serialization_alias="eventId")


class ContactResponse(BaseModel):
    ok: bool = True
    message: str = "Form submitted successfully. The account executive will be notified."
