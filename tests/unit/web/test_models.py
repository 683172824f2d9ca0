"""Tests for revproj.web.models - request validation and mapping."""

import pytest
from pydantic import ValidationError

from revproj.models import EventName
from revproj.web.models import ContactForm, EventRequest, EventResponse, ReportErrorRequest


class TestEventRequest:
    def test_aliases(self):
        request = EventRequest.model_validate(
            {"event": "projection_page_view", "aeSlug": "jordan-blake", "lid": 42, "src": "email"}
        )

        event = request.to_new_event()

        assert event.owner_slug == "jordan-blake"
        assert event.lead_id == "42"
        assert event.source == "email"

    def test_empty_strings_become_none(self):
        event = EventRequest(event="x", slug="", campaign="").to_new_event()

        assert event.slug is None
        assert event.campaign is None

    def test_blank_event(self):
        with pytest.raises(ValidationError):
            EventRequest(event="  ")


class TestContactForm:
    @pytest.mark.parametrize("email", ["dana@example.com", " dana@mail.example.co.uk "])
    def test_valid_email(self, email):
        assert ContactForm(name="Dana", email=email).email == email.strip()

    @pytest.mark.parametrize("email", ["", "dana", "dana@", "dana@example", "da na@example.com"])
    def test_invalid_email(self, email):
        with pytest.raises(ValidationError):
            ContactForm(name="Dana", email=email)

    def test_to_new_event(self):
        form = ContactForm.model_validate(
            {"name": "Dana", "email": "dana@example.com", "aeId": "jordan-blake", "slug": "s"}
        )

        event = form.to_new_event()

        assert event.event == EventName.FORM_SUBMIT.value
        assert event.owner_slug == "jordan-blake"
        assert event.meta == {"name": "Dana", "email": "dana@example.com", "phone": None}

    def test_to_contact_details(self):
        form = ContactForm.model_validate(
            {"name": "Dana", "email": "dana@example.com", "aeEmail": "a@b.com", "lid": "L1"}
        )

        details = form.to_contact_details()

        assert details.ae_email == "a@b.com"
        assert details.lead_id == "L1"
        assert details.slug is None


def test_report_error_maps_to_page_error():
    event = ReportErrorRequest.model_validate({"slug": "s", "referer": "https://mail.example.com"}).to_new_event()

    assert event.event == "projection_page_error"
    assert event.meta["referer"] == "https://mail.example.com"


def test_event_response_uses_camel_case():
    assert EventResponse(event_id=7).model_dump(by_alias=True) == {"ok": True, "eventId": 7}
