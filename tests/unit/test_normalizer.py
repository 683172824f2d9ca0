"""Tests for revproj.canonical.normalizer.

Covers field precedence, market bundle substitution and error reporting.
"""

from __future__ import annotations

import copy

import pytest

from revproj.canonical.normalizer import deep_merge, extract_sheet_url, normalize_projection
from revproj.exceptions import ProjectionValidationError
from revproj.models import ProjectionRecord

SLUG = "456-beachside-dr-seacrest-beach-fl-32461"


def _errors(payload) -> list[str]:
    with pytest.raises(ProjectionValidationError) as exc_info:
        normalize_projection(payload)
    return exc_info.value.fields


class TestCanonicalShape:
    def test_normalizes_nested_payload(self, raw_payload):
        record = normalize_projection(raw_payload)

        assert isinstance(record, ProjectionRecord)
        assert record.slug == SLUG
        assert record.owner_slug == "jordan-blake"
        assert record.meta.lead_id == "00Q5f000001AbCdEAF"
        assert record.property.market_code == "30A"
        assert record.property.market == "30A - Florida"
        assert record.projections.expected_revenue == 92500
        assert len(record.monthly_revenue) == 12

    def test_is_idempotent(self, raw_payload):
        record = normalize_projection(raw_payload)

        assert normalize_projection(record.to_json_dict()) == record

    def test_does_not_mutate_payload(self, raw_payload):
        before = copy.deepcopy(raw_payload)

        normalize_projection(raw_payload)

        assert raw_payload == before

    def test_flat_payload(self, raw_payload):
        """Property and revenue fields may sit at the top level."""
        flat = {
            "leadId": "L-1",
            "homeownerFirstName": "Dana",
            "ownerName": "Dana Whitfield",
            "address": "12 Old Mill Rd, Big Canoe, GA",
            "bedrooms": 3,
            "bathrooms": 2,
            "lvrId": "LVR-BC-10293",
            "expectedAnnualRevenue": 50000,
            "highAnnualRevenue": 61000,
            "lowAnnualRevenue": 42000,
            "monthlyRevenue": raw_payload["monthlyRevenue"],
            "cta": raw_payload["cta"],
        }

        record = normalize_projection(flat)

        assert record.slug == "12-old-mill-rd-big-canoe-ga"
        assert record.meta.homeowner_full_name == "Dana Whitfield"
        assert record.property.internal_id == "LVR-BC-10293"
        assert record.property.market_code == "BC"
        assert record.projections.expected_revenue == 50000
        assert record.projections.low_revenue == 42000


class TestSlugAndMeta:
    def test_explicit_slug_wins_and_is_slugified(self, raw_payload):
        raw_payload["meta"]["slug"] = "Beach House #1"

        assert normalize_projection(raw_payload).slug == "beach-house-1"

    def test_top_level_slug(self, raw_payload):
        raw_payload["slug"] = "custom-page"

        assert normalize_projection(raw_payload).slug == "custom-page"

    def test_lead_id_from_lid(self, raw_payload):
        del raw_payload["meta"]["leadId"]
        raw_payload["lid"] = "00Q-from-lid"

        assert normalize_projection(raw_payload).meta.lead_id == "00Q-from-lid"

    def test_numeric_lead_id_is_text(self, raw_payload):
        raw_payload["meta"]["leadId"] = 12345

        assert normalize_projection(raw_payload).meta.lead_id == "12345"

    def test_blank_string_counts_as_absent(self, raw_payload):
        raw_payload["meta"]["homeownerFirstName"] = "   "

        assert "meta.homeownerFirstName" in _errors(raw_payload)


class TestMarket:
    def test_market_from_internal_id(self, raw_payload):
        raw_payload["property"]["internalId"] = "LVR-BC-10293"

        record = normalize_projection(raw_payload)

        assert record.property.market_code == "BC"
        assert record.property.market == "Big Canoe - Georgia"
        assert record.cta.schedule_call_url == "https://calendly.com/localvr-big-canoe"
        assert record.testimonials[0].name == "Homeowner, Big Canoe"

    @pytest.mark.parametrize("internal_id", ["", "garbage", None])
    def test_missing_or_malformed_internal_id_uses_default(self, raw_payload, internal_id):
        raw_payload["property"]["internalId"] = internal_id

        assert normalize_projection(raw_payload).property.market_code == "30A"

    def test_unknown_market_keeps_code_with_default_bundle(self, raw_payload):
        raw_payload["property"]["internalId"] = "LVR-ZZ-1"

        record = normalize_projection(raw_payload)

        assert record.property.market_code == "ZZ"
        assert record.property.market == "30A - Florida"

    def test_explicit_market_name_wins(self, raw_payload):
        raw_payload["property"]["market"] = "Santa Rosa Beach"

        assert normalize_projection(raw_payload).property.market == "Santa Rosa Beach"


class TestRevenue:
    def test_annual_suffix_variant(self, raw_payload):
        raw_payload["projections"] = {"expectedAnnualRevenue": 50000}

        projections = normalize_projection(raw_payload).projections

        assert projections.expected_revenue == 50000
        assert projections.high_revenue == 0
        assert projections.low_revenue == 0

    def test_short_name_wins_over_annual(self, raw_payload):
        raw_payload["projections"] = {"expectedRevenue": 1, "expectedAnnualRevenue": 2}

        assert normalize_projection(raw_payload).projections.expected_revenue == 1

    def test_nested_wins_over_flat(self, raw_payload):
        raw_payload["expectedRevenue"] = 1

        assert normalize_projection(raw_payload).projections.expected_revenue == 92500

    def test_missing_revenue_defaults_to_zero(self, raw_payload):
        del raw_payload["projections"]

        projections = normalize_projection(raw_payload).projections

        assert (projections.low_revenue, projections.expected_revenue, projections.high_revenue) == (0, 0, 0)

    def test_order_is_not_enforced(self, raw_payload):
        raw_payload["projections"] = {"lowRevenue": 200, "expectedRevenue": 100, "highRevenue": 50}

        assert normalize_projection(raw_payload).projections.low_revenue == 200

    def test_negative_revenue_rejected(self, raw_payload):
        raw_payload["projections"]["highRevenue"] = -5

        assert _errors(raw_payload) == ["projections.highRevenue"]

    def test_disclaimer_from_bundle(self, raw_payload):
        disclaimer = normalize_projection(raw_payload).projections.disclaimer

        assert disclaimer.startswith("These projections are based on historical performance")

    def test_disclaimer_from_payload(self, raw_payload):
        raw_payload["disclaimer"] = "Not a guarantee."

        assert normalize_projection(raw_payload).projections.disclaimer == "Not a guarantee."


class TestSeasonality:
    def test_seasonality_seasons_variant(self, raw_payload):
        seasons = raw_payload.pop("seasonalBreakdown")
        raw_payload["seasonality"] = {"seasons": seasons}

        record = normalize_projection(raw_payload)

        assert [s.key for s in record.seasonal_breakdown] == ["peak"]

    def test_direct_breakdown_wins(self, raw_payload):
        raw_payload["seasonality"] = {"seasons": []}

        assert len(normalize_projection(raw_payload).seasonal_breakdown) == 1

    def test_absent_is_empty(self, raw_payload):
        del raw_payload["seasonalBreakdown"]

        assert normalize_projection(raw_payload).seasonal_breakdown == []


class TestCTA:
    def test_identity_fields_come_from_payload(self, raw_payload):
        cta = normalize_projection(raw_payload).cta

        assert cta.ae_name == "Jordan Blake"
        assert cta.ae_email == "jordan@golocalvr.com"
        assert cta.ae_headshot_url is None

    @pytest.mark.parametrize(
        "placement",
        [
            lambda p, url: p["cta"].__setitem__("scheduleCallUrl", url),
            lambda p, url: p["cta"].__setitem__("calendlyUrl", url),
            lambda p, url: p.__setitem__("scheduleCallUrl", url),
            lambda p, url: p.__setitem__("calendlyUrl", url),
        ],
    )
    def test_scheduling_url_variants(self, raw_payload, placement):
        placement(raw_payload, "https://calendly.com/jordan")

        assert normalize_projection(raw_payload).cta.schedule_call_url == "https://calendly.com/jordan"

    def test_nested_scheduling_url_wins(self, raw_payload):
        raw_payload["cta"]["calendlyUrl"] = "https://calendly.com/nested"
        raw_payload["scheduleCallUrl"] = "https://calendly.com/top"

        assert normalize_projection(raw_payload).cta.schedule_call_url == "https://calendly.com/nested"

    def test_scheduling_url_falls_back_to_bundle(self, raw_payload):
        assert normalize_projection(raw_payload).cta.schedule_call_url == "https://calendly.com/localvr-30a"

    def test_owner_slug_precedence(self, raw_payload):
        raw_payload["cta"]["aeSlug"] = "cta-slug"
        assert normalize_projection(raw_payload).owner_slug == "cta-slug"

        raw_payload["aeSlug"] = "Top Level AE"
        assert normalize_projection(raw_payload).owner_slug == "top-level-ae"

        raw_payload["ownerSlug"] = "casey-morgan"
        assert normalize_projection(raw_payload).owner_slug == "casey-morgan"

    def test_missing_agent_reports_fields(self, raw_payload):
        raw_payload["cta"] = {"aePhone": "850-555-0142"}

        fields = _errors(raw_payload)

        assert {"cta.aeSlug", "cta.aeName", "cta.aeTitle", "cta.aeEmail"} <= set(fields)


class TestBundleSections:
    def test_absent_sections_come_from_bundle(self, raw_payload):
        record = normalize_projection(raw_payload)

        assert record.trust.stats.homeowner_satisfaction == "98%"
        assert len(record.testimonials) == 3
        assert len(record.benefits) == 3
        assert record.comparable_properties[0].title == "Grande Pointe Retreat"
        assert record.ai_narrative_placeholders.summary

    def test_provided_sections_are_used_literally(self, raw_payload):
        raw_payload["testimonials"] = []
        raw_payload["benefits"] = [{"title": "Custom", "description": "d", "icon": "star"}]

        record = normalize_projection(raw_payload)

        assert record.testimonials == []
        assert [b.title for b in record.benefits] == ["Custom"]

    def test_provided_section_is_not_merged(self, raw_payload):
        raw_payload["trust"] = {"stats": {"homeownerSatisfaction": "99%"}}

        fields = _errors(raw_payload)

        assert "trust.pillars" in fields
        assert "trust.stats.guestReviews" in fields


class TestErrors:
    def test_missing_fields_are_all_reported(self, raw_payload):
        del raw_payload["monthlyRevenue"]
        del raw_payload["property"]["bedrooms"]
        del raw_payload["meta"]["homeownerFullName"]

        fields = _errors(raw_payload)

        assert set(fields) == {"monthlyRevenue", "property.bedrooms", "meta.homeownerFullName"}

    def test_wrong_month_count(self, raw_payload):
        raw_payload["monthlyRevenue"] = raw_payload["monthlyRevenue"][:11]

        assert _errors(raw_payload) == ["monthlyRevenue"]

    def test_missing_address_means_no_slug(self, raw_payload):
        del raw_payload["property"]["address"]

        fields = _errors(raw_payload)

        assert "meta.slug" in fields
        assert "property.address" in fields

    def test_wrong_container_type(self, raw_payload):
        raw_payload["property"] = "456 Beachside Dr"

        assert _errors(raw_payload) == ["property"]

    @pytest.mark.parametrize("payload", [[], "text", None, 42])
    def test_non_object_body(self, payload):
        with pytest.raises(ProjectionValidationError) as exc_info:
            normalize_projection(payload)

        assert exc_info.value.to_list() == [{"field": "body", "message": "Expected a JSON object"}]


class TestHelpers:
    def test_deep_merge(self):
        base = {"a": 1, "nested": {"x": 1, "y": 2}}

        merged = deep_merge(base, {"nested": {"y": 3}, "b": 2})

        assert merged == {"a": 1, "b": 2, "nested": {"x": 1, "y": 3}}
        assert base == {"a": 1, "nested": {"x": 1, "y": 2}}

    def test_extract_sheet_url(self):
        assert extract_sheet_url({"gsheetUrl": "https://docs.google.com/x"}) == "https://docs.google.com/x"
        assert extract_sheet_url({"sheetUrl": ""}) is None
        assert extract_sheet_url([]) is None
