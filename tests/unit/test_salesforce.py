"""Tests for revproj.integrations.salesforce.

HTTP traffic is served by ``httpx.MockTransport``; no network access.
"""

from __future__ import annotations

import json

import httpx
import pytest

from revproj.config import SalesforceConfig
from revproj.exceptions import SalesforceError
from revproj.integrations.salesforce import (
    CLICK_TASK_SUBJECT,
    FORM_TASK_SUBJECT,
    PROJECTION_URL_FIELD,
    SalesforceClient,
)

INSTANCE = "https://localvr.my.salesforce.com"


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class Recorder:
    """Mock transport handler that records requests and replays routes."""

    def __init__(self, routes):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        status, body = self.routes[key]
        return httpx.Response(status, json=body)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


def _client(config: SalesforceConfig, recorder: Recorder, clock=None) -> SalesforceClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    if clock is None:
        return SalesforceClient(config, http_client=http)
    return SalesforceClient(config, http_client=http, clock=clock)


LEAD_PATH = "/services/data/v59.0/sobjects/Lead/00QLEAD"
TASK_PATH = "/services/data/v59.0/sobjects/Task"
TOKEN_PATH = "/services/oauth2/token"


@pytest.fixture
def static_config():
    return SalesforceConfig(instance_url=INSTANCE, access_token="static-token")


@pytest.fixture
def credentials_config():
    return SalesforceConfig(
        instance_url=INSTANCE,
        client_id="client",
        client_secret="secret",
        token_ttl_seconds=60,
    )


class TestUpdateLead:
    @pytest.mark.asyncio
    async def test_patches_projection_url(self, static_config):
        recorder = Recorder({("PATCH", LEAD_PATH): (204, None)})
        client = _client(static_config, recorder)

        updated = await client.update_lead_projection_url("00QLEAD", "https://p.example.com/t?lid=1")

        assert updated is True
        (request,) = recorder.requests
        assert request.headers["Authorization"] == "Bearer static-token"
        assert json.loads(request.content) == {PROJECTION_URL_FIELD: "https://p.example.com/t?lid=1"}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unconfigured_is_noop(self):
        recorder = Recorder({})
        client = _client(SalesforceConfig(), recorder)

        assert await client.update_lead_projection_url("00QLEAD", "url") is False
        assert await client.create_click_tracking_task("00QLEAD", "slug") is None
        assert recorder.requests == []
        await client.aclose()

    @pytest.mark.asyncio
    async def test_error_status_raises(self, static_config):
        recorder = Recorder({("PATCH", LEAD_PATH): (400, [{"errorCode": "INVALID_FIELD"}])})
        client = _client(static_config, recorder)

        with pytest.raises(SalesforceError) as exc_info:
            await client.update_lead_projection_url("00QLEAD", "url")

        assert exc_info.value.status_code == 400
        await client.aclose()


class TestTokenCache:
    @pytest.mark.asyncio
    async def test_token_reused_until_expiry(self, credentials_config):
        recorder = Recorder({
            ("POST", TOKEN_PATH): (200, {"access_token": "fetched-token"}),
            ("PATCH", LEAD_PATH): (204, None),
        })
        clock = FakeClock()
        client = _client(credentials_config, recorder, clock=clock)

        await client.update_lead_projection_url("00QLEAD", "a")
        await client.update_lead_projection_url("00QLEAD", "b")
        assert len(recorder.calls("POST", TOKEN_PATH)) == 1

        clock.now += 61
        await client.update_lead_projection_url("00QLEAD", "c")

        assert len(recorder.calls("POST", TOKEN_PATH)) == 2
        patch = recorder.calls("PATCH", LEAD_PATH)[-1]
        assert patch.headers["Authorization"] == "Bearer fetched-token"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_token_rejected(self, credentials_config):
        recorder = Recorder({("POST", TOKEN_PATH): (400, {"error": "invalid_client"})})
        client = _client(credentials_config, recorder)

        with pytest.raises(SalesforceError):
            await client.access_token()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unauthorized_keeps_cached_token(self, credentials_config):
        """A rejected call raises but the token lives until its TTL ends."""
        recorder = Recorder({
            ("POST", TOKEN_PATH): (200, {"access_token": "fetched-token"}),
            ("PATCH", LEAD_PATH): (401, [{"errorCode": "INVALID_SESSION_ID"}]),
        })
        client = _client(credentials_config, recorder, clock=FakeClock())

        with pytest.raises(SalesforceError):
            await client.update_lead_projection_url("00QLEAD", "a")
        with pytest.raises(SalesforceError):
            await client.update_lead_projection_url("00QLEAD", "a")

        assert len(recorder.calls("POST", TOKEN_PATH)) == 1
        assert len(recorder.calls("PATCH", LEAD_PATH)) == 2
        await client.aclose()


class TestTasks:
    @pytest.fixture
    def recorder(self):
        return Recorder({
            ("GET", LEAD_PATH): (200, {"Id": "00QLEAD", "OwnerId": "005OWNER", "Name": "Dana"}),
            ("POST", TASK_PATH): (201, {"id": "00TTASK", "success": True}),
        })

    @pytest.mark.asyncio
    async def test_click_task_assigned_to_lead_owner(self, static_config, recorder):
        client = _client(static_config, recorder)

        task_id = await client.create_click_tracking_task("00QLEAD", "456-beachside-dr")

        assert task_id == "00TTASK"
        body = json.loads(recorder.calls("POST", TASK_PATH)[0].content)
        assert body["WhoId"] == "00QLEAD"
        assert body["OwnerId"] == "005OWNER"
        assert body["Subject"] == CLICK_TASK_SUBJECT
        assert body["Status"] == "Not Started"
        assert "456-beachside-dr" in body["Description"]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_form_task_includes_message(self, static_config, recorder):
        client = _client(static_config, recorder)

        await client.create_form_submission_task("00QLEAD", "456-beachside-dr", "Call after 5pm")

        body = json.loads(recorder.calls("POST", TASK_PATH)[0].content)
        assert body["Subject"] == FORM_TASK_SUBJECT
        assert body["Description"].endswith("Message: Call after 5pm")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_get_lead(self, static_config, recorder):
        client = _client(static_config, recorder)

        lead = await client.get_lead("00QLEAD")

        assert lead.owner_id == "005OWNER"
        assert recorder.requests[0].url.params["fields"] == "Id,OwnerId,Name,Email"
        await client.aclose()
