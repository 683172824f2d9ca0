"""Salesforce REST API client.

Updates a lead's projection link and opens follow-up tasks for the lead's
owner. Authentication is either a static access token or an OAuth2
client-credentials token that is cached for a fixed TTL and fetched again
lazily after it expires.

Every method is a no-op (logged) when Salesforce is not configured.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field

from revproj.config import SalesforceConfig
from revproj.exceptions import SalesforceError

logger = structlog.get_logger(__name__)

PROJECTION_URL_FIELD = "Projection_URL__c"
TASK_STATUS_NOT_STARTED = "Not Started"
CLICK_TASK_SUBJECT = "Projection link clicked – follow up"
FORM_TASK_SUBJECT = "Projection landing page form submitted"


class LeadInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="Id")
    owner_id: str = Field(alias="OwnerId")
    name: str | None = Field(default=None, alias="Name")
    email: str | None = Field(default=None, alias="Email")


class SalesforceClient:
    """Client for the Salesforce REST API."""

    def __init__(
        self,
        config: SalesforceConfig,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.client = http_client or httpx.AsyncClient(timeout=15.0)
        self._clock = clock
        self._token: str | None = None
        self._token_expires_at = 0.0
        self._token_lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return self.config.configured

    @property
    def base_url(self) -> str:
        instance = (self.config.instance_url or "").rstrip("/")
        return f"{instance}/services/data/{self.config.api_version}"

    async def aclose(self) -> None:
        await self.client.aclose()

    async def access_token(self) -> str:
        """Return a usable bearer token, fetching a new one if the cached one expired."""
        if self.config.access_token:
            return self.config.access_token

        async with self._token_lock:
            if self._token and self._clock() < self._token_expires_at:
                return self._token

            url = f"{(self.config.instance_url or '').rstrip('/')}/services/oauth2/token"
            try:
                response = await self.client.post(
                    url,
                    data={
                        "grant_type": "client_credentials",
                        "client_id": self.config.client_id,
                        "client_secret": self.config.client_secret,
                    },
                )
            except httpx.RequestError as exc:
                raise SalesforceError(f"Salesforce token request failed: {exc}") from exc

            if response.status_code != 200:
                raise SalesforceError(
                    f"Salesforce token request rejected: {response.text}",
                    status_code=response.status_code,
                )

            self._token = response.json()["access_token"]
            self._token_expires_at = self._clock() + self.config.token_ttl_seconds
            logger.info("salesforce_token_refreshed", ttl_seconds=self.config.token_ttl_seconds)
            return self._token

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        token = await self.access_token()
        headers = {"Authorization": f"Bearer {token}"}
        try:
            response = await self.client.request(
                method, f"{self.base_url}{path}", headers=headers, **kwargs
            )
        except httpx.RequestError as exc:
            raise SalesforceError(f"Salesforce request failed: {exc}") from exc

        if not response.is_success:
            raise SalesforceError(
                f"Salesforce {method} {path} failed: {response.text}",
                status_code=response.status_code,
            )
        return response

    async def update_lead_projection_url(self, lead_id: str, tracking_url: str) -> bool:
        """Write the tracked projection link onto the lead.

        Returns:
            True if updated, False if Salesforce is not configured
        """
        if not self.configured:
            logger.info("salesforce_skipped", operation="update_lead", lead_id=lead_id)
            return False

        await self._request(
            "PATCH",
            f"/sobjects/Lead/{lead_id}",
            json={PROJECTION_URL_FIELD: tracking_url},
        )
        logger.info("salesforce_lead_updated", lead_id=lead_id)
        return True

    async def get_lead(self, lead_id: str) -> LeadInfo | None:
        if not self.configured:
            logger.info("salesforce_skipped", operation="get_lead", lead_id=lead_id)
            return None

        response = await self._request(
            "GET",
            f"/sobjects/Lead/{lead_id}",
            params={"fields": "Id,OwnerId,Name,Email"},
        )
        return LeadInfo.model_validate(response.json())

    async def create_task(
        self,
        lead_id: str,
        owner_id: str,
        subject: str,
        description: str,
    ) -> str | None:
        """Create an open task on the lead, due today.

        Returns:
            The new task id, or None if Salesforce is not configured
        """
        if not self.configured:
            logger.info("salesforce_skipped", operation="create_task", lead_id=lead_id)
            return None

        payload = {
            "WhoId": lead_id,
            "Subject": subject,
            "Description": description,
            "ActivityDate": datetime.now(timezone.utc).date().isoformat(),
            "Status": TASK_STATUS_NOT_STARTED,
            "OwnerId": owner_id,
        }
        response = await self._request("POST", "/sobjects/Task", json=payload)
        task_id = response.json().get("id")
        logger.info("salesforce_task_created", task_id=task_id, lead_id=lead_id, subject=subject)
        return task_id

    async def _create_owner_task(self, lead_id: str, subject: str, description: str) -> str | None:
        lead = await self.get_lead(lead_id)
        if lead is None:
            return None
        return await self.create_task(lead_id, lead.owner_id, subject, description)

    async def create_click_tracking_task(self, lead_id: str, slug: str) -> str | None:
        return await self._create_owner_task(
            lead_id,
            CLICK_TASK_SUBJECT,
            f"Lead clicked projection link for slug {slug}.",
        )

    async def create_form_submission_task(
        self,
        lead_id: str,
        slug: str,
        message: str | None = None,
    ) -> str | None:
        description = f"Homeowner submitted the projection page form for slug {slug}."
        if message:
            description = f"{description} Message: {message}"
        return await self._create_owner_task(lead_id, FORM_TASK_SUBJECT, description)
