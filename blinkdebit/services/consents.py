from __future__ import annotations

import logging
from typing import Optional

from ..core.data_models import Consent, CreateConsentResponse, EnduringConsentRequest, SingleConsentRequest
from ..core.exceptions import BlinkServiceError
from ..core.http_client import CUSTOMER_IP, CUSTOMER_USER_AGENT, IDEMPOTENCY_KEY
from .base import PAYMENTS_V1, ApiClientBase, ResourceId, require, require_id

logger = logging.getLogger(__name__)

SINGLE_CONSENTS_PATH = f"{PAYMENTS_V1}/single-consents"
ENDURING_CONSENTS_PATH = f"{PAYMENTS_V1}/enduring-consents"


class _ConsentsApiClient(ApiClientBase):
    path: str = ""
    label: str = ""

    async def _create(
        self,
        request,
        request_id: Optional[str],
        customer_ip: Optional[str],
        customer_user_agent: Optional[str],
        idempotency_key: Optional[str],
    ) -> CreateConsentResponse:
        require(request, f"{self.label} request")
        logger.debug("Creating %s with request-id: %s", self.label.lower(), request_id)
        response = await self._http.post(
            self.path,
            request,
            CreateConsentResponse,
            request_id=request_id,
            extra_headers={
                CUSTOMER_IP: customer_ip,
                CUSTOMER_USER_AGENT: customer_user_agent,
                IDEMPOTENCY_KEY: idempotency_key,
            },
        )
        if response is None:
            raise BlinkServiceError(f"Creating the {self.label.lower()} returned no consent ID")
        logger.info("%s %s created", self.label, response.consent_id)
        return response

    async def _get(self, consent_id: ResourceId, request_id: Optional[str]) -> Consent:
        consent_id = require_id(consent_id, "Consent ID")
        consent = await self._http.get(f"{self.path}/{consent_id}", Consent, request_id=request_id)
        if consent is None:
            raise BlinkServiceError(f"{self.label} {consent_id} returned an empty body")
        return consent

    async def _revoke(self, consent_id: ResourceId, request_id: Optional[str]) -> None:
        consent_id = require_id(consent_id, "Consent ID")
        logger.debug("Revoking %s %s with request-id: %s", self.label.lower(), consent_id, request_id)
        await self._http.delete(f"{self.path}/{consent_id}", request_id=request_id)


class SingleConsentsApiClient(_ConsentsApiClient):
    """Single-use payment consents."""

    path = SINGLE_CONSENTS_PATH
    label = "Single consent"

    async def create_single_consent(
        self,
        request: SingleConsentRequest,
        request_id: Optional[str] = None,
        customer_ip: Optional[str] = None,
        customer_user_agent: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> CreateConsentResponse:
        return await self._create(request, request_id, customer_ip, customer_user_agent, idempotency_key)

    async def get_single_consent(self, consent_id: ResourceId, request_id: Optional[str] = None) -> Consent:
        return await self._get(consent_id, request_id)

    async def revoke_single_consent(self, consent_id: ResourceId, request_id: Optional[str] = None) -> None:
        await self._revoke(consent_id, request_id)


class EnduringConsentsApiClient(_ConsentsApiClient):
    """Recurring consents allowing payments up to a limit per period."""

    path = ENDURING_CONSENTS_PATH
    label = "Enduring consent"

    async def create_enduring_consent(
        self,
        request: EnduringConsentRequest,
        request_id: Optional[str] = None,
        customer_ip: Optional[str] = None,
        customer_user_agent: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> CreateConsentResponse:
        return await self._create(request, request_id, customer_ip, customer_user_agent, idempotency_key)

    async def get_enduring_consent(self, consent_id: ResourceId, request_id: Optional[str] = None) -> Consent:
        return await self._get(consent_id, request_id)

    async def revoke_enduring_consent(self, consent_id: ResourceId, request_id: Optional[str] = None) -> None:
        await self._revoke(consent_id, request_id)
