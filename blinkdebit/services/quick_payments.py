from __future__ import annotations

import logging
from typing import Optional

from ..core.data_models import CreateQuickPaymentResponse, QuickPaymentRequest, QuickPaymentResponse
from ..core.exceptions import BlinkServiceError
from ..core.http_client import CUSTOMER_IP, CUSTOMER_USER_AGENT, IDEMPOTENCY_KEY
from .base import PAYMENTS_V1, ApiClientBase, ResourceId, require, require_id

logger = logging.getLogger(__name__)

QUICK_PAYMENTS_PATH = f"{PAYMENTS_V1}/quick-payments"


class QuickPaymentsApiClient(ApiClientBase):
    """Consent plus payment in a single resource."""

    async def create_quick_payment(
        self,
        request: QuickPaymentRequest,
        request_id: Optional[str] = None,
        customer_ip: Optional[str] = None,
        customer_user_agent: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> CreateQuickPaymentResponse:
        require(request, "Quick payment request")
        logger.debug("Creating quick payment with request-id: %s", request_id)
        response = await self._http.post(
            QUICK_PAYMENTS_PATH,
            request,
            CreateQuickPaymentResponse,
            request_id=request_id,
            extra_headers={
                CUSTOMER_IP: customer_ip,
                CUSTOMER_USER_AGENT: customer_user_agent,
                IDEMPOTENCY_KEY: idempotency_key,
            },
        )
        if response is None:
            raise BlinkServiceError("Creating the quick payment returned no quick payment ID")
        logger.info("Quick payment %s created", response.quick_payment_id)
        return response

    async def get_quick_payment(
        self, quick_payment_id: ResourceId, request_id: Optional[str] = None
    ) -> QuickPaymentResponse:
        quick_payment_id = require_id(quick_payment_id, "Quick payment ID")
        logger.debug("Getting quick payment %s with request-id: %s", quick_payment_id, request_id)
        quick_payment = await self._http.get(
            f"{QUICK_PAYMENTS_PATH}/{quick_payment_id}", QuickPaymentResponse, request_id=request_id
        )
        if quick_payment is None:
            raise BlinkServiceError(f"Quick payment {quick_payment_id} returned an empty body")
        return quick_payment

    async def revoke_quick_payment(self, quick_payment_id: ResourceId, request_id: Optional[str] = None) -> None:
        quick_payment_id = require_id(quick_payment_id, "Quick payment ID")
        logger.debug("Revoking quick payment %s with request-id: %s", quick_payment_id, request_id)
        await self._http.delete(f"{QUICK_PAYMENTS_PATH}/{quick_payment_id}", request_id=request_id)
