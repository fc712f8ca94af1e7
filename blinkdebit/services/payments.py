from __future__ import annotations

import logging
from typing import Optional

from ..core.data_models import Payment, PaymentRequest, PaymentResponse
from ..core.exceptions import BlinkServiceError
from ..core.http_client import IDEMPOTENCY_KEY
from .base import PAYMENTS_V1, ApiClientBase, ResourceId, require, require_id

logger = logging.getLogger(__name__)

PAYMENTS_PATH = f"{PAYMENTS_V1}/payments"


class PaymentsApiClient(ApiClientBase):
    async def create_payment(
        self,
        request: PaymentRequest,
        request_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> PaymentResponse:
        """Execute a payment against an authorised consent.

        For enduring consents the request also carries the PCR and amount.
        """
        require(request, "Payment request")
        require_id(request.consent_id, "Consent ID")
        logger.debug("Creating payment for consent %s with request-id: %s", request.consent_id, request_id)
        response = await self._http.post(
            PAYMENTS_PATH,
            request,
            PaymentResponse,
            request_id=request_id,
            extra_headers={IDEMPOTENCY_KEY: idempotency_key},
        )
        if response is None:
            raise BlinkServiceError("Creating the payment returned no payment ID")
        logger.info("Payment %s created for consent %s", response.payment_id, request.consent_id)
        return response

    async def get_payment(self, payment_id: ResourceId, request_id: Optional[str] = None) -> Payment:
        payment_id = require_id(payment_id, "Payment ID")
        payment = await self._http.get(f"{PAYMENTS_PATH}/{payment_id}", Payment, request_id=request_id)
        if payment is None:
            raise BlinkServiceError(f"Payment {payment_id} returned an empty body")
        return payment
