from __future__ import annotations

import logging
from typing import Optional

from ..core.data_models import Refund, RefundRequest, RefundResponse
from ..core.exceptions import BlinkServiceError
from ..core.http_client import IDEMPOTENCY_KEY
from .base import PAYMENTS_V1, ApiClientBase, ResourceId, require, require_id

logger = logging.getLogger(__name__)

REFUNDS_PATH = f"{PAYMENTS_V1}/refunds"


class RefundsApiClient(ApiClientBase):
    async def create_refund(
        self,
        request: RefundRequest,
        request_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> RefundResponse:
        require(request, "Refund request")
        require_id(request.payment_id, "Payment ID")
        logger.debug("Creating %s refund for payment %s", request.type, request.payment_id)
        response = await self._http.post(
            REFUNDS_PATH,
            request,
            RefundResponse,
            request_id=request_id,
            extra_headers={IDEMPOTENCY_KEY: idempotency_key},
        )
        if response is None:
            raise BlinkServiceError("Creating the refund returned no refund ID")
        logger.info("Refund %s created for payment %s", response.refund_id, request.payment_id)
        return response

    async def get_refund(self, refund_id: ResourceId, request_id: Optional[str] = None) -> Refund:
        refund_id = require_id(refund_id, "Refund ID")
        refund = await self._http.get(f"{REFUNDS_PATH}/{refund_id}", Refund, request_id=request_id)
        if refund is None:
            raise BlinkServiceError(f"Refund {refund_id} returned an empty body")
        return refund
