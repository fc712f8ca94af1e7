"""
Blink Debit client: async Python SDK for BlinkPay's payment initiation API.

Usage:
    from blinkdebit import BlinkDebitClient, BlinkDebitConfig

    async with BlinkDebitClient(BlinkDebitConfig.from_env()) as client:
        created = await client.create_quick_payment(request)
        # Send the customer to created.redirect_uri, then wait for them
        quick_payment = await client.await_successful_quick_payment(created.quick_payment_id, 300)
"""
from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from .config import BlinkDebitConfig
from .core.data_models import (
    BankMetadata,
    Consent,
    CreateConsentResponse,
    CreateQuickPaymentResponse,
    EnduringConsentRequest,
    Payment,
    PaymentRequest,
    PaymentResponse,
    QuickPaymentRequest,
    QuickPaymentResponse,
    Refund,
    RefundRequest,
    RefundResponse,
    SingleConsentRequest,
)
from .core.exceptions import BlinkInvalidValueError
from .core.http_client import BlinkHttpClient
from .core.polling import (
    Observer,
    Poller,
    enduring_consent_spec,
    payment_spec,
    quick_payment_spec,
    single_consent_spec,
)
from .core.token_manager import AccessTokenManager, OAuthApiClient
from .services import (
    EnduringConsentsApiClient,
    MetaApiClient,
    PaymentsApiClient,
    QuickPaymentsApiClient,
    RefundsApiClient,
    SingleConsentsApiClient,
)
from .services.base import ResourceId

logger = logging.getLogger(__name__)


class BlinkDebitClient:
    """Facade over every Blink Debit resource plus the await helpers.

    ``observer`` is handed to the default poller; a custom ``poller`` brings
    its own, and passing both is an error.
    """

    def __init__(
        self,
        config: Optional[BlinkDebitConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        poller: Optional[Poller] = None,
        observer: Optional[Observer] = None,
    ):
        if poller is not None and observer is not None:
            raise BlinkInvalidValueError("Pass the observer to the Poller, not alongside a custom poller")
        self.config = config or BlinkDebitConfig.from_env()
        self._client = httpx.AsyncClient(
            base_url=self.config.debit_url,
            timeout=httpx.Timeout(self.config.timeout, connect=min(5.0, self.config.timeout)),
            transport=transport,
        )
        self.oauth_api = OAuthApiClient(self.config, self._client)
        self.token_manager = AccessTokenManager(self.oauth_api)
        self.http = BlinkHttpClient(self.config, self.token_manager, self._client)

        self.single_consents_api = SingleConsentsApiClient(self.http)
        self.enduring_consents_api = EnduringConsentsApiClient(self.http)
        self.quick_payments_api = QuickPaymentsApiClient(self.http)
        self.payments_api = PaymentsApiClient(self.http)
        self.refunds_api = RefundsApiClient(self.http)
        self.meta_api = MetaApiClient(self.http, cache_ttl=self.config.meta_cache_ttl)

        self.poller = poller or Poller(observer=observer)
        logger.info("BlinkDebitClient initialized for %s", self.config.debit_url)

    async def __aenter__(self) -> "BlinkDebitClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Dispose the underlying HTTP client."""
        await self._client.aclose()
        logger.info("BlinkDebitClient closed")

    # --- Metadata ---

    async def get_meta(self, request_id: Optional[str] = None) -> List[BankMetadata]:
        return await self.meta_api.get_meta(request_id)

    # --- Single consents ---

    async def create_single_consent(
        self,
        request: SingleConsentRequest,
        request_id: Optional[str] = None,
        customer_ip: Optional[str] = None,
        customer_user_agent: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> CreateConsentResponse:
        return await self.single_consents_api.create_single_consent(
            request, request_id, customer_ip, customer_user_agent, idempotency_key
        )

    async def get_single_consent(self, consent_id: ResourceId, request_id: Optional[str] = None) -> Consent:
        return await self.single_consents_api.get_single_consent(consent_id, request_id)

    async def revoke_single_consent(self, consent_id: ResourceId, request_id: Optional[str] = None) -> None:
        await self.single_consents_api.revoke_single_consent(consent_id, request_id)

    async def await_authorised_single_consent(self, consent_id: ResourceId, max_wait_seconds: int) -> Consent:
        """Poll every second until the consent is Authorised or Consumed.

        Raises:
            BlinkConsentRejectedError: the consent was rejected or revoked.
            BlinkGatewayTimeoutError: the bank timed out the authorisation.
            BlinkConsentTimeoutError: still pending after ``max_wait_seconds``.
            BlinkAwaitInterruptedError: the waiting task was cancelled.
        """
        spec = single_consent_spec(self.get_single_consent)
        return await self.poller.poll(spec, consent_id, max_wait_seconds)

    # --- Enduring consents ---

    async def create_enduring_consent(
        self,
        request: EnduringConsentRequest,
        request_id: Optional[str] = None,
        customer_ip: Optional[str] = None,
        customer_user_agent: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> CreateConsentResponse:
        return await self.enduring_consents_api.create_enduring_consent(
            request, request_id, customer_ip, customer_user_agent, idempotency_key
        )

    async def get_enduring_consent(self, consent_id: ResourceId, request_id: Optional[str] = None) -> Consent:
        return await self.enduring_consents_api.get_enduring_consent(consent_id, request_id)

    async def revoke_enduring_consent(self, consent_id: ResourceId, request_id: Optional[str] = None) -> None:
        await self.enduring_consents_api.revoke_enduring_consent(consent_id, request_id)

    async def await_authorised_enduring_consent(self, consent_id: ResourceId, max_wait_seconds: int) -> Consent:
        """Like :meth:`await_authorised_single_consent`, but revokes the consent
        (best effort) before raising the timeout."""
        spec = enduring_consent_spec(self.get_enduring_consent, self.revoke_enduring_consent)
        return await self.poller.poll(spec, consent_id, max_wait_seconds)

    # --- Quick payments ---

    async def create_quick_payment(
        self,
        request: QuickPaymentRequest,
        request_id: Optional[str] = None,
        customer_ip: Optional[str] = None,
        customer_user_agent: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> CreateQuickPaymentResponse:
        return await self.quick_payments_api.create_quick_payment(
            request, request_id, customer_ip, customer_user_agent, idempotency_key
        )

    async def get_quick_payment(
        self, quick_payment_id: ResourceId, request_id: Optional[str] = None
    ) -> QuickPaymentResponse:
        return await self.quick_payments_api.get_quick_payment(quick_payment_id, request_id)

    async def revoke_quick_payment(self, quick_payment_id: ResourceId, request_id: Optional[str] = None) -> None:
        await self.quick_payments_api.revoke_quick_payment(quick_payment_id, request_id)

    async def await_successful_quick_payment(
        self, quick_payment_id: ResourceId, max_wait_seconds: int
    ) -> QuickPaymentResponse:
        """Poll the quick payment's consent until Authorised or Consumed.

        On timeout the quick payment is revoked (best effort) and
        BlinkConsentTimeoutError is raised.
        """
        spec = quick_payment_spec(self.get_quick_payment, self.revoke_quick_payment)
        return await self.poller.poll(spec, quick_payment_id, max_wait_seconds)

    # --- Payments ---

    async def create_payment(
        self,
        request: PaymentRequest,
        request_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> PaymentResponse:
        return await self.payments_api.create_payment(request, request_id, idempotency_key)

    async def get_payment(self, payment_id: ResourceId, request_id: Optional[str] = None) -> Payment:
        return await self.payments_api.get_payment(payment_id, request_id)

    async def await_successful_payment(self, payment_id: ResourceId, max_wait_seconds: int) -> Payment:
        """Poll until the payment reaches AcceptedSettlementCompleted."""
        spec = payment_spec(self.get_payment)
        return await self.poller.poll(spec, payment_id, max_wait_seconds)

    # --- Refunds ---

    async def create_refund(
        self,
        request: RefundRequest,
        request_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> RefundResponse:
        return await self.refunds_api.create_refund(request, request_id, idempotency_key)

    async def get_refund(self, refund_id: ResourceId, request_id: Optional[str] = None) -> Refund:
        return await self.refunds_api.get_refund(refund_id, request_id)
