"""
End to end tests of BlinkDebitClient against a stubbed Blink Debit API.
"""

import httpx
import pytest

from blinkdebit import BlinkDebitClient
from blinkdebit.core.data_models import (
    Amount,
    AuthFlow,
    Bank,
    ConsentStatus,
    PaymentRequest,
    PaymentStatus,
    Pcr,
    QuickPaymentRequest,
    RedirectFlow,
)
from blinkdebit.core.exceptions import (
    BlinkConsentRejectedError,
    BlinkConsentTimeoutError,
    BlinkGatewayTimeoutError,
    BlinkInvalidValueError,
    BlinkPaymentTimeoutError,
    BlinkResourceNotFoundError,
)
from blinkdebit.core.polling import Poller

from .conftest import json_response, request_json

QUICK_PAYMENT_PATH = "/payments/v1/quick-payments/Q1"
SINGLE_CONSENT_PATH = "/payments/v1/single-consents/C1"
ENDURING_CONSENT_PATH = "/payments/v1/enduring-consents/E1"
PAYMENT_PATH = "/payments/v1/payments/P1"


def consent_body(consent_id: str, status: str) -> dict:
    return {
        "consent_id": consent_id,
        "status": status,
        "creation_timestamp": "2023-04-01T10:00:00+12:00",
        "payments": [],
    }


def quick_payment_body(status: str) -> dict:
    return {"quick_payment_id": "Q1", "consent": consent_body("C-Q1", status)}


def payment_body(status: str) -> dict:
    return {"payment_id": "P1", "status": status, "type": "single", "refunds": []}


@pytest.mark.asyncio
class TestAwaitQuickPayment:
    async def test_timeout_revokes_quick_payment(self, client, api):
        api.respond("GET", QUICK_PAYMENT_PATH, json_response(200, quick_payment_body("AwaitingAuthorisation")))
        api.respond("DELETE", QUICK_PAYMENT_PATH, json_response(204))

        with pytest.raises(BlinkConsentTimeoutError) as exc_info:
            await client.await_successful_quick_payment("Q1", 2)

        assert "Q1" in str(exc_info.value)
        assert len(api.calls("GET", QUICK_PAYMENT_PATH)) == 2
        assert len(api.calls("DELETE", QUICK_PAYMENT_PATH)) == 1

    async def test_timeout_survives_failed_revoke(self, client, api, events):
        api.respond("GET", QUICK_PAYMENT_PATH, json_response(200, quick_payment_body("AwaitingAuthorisation")))
        api.respond("DELETE", QUICK_PAYMENT_PATH, json_response(500, {"message": "revoke exploded"}))

        with pytest.raises(BlinkConsentTimeoutError) as exc_info:
            await client.await_successful_quick_payment("Q1", 2)

        assert exc_info.value.revoke_error is not None
        assert exc_info.value.revoke_error.status_code == 500
        assert events[-1].revoked is False

    async def test_authorised_after_pending(self, client, api):
        api.respond(
            "GET",
            QUICK_PAYMENT_PATH,
            json_response(200, quick_payment_body("AwaitingAuthorisation")),
            json_response(200, quick_payment_body("AwaitingAuthorisation")),
            json_response(200, quick_payment_body("Authorised")),
        )

        quick_payment = await client.await_successful_quick_payment("Q1", 10)

        assert quick_payment.consent.status is ConsentStatus.AUTHORISED
        assert len(api.calls("GET", QUICK_PAYMENT_PATH)) == 3
        assert api.calls("DELETE", QUICK_PAYMENT_PATH) == []

    async def test_missing_quick_payment(self, client, api):
        with pytest.raises(BlinkResourceNotFoundError) as exc_info:
            await client.await_successful_quick_payment("Q1", 5)

        assert exc_info.value.status_code == 404
        assert api.calls("DELETE", QUICK_PAYMENT_PATH) == []


@pytest.mark.asyncio
class TestAwaitConsents:
    async def test_single_consent_rejected(self, client, api, clock):
        api.respond("GET", SINGLE_CONSENT_PATH, json_response(200, consent_body("C1", "Rejected")))

        with pytest.raises(BlinkConsentRejectedError) as exc_info:
            await client.await_authorised_single_consent("C1", 10)

        assert "C1" in str(exc_info.value)
        assert len(api.calls("GET", SINGLE_CONSENT_PATH)) == 1
        assert clock.sleeps == []

    async def test_single_consent_consumed_counts_as_success(self, client, api):
        api.respond("GET", SINGLE_CONSENT_PATH, json_response(200, consent_body("C1", "Consumed")))

        consent = await client.await_authorised_single_consent("C1", 10)

        assert consent.status is ConsentStatus.CONSUMED

    async def test_enduring_consent_gateway_timeout(self, client, api):
        api.respond("GET", ENDURING_CONSENT_PATH, json_response(200, consent_body("E1", "GatewayTimeout")))

        with pytest.raises(BlinkGatewayTimeoutError):
            await client.await_authorised_enduring_consent("E1", 10)

        assert api.calls("DELETE", ENDURING_CONSENT_PATH) == []

    async def test_enduring_consent_timeout_revokes(self, client, api):
        api.respond("GET", ENDURING_CONSENT_PATH, json_response(200, consent_body("E1", "AwaitingAuthorisation")))
        api.respond("DELETE", ENDURING_CONSENT_PATH, json_response(204))

        with pytest.raises(BlinkConsentTimeoutError):
            await client.await_authorised_enduring_consent("E1", 3)

        assert len(api.calls("GET", ENDURING_CONSENT_PATH)) == 3
        assert len(api.calls("DELETE", ENDURING_CONSENT_PATH)) == 1

    async def test_zero_budget_is_rejected_before_any_call(self, client, api):
        with pytest.raises(BlinkInvalidValueError):
            await client.await_authorised_single_consent("C1", 0)

        assert api.requests == []


@pytest.mark.asyncio
class TestAwaitPayment:
    async def test_payment_settles(self, client, api):
        api.respond(
            "GET",
            PAYMENT_PATH,
            json_response(200, payment_body("Pending")),
            json_response(200, payment_body("AcceptedSettlementInProcess")),
            json_response(200, payment_body("AcceptedSettlementCompleted")),
        )

        payment = await client.await_successful_payment("P1", 10)

        assert payment.status is PaymentStatus.ACCEPTED_SETTLEMENT_COMPLETED
        assert len(api.calls("GET", PAYMENT_PATH)) == 3

    async def test_payment_timeout_never_deletes(self, client, api):
        api.respond("GET", PAYMENT_PATH, json_response(200, payment_body("AcceptedSettlementInProcess")))

        with pytest.raises(BlinkPaymentTimeoutError):
            await client.await_successful_payment("P1", 2)

        assert [r.method for r in api.requests if r.url.path != "/oauth2/token"] == ["GET", "GET"]


@pytest.mark.asyncio
class TestResourceCalls:
    async def test_create_quick_payment_sends_customer_headers(self, client, api):
        api.respond(
            "POST",
            "/payments/v1/quick-payments",
            json_response(201, {"quick_payment_id": "Q1", "redirect_uri": "https://bank.example/auth"}),
        )
        request = QuickPaymentRequest(
            flow=AuthFlow(detail=RedirectFlow(bank=Bank.BNZ, redirect_uri="https://shop.example/return")),
            pcr=Pcr(particulars="particulars", code="code", reference="reference"),
            amount=Amount(total="1.25"),
        )

        created = await client.create_quick_payment(
            request, customer_ip="192.0.2.1", customer_user_agent="pytest", idempotency_key="idem-1"
        )

        assert created.quick_payment_id == "Q1"
        sent = api.calls("POST", "/payments/v1/quick-payments")[0]
        assert sent.headers["x-customer-ip"] == "192.0.2.1"
        assert sent.headers["x-customer-user-agent"] == "pytest"
        assert sent.headers["idempotency-key"] == "idem-1"
        body = request_json(sent)
        assert body["type"] == "single"
        assert body["flow"]["detail"] == {
            "type": "redirect",
            "bank": "BNZ",
            "redirect_uri": "https://shop.example/return",
        }
        assert body["amount"] == {"total": "1.25", "currency": "NZD"}

    async def test_create_payment(self, client, api):
        api.respond("POST", "/payments/v1/payments", json_response(201, {"payment_id": "P1"}))

        response = await client.create_payment(PaymentRequest(consent_id="C1"))

        assert response.payment_id == "P1"
        assert request_json(api.calls("POST", "/payments/v1/payments")[0]) == {"consent_id": "C1"}

    async def test_revoke_single_consent(self, client, api):
        api.respond("DELETE", SINGLE_CONSENT_PATH, json_response(204))

        await client.revoke_single_consent("C1")

        assert len(api.calls("DELETE", SINGLE_CONSENT_PATH)) == 1


@pytest.mark.asyncio
async def test_context_manager_closes_transport(config, api):
    async with BlinkDebitClient(config, transport=httpx.MockTransport(api)) as client:
        assert client.poller.interval == 1.0

    assert client._client.is_closed


def test_observer_with_custom_poller_is_rejected(config):
    with pytest.raises(BlinkInvalidValueError, match="observer"):
        BlinkDebitClient(config, poller=Poller(), observer=lambda event: None)


@pytest.mark.asyncio
async def test_observer_reaches_default_poller(config, api):
    seen = []
    api.respond("GET", SINGLE_CONSENT_PATH, json_response(200, consent_body("C1", "Authorised")))

    async with BlinkDebitClient(config, transport=httpx.MockTransport(api), observer=seen.append) as client:
        await client.await_authorised_single_consent("C1", 5)

    assert [event.status for event in seen] == ["Authorised"]
