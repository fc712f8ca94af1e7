"""
Test the authenticated transport: headers, status mapping, retries.
"""

import httpx
import pytest

from blinkdebit import BlinkDebitClient, BlinkDebitConfig
from blinkdebit.core.exceptions import (
    BlinkClientError,
    BlinkForbiddenError,
    BlinkNotImplementedError,
    BlinkRateLimitExceededError,
    BlinkRequestTimeoutError,
    BlinkResourceNotFoundError,
    BlinkRetryableError,
    BlinkServiceError,
    BlinkUnauthorisedError,
)

from .conftest import DEBIT_URL, json_response

CONSENT_PATH = "/payments/v1/single-consents/C1"
CONSENT = {"consent_id": "C1", "status": "Authorised"}


@pytest.mark.asyncio
class TestHeaders:
    async def test_standard_headers(self, client, api):
        api.respond("GET", CONSENT_PATH, json_response(200, CONSENT))

        await client.get_single_consent("C1", request_id="req-123")

        sent = api.calls("GET", CONSENT_PATH)[0]
        assert sent.headers["Authorization"].startswith("Bearer ")
        assert sent.headers["Accept"] == "application/json"
        assert sent.headers["User-Agent"] == "Python/Blink SDK 1.0"
        assert sent.headers["request-id"] == "req-123"
        assert sent.headers["x-correlation-id"] == "req-123"

    async def test_generated_request_id(self, client, api):
        api.respond("GET", CONSENT_PATH, json_response(200, CONSENT))

        await client.get_single_consent("C1")

        sent = api.calls("GET", CONSENT_PATH)[0]
        assert len(sent.headers["request-id"]) == 36
        assert "x-customer-ip" not in sent.headers
        assert "idempotency-key" not in sent.headers

    async def test_token_reused_between_calls(self, client, api):
        api.respond("GET", CONSENT_PATH, json_response(200, CONSENT))

        await client.get_single_consent("C1")
        await client.get_single_consent("C1")

        assert api.token_calls == 1

    async def test_unauthorised_clears_token(self, client, api):
        api.respond(
            "GET",
            CONSENT_PATH,
            json_response(401, {"message": "token expired"}),
            json_response(200, CONSENT),
        )

        with pytest.raises(BlinkUnauthorisedError):
            await client.get_single_consent("C1")
        await client.get_single_consent("C1")

        assert api.token_calls == 2


@pytest.mark.asyncio
class TestStatusMapping:
    @pytest.mark.parametrize(
        "status_code, error_cls",
        [
            (401, BlinkUnauthorisedError),
            (403, BlinkForbiddenError),
            (404, BlinkResourceNotFoundError),
            (408, BlinkRequestTimeoutError),
            (409, BlinkClientError),
            (422, BlinkUnauthorisedError),
            (429, BlinkRateLimitExceededError),
            (500, BlinkRetryableError),
            (501, BlinkNotImplementedError),
            (503, BlinkRetryableError),
        ],
    )
    async def test_status_maps_to_error(self, client, api, status_code, error_cls):
        api.respond(
            "GET",
            CONSENT_PATH,
            json_response(status_code, {"message": "nope"}, headers={"x-correlation-id": "corr-1"}),
        )

        with pytest.raises(error_cls) as exc_info:
            await client.get_single_consent("C1")

        assert exc_info.value.status_code == status_code
        assert exc_info.value.correlation_id == "corr-1"
        assert exc_info.value.detail == "nope"
        assert "corr-1" in str(exc_info.value)

    async def test_plain_text_error_body(self, client, api):
        api.respond("GET", CONSENT_PATH, httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(BlinkRetryableError) as exc_info:
            await client.get_single_consent("C1")

        assert exc_info.value.detail == "Bad Gateway"

    async def test_unparseable_body(self, client, api):
        api.respond("GET", CONSENT_PATH, json_response(200, {"unexpected": True}))

        with pytest.raises(BlinkServiceError, match="deserialize"):
            await client.get_single_consent("C1")

    async def test_network_error_is_wrapped(self, config):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/oauth2/token":
                return json_response(200, {"access_token": "opaque", "expires_in": 3600})
            raise httpx.ConnectError("connection refused", request=request)

        async with BlinkDebitClient(config, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(BlinkServiceError, match="IO error") as exc_info:
                await client.get_single_consent("C1")

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
class TestRetry:
    async def test_retries_server_errors(self, api):
        config = BlinkDebitConfig(DEBIT_URL, "test-client-id", "test-client-secret", retry_enabled=True)
        api.respond(
            "GET",
            CONSENT_PATH,
            json_response(503, {"message": "unavailable"}),
            json_response(200, CONSENT),
        )

        async with BlinkDebitClient(config, transport=httpx.MockTransport(api)) as client:
            consent = await client.get_single_consent("C1", request_id="req-retry")

        calls = api.calls("GET", CONSENT_PATH)
        assert consent.consent_id == "C1"
        assert len(calls) == 2
        assert {c.headers["request-id"] for c in calls} == {"req-retry"}

    async def test_client_errors_are_not_retried(self, api):
        config = BlinkDebitConfig(DEBIT_URL, "test-client-id", "test-client-secret", retry_enabled=True)
        api.respond("GET", CONSENT_PATH, json_response(403, {"message": "forbidden"}))

        async with BlinkDebitClient(config, transport=httpx.MockTransport(api)) as client:
            with pytest.raises(BlinkForbiddenError):
                await client.get_single_consent("C1")

        assert len(api.calls("GET", CONSENT_PATH)) == 1


def test_request_timeout_is_retryable():
    assert issubclass(BlinkRequestTimeoutError, BlinkRetryableError)
