"""Error hierarchy raised by the Blink Debit client."""
from __future__ import annotations

import asyncio
from typing import Optional


class BlinkServiceError(Exception):
    """Base exception for every failure surfaced by the SDK."""


class BlinkInvalidValueError(BlinkServiceError, ValueError):
    """An argument or configuration value is missing or malformed."""


class BlinkHttpError(BlinkServiceError):
    """Non-2xx response from the Blink Debit API."""

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ):
        self.status_code = status_code
        self.correlation_id = correlation_id
        self.detail = message
        text = f"Blink Debit API error {status_code}" if status_code else "Blink Debit API error"
        if message:
            text += f": {message}"
        if correlation_id:
            text += f" (correlation ID {correlation_id})"
        super().__init__(text)


class BlinkUnauthorisedError(BlinkHttpError):
    """401/422 - missing, expired or rejected credentials."""


class BlinkForbiddenError(BlinkHttpError):
    pass


class BlinkResourceNotFoundError(BlinkHttpError):
    pass


class BlinkRateLimitExceededError(BlinkHttpError):
    pass


class BlinkNotImplementedError(BlinkHttpError):
    pass


class BlinkClientError(BlinkHttpError):
    """Any other 4xx response."""


class BlinkRetryableError(BlinkHttpError):
    """Server side failure worth another attempt (5xx)."""


class BlinkRequestTimeoutError(BlinkRetryableError):
    pass


# --- Await helper outcomes ---


class BlinkConsentFailureError(BlinkServiceError):
    def __init__(self, message: str, resource_id: Optional[str] = None):
        self.resource_id = resource_id
        super().__init__(message)


class BlinkConsentRejectedError(BlinkConsentFailureError):
    """Consent reached Rejected or Revoked."""


class BlinkGatewayTimeoutError(BlinkConsentFailureError):
    """The bank did not answer the authorisation request in time."""


class BlinkConsentTimeoutError(BlinkConsentFailureError):
    def __init__(self, message: str, resource_id: Optional[str] = None, max_wait_seconds: Optional[int] = None):
        self.max_wait_seconds = max_wait_seconds
        self.revoke_error: Optional[BaseException] = None
        super().__init__(message, resource_id)


class BlinkPaymentFailureError(BlinkServiceError):
    def __init__(self, message: str, resource_id: Optional[str] = None):
        self.resource_id = resource_id
        super().__init__(message)


class BlinkPaymentRejectedError(BlinkPaymentFailureError):
    pass


class BlinkPaymentTimeoutError(BlinkPaymentFailureError):
    def __init__(self, message: str, resource_id: Optional[str] = None, max_wait_seconds: Optional[int] = None):
        self.max_wait_seconds = max_wait_seconds
        self.revoke_error: Optional[BaseException] = None
        super().__init__(message, resource_id)


class BlinkAwaitInterruptedError(asyncio.CancelledError):
    """The awaiting task was cancelled between two status checks.

    Derives from ``asyncio.CancelledError`` only, so ``except Exception`` does not catch it.
    """

    def __init__(self, resource_id: Optional[str] = None):
        self.resource_id = resource_id
        super().__init__(f"Interrupted while waiting for {resource_id}")
