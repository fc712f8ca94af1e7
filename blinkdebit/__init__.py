"""Blink Debit SDK - async client for BlinkPay's payment initiation API."""

__version__ = "1.0.0"

from .client import BlinkDebitClient
from .config import BlinkDebitConfig
from .core.exceptions import (
    BlinkAwaitInterruptedError,
    BlinkClientError,
    BlinkConsentFailureError,
    BlinkConsentRejectedError,
    BlinkConsentTimeoutError,
    BlinkForbiddenError,
    BlinkGatewayTimeoutError,
    BlinkHttpError,
    BlinkInvalidValueError,
    BlinkNotImplementedError,
    BlinkPaymentFailureError,
    BlinkPaymentRejectedError,
    BlinkPaymentTimeoutError,
    BlinkRateLimitExceededError,
    BlinkRequestTimeoutError,
    BlinkResourceNotFoundError,
    BlinkRetryableError,
    BlinkServiceError,
    BlinkUnauthorisedError,
)
from .core.polling import PollEvent, Poller
