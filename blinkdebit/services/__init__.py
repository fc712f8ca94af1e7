"""Thin accessors for each Blink Debit resource."""

from .consents import EnduringConsentsApiClient, SingleConsentsApiClient
from .meta import MetaApiClient
from .payments import PaymentsApiClient
from .quick_payments import QuickPaymentsApiClient
from .refunds import RefundsApiClient

__all__ = [
    "SingleConsentsApiClient",
    "EnduringConsentsApiClient",
    "QuickPaymentsApiClient",
    "PaymentsApiClient",
    "RefundsApiClient",
    "MetaApiClient",
]
