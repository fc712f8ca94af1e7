"""Await helpers: poll a consent, quick payment or payment until it settles.

Every await operation runs the same loop. The status is fetched, classified
and then the loop either returns the resource, raises a terminal failure, or
sleeps for one interval and tries again until the deadline passes. On timeout
an optional compensating action (revoking the resource) is attempted once,
best effort, before the timeout error is raised.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from .data_models import Consent, ConsentStatus, Payment, PaymentStatus, QuickPaymentResponse
from .exceptions import (
    BlinkAwaitInterruptedError,
    BlinkConsentRejectedError,
    BlinkConsentTimeoutError,
    BlinkGatewayTimeoutError,
    BlinkInvalidValueError,
    BlinkPaymentRejectedError,
    BlinkPaymentTimeoutError,
    BlinkServiceError,
)

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 1.0

ResourceT = TypeVar("ResourceT")


class Outcome(str, Enum):
    SUCCESS = "success"
    REJECTED = "rejected"
    GATEWAY_TIMEOUT = "gateway_timeout"
    PENDING = "pending"


@dataclass(frozen=True)
class PollEvent:
    """Emitted to the observer for every status check and revoke attempt."""

    kind: str
    resource_id: str
    status: Optional[str] = None
    outcome: Optional[Outcome] = None
    revoked: Optional[bool] = None
    error: Optional[BaseException] = None


Observer = Callable[[PollEvent], None]


@dataclass(frozen=True)
class PollSpec(Generic[ResourceT]):
    """Everything that differs between the four await operations."""

    kind: str
    label: str
    fetch: Callable[[str], Awaitable[ResourceT]]
    status_of: Callable[[ResourceT], Any]
    classify: Callable[[Any], Outcome]
    on_rejected: Callable[[str, Any], BlinkServiceError]
    on_timeout: Callable[[str, int], BlinkServiceError]
    on_gateway_timeout: Optional[Callable[[str], BlinkServiceError]] = None
    compensate: Optional[Callable[[str], Awaitable[None]]] = None


# --- Status partitions ---

CONSENT_SUCCESS = frozenset({ConsentStatus.AUTHORISED, ConsentStatus.CONSUMED})
CONSENT_REJECTED = frozenset({ConsentStatus.REJECTED, ConsentStatus.REVOKED})
PAYMENT_SUCCESS = frozenset({PaymentStatus.ACCEPTED_SETTLEMENT_COMPLETED})
PAYMENT_REJECTED = frozenset({PaymentStatus.REJECTED})


def classify_consent_status(status: ConsentStatus) -> Outcome:
    if status in CONSENT_SUCCESS:
        return Outcome.SUCCESS
    if status in CONSENT_REJECTED:
        return Outcome.REJECTED
    if status == ConsentStatus.GATEWAY_TIMEOUT:
        return Outcome.GATEWAY_TIMEOUT
    return Outcome.PENDING


def classify_quick_payment_status(status: ConsentStatus) -> Outcome:
    # GatewayTimeout is deliberately not terminal for quick payments.
    if status in CONSENT_SUCCESS:
        return Outcome.SUCCESS
    if status in CONSENT_REJECTED:
        return Outcome.REJECTED
    return Outcome.PENDING


def classify_payment_status(status: PaymentStatus) -> Outcome:
    if status in PAYMENT_SUCCESS:
        return Outcome.SUCCESS
    if status in PAYMENT_REJECTED:
        return Outcome.REJECTED
    return Outcome.PENDING


def _status_text(status: Any) -> str:
    return status.value if isinstance(status, Enum) else str(status)


class Poller:
    """Runs bounded polling loops. Holds no per-call state."""

    def __init__(
        self,
        interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        observer: Optional[Observer] = None,
    ):
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._observer = observer

    def _notify(self, event: PollEvent) -> None:
        if self._observer is None:
            return
        try:
            self._observer(event)
        except Exception:  # noqa: BLE001
            logger.exception("Poll observer raised for %s %s", event.kind, event.resource_id)

    async def poll(self, spec: PollSpec[ResourceT], resource_id: str, max_wait_seconds: int) -> ResourceT:
        if resource_id is None or not str(resource_id).strip():
            raise BlinkInvalidValueError(f"{spec.label} ID must not be null")
        if isinstance(max_wait_seconds, bool) or not isinstance(max_wait_seconds, int) or max_wait_seconds <= 0:
            raise BlinkInvalidValueError(f"Maximum wait must be a positive number of seconds, got {max_wait_seconds!r}")

        resource_id = str(resource_id)
        deadline = self._clock() + max_wait_seconds

        while self._clock() < deadline:
            resource = await spec.fetch(resource_id)
            status = spec.status_of(resource)
            outcome = spec.classify(status)
            logger.debug(
                "The last status polled was: %s for %s ID: %s",
                _status_text(status),
                spec.label,
                resource_id,
            )
            self._notify(PollEvent(kind=spec.kind, resource_id=resource_id, status=_status_text(status), outcome=outcome))

            if outcome is Outcome.SUCCESS:
                logger.debug("%s completed for ID: %s", spec.label, resource_id)
                return resource
            if outcome is Outcome.REJECTED:
                raise spec.on_rejected(resource_id, status)
            if outcome is Outcome.GATEWAY_TIMEOUT and spec.on_gateway_timeout is not None:
                raise spec.on_gateway_timeout(resource_id)

            try:
                await self._sleep(self.interval)
            except asyncio.CancelledError as exc:
                logger.warning("Interrupted while waiting for %s %s", spec.label, resource_id)
                raise BlinkAwaitInterruptedError(resource_id) from exc

        timeout_error = spec.on_timeout(resource_id, max_wait_seconds)
        if spec.compensate is not None:
            await self._compensate(spec, resource_id, timeout_error)
        raise timeout_error

    async def _compensate(self, spec: PollSpec[Any], resource_id: str, timeout_error: BlinkServiceError) -> None:
        try:
            await spec.compensate(resource_id)
        except asyncio.CancelledError:
            raise
        except Exception as revoke_exc:  # noqa: BLE001
            logger.error(
                "Waiting for the %s was not successful and it was also not able to be revoked "
                "with the server due to: %s. %s ID: %s",
                spec.label.lower(),
                revoke_exc,
                spec.label,
                resource_id,
            )
            timeout_error.revoke_error = revoke_exc
            self._notify(PollEvent(kind=spec.kind, resource_id=resource_id, revoked=False, error=revoke_exc))
            return

        logger.info(
            "The max wait time was reached while waiting for the %s to complete and it has been "
            "revoked with the server. %s ID: %s",
            spec.label.lower(),
            spec.label,
            resource_id,
        )
        self._notify(PollEvent(kind=spec.kind, resource_id=resource_id, revoked=True))


# --- Per resource specs ---


def quick_payment_spec(
    fetch: Callable[[str], Awaitable[QuickPaymentResponse]],
    revoke: Callable[[str], Awaitable[None]],
) -> PollSpec[QuickPaymentResponse]:
    return PollSpec(
        kind="quick_payment",
        label="Quick payment",
        fetch=fetch,
        status_of=lambda qp: qp.consent.status,
        classify=classify_quick_payment_status,
        on_rejected=lambda rid, status: BlinkConsentRejectedError(
            f"Quick payment [{rid}] has been {_status_text(status).lower()}", rid
        ),
        on_timeout=lambda rid, wait: BlinkConsentTimeoutError(
            f"Timed out waiting for quick payment [{rid}] after {wait} seconds", rid, wait
        ),
        compensate=revoke,
    )


def single_consent_spec(fetch: Callable[[str], Awaitable[Consent]]) -> PollSpec[Consent]:
    return PollSpec(
        kind="single_consent",
        label="Single consent",
        fetch=fetch,
        status_of=lambda consent: consent.status,
        classify=classify_consent_status,
        on_rejected=lambda rid, status: BlinkConsentRejectedError(
            f"Single consent [{rid}] has been {_status_text(status).lower()}", rid
        ),
        on_gateway_timeout=lambda rid: BlinkGatewayTimeoutError(
            f"Gateway timed out for single consent [{rid}]", rid
        ),
        on_timeout=lambda rid, wait: BlinkConsentTimeoutError(
            f"Timed out waiting for single consent [{rid}] after {wait} seconds", rid, wait
        ),
    )


def enduring_consent_spec(
    fetch: Callable[[str], Awaitable[Consent]],
    revoke: Callable[[str], Awaitable[None]],
) -> PollSpec[Consent]:
    return PollSpec(
        kind="enduring_consent",
        label="Enduring consent",
        fetch=fetch,
        status_of=lambda consent: consent.status,
        classify=classify_consent_status,
        on_rejected=lambda rid, status: BlinkConsentRejectedError(
            f"Enduring consent [{rid}] has been {_status_text(status).lower()}", rid
        ),
        on_gateway_timeout=lambda rid: BlinkGatewayTimeoutError(
            f"Gateway timed out for enduring consent [{rid}]", rid
        ),
        on_timeout=lambda rid, wait: BlinkConsentTimeoutError(
            f"Timed out waiting for enduring consent [{rid}] after {wait} seconds", rid, wait
        ),
        compensate=revoke,
    )


def payment_spec(fetch: Callable[[str], Awaitable[Payment]]) -> PollSpec[Payment]:
    return PollSpec(
        kind="payment",
        label="Payment",
        fetch=fetch,
        status_of=lambda payment: payment.status,
        classify=classify_payment_status,
        on_rejected=lambda rid, status: BlinkPaymentRejectedError(f"Payment [{rid}] has been rejected", rid),
        on_timeout=lambda rid, wait: BlinkPaymentTimeoutError(
            f"Timed out waiting for payment [{rid}] after {wait} seconds", rid, wait
        ),
    )
