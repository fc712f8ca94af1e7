"""Request and response models for the Blink Debit payments API."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

PCR_PATTERN = r"^[a-zA-Z0-9- &#?:_/,.']{0,12}$"
AMOUNT_PATTERN = r"^\d{1,13}\.\d{1,2}$"


class BlinkModel(BaseModel):
    """Base model: unknown response fields are ignored, enums kept as members."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


# --- Enumerations ---


class ConsentStatus(str, Enum):
    GATEWAY_AWAITING_SUBMISSION = "GatewayAwaitingSubmission"
    GATEWAY_TIMEOUT = "GatewayTimeout"
    AWAITING_AUTHORISATION = "AwaitingAuthorisation"
    AUTHORISED = "Authorised"
    CONSUMED = "Consumed"
    REJECTED = "Rejected"
    REVOKED = "Revoked"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    ACCEPTED_SETTLEMENT_IN_PROCESS = "AcceptedSettlementInProcess"
    ACCEPTED_SETTLEMENT_COMPLETED = "AcceptedSettlementCompleted"
    REJECTED = "Rejected"


class PaymentType(str, Enum):
    SINGLE = "single"
    ENDURING = "enduring"


class PaymentAcceptedReason(str, Enum):
    SOURCE_BANK_PAYMENT_SENT = "source_bank_payment_sent"
    CARD_NETWORK_ACCEPTED = "card_network_accepted"


class RefundStatus(str, Enum):
    FAILED = "failed"
    PROCESSING = "processing"
    COMPLETED = "completed"


class Bank(str, Enum):
    ASB = "ASB"
    ANZ = "ANZ"
    BNZ = "BNZ"
    WESTPAC = "Westpac"
    KIWIBANK = "KiwiBank"
    PNZ = "PNZ"


class Period(str, Enum):
    ANNUAL = "annual"
    DAILY = "daily"
    FORTNIGHTLY = "fortnightly"
    MONTHLY = "monthly"
    WEEKLY = "weekly"


class IdentifierType(str, Enum):
    EMAIL = "email"
    PHONE_NUMBER = "phone_number"
    MOBILE_NUMBER = "mobile_number"
    BANKING_USERNAME = "banking_username"
    CONSENT_ID = "consent_id"


class Currency(str, Enum):
    NZD = "NZD"


# --- Value objects ---


class Amount(BlinkModel):
    total: str = Field(pattern=AMOUNT_PATTERN)
    currency: Currency = Currency.NZD


class Pcr(BlinkModel):
    """Particulars, code and reference shown on the bank statement."""

    particulars: str = Field(min_length=1, max_length=12, pattern=PCR_PATTERN)
    code: Optional[str] = Field(default=None, max_length=12, pattern=PCR_PATTERN)
    reference: Optional[str] = Field(default=None, max_length=12, pattern=PCR_PATTERN)


# --- Authorisation flows ---


class RedirectFlowHint(BlinkModel):
    type: Literal["redirect"] = "redirect"
    bank: Bank


class DecoupledFlowHint(BlinkModel):
    type: Literal["decoupled"] = "decoupled"
    bank: Bank
    identifier_type: IdentifierType
    identifier_value: str


FlowHint = Annotated[Union[RedirectFlowHint, DecoupledFlowHint], Field(discriminator="type")]


class RedirectFlow(BlinkModel):
    type: Literal["redirect"] = "redirect"
    bank: Bank
    redirect_uri: str
    redirect_to_app: Optional[bool] = None


class DecoupledFlow(BlinkModel):
    type: Literal["decoupled"] = "decoupled"
    bank: Bank
    identifier_type: IdentifierType
    identifier_value: str
    callback_url: Optional[str] = None


class GatewayFlow(BlinkModel):
    type: Literal["gateway"] = "gateway"
    redirect_uri: str
    redirect_to_app: Optional[bool] = None
    flow_hint: Optional[FlowHint] = None


class AuthFlow(BlinkModel):
    detail: Annotated[Union[RedirectFlow, DecoupledFlow, GatewayFlow], Field(discriminator="type")]


# --- Requests ---


class AccessTokenRequest(BlinkModel):
    client_id: str
    client_secret: str
    grant_type: str = "client_credentials"


class SingleConsentRequest(BlinkModel):
    type: Literal["single"] = "single"
    flow: AuthFlow
    pcr: Pcr
    amount: Amount
    hashed_customer_identifier: Optional[str] = None


class QuickPaymentRequest(SingleConsentRequest):
    """Consent and payment in one call; same shape as a single consent."""


class EnduringConsentRequest(BlinkModel):
    type: Literal["enduring"] = "enduring"
    flow: AuthFlow
    from_timestamp: datetime
    period: Period
    maximum_amount_period: Amount
    maximum_amount_payment: Optional[Amount] = None
    expiry_timestamp: Optional[datetime] = None
    hashed_customer_identifier: Optional[str] = None


ConsentDetail = Annotated[Union[SingleConsentRequest, EnduringConsentRequest], Field(discriminator="type")]


class PaymentRequest(BlinkModel):
    consent_id: str
    # Only for enduring consents
    pcr: Optional[Pcr] = None
    amount: Optional[Amount] = None


class AccountNumberRefundRequest(BlinkModel):
    type: Literal["account_number"] = "account_number"
    payment_id: str


class FullRefundRequest(BlinkModel):
    type: Literal["full_refund"] = "full_refund"
    payment_id: str
    pcr: Pcr
    consent_redirect: str


class PartialRefundRequest(BlinkModel):
    type: Literal["partial_refund"] = "partial_refund"
    payment_id: str
    amount: Amount
    pcr: Pcr
    consent_redirect: str


RefundRequest = Union[AccountNumberRefundRequest, FullRefundRequest, PartialRefundRequest]
RefundDetail = Annotated[RefundRequest, Field(discriminator="type")]


# --- Responses ---


class AccessTokenResponse(BlinkModel):
    access_token: str
    token_type: Optional[str] = None
    expires_in: Optional[int] = None
    scope: Optional[str] = None


class CreateConsentResponse(BlinkModel):
    consent_id: str
    redirect_uri: Optional[str] = None


class CreateQuickPaymentResponse(BlinkModel):
    quick_payment_id: str
    redirect_uri: Optional[str] = None


class PaymentResponse(BlinkModel):
    payment_id: str


class RefundResponse(BlinkModel):
    refund_id: str


class Refund(BlinkModel):
    refund_id: str
    status: RefundStatus
    creation_timestamp: Optional[datetime] = None
    status_updated_timestamp: Optional[datetime] = None
    account_number: Optional[str] = None
    detail: Optional[RefundDetail] = None


class Payment(BlinkModel):
    payment_id: str
    type: Optional[PaymentType] = None
    status: PaymentStatus
    accepted_reason: Optional[PaymentAcceptedReason] = None
    creation_timestamp: Optional[datetime] = None
    status_updated_timestamp: Optional[datetime] = None
    detail: Optional[PaymentRequest] = None
    refunds: List[Refund] = Field(default_factory=list)


class Consent(BlinkModel):
    consent_id: str
    status: ConsentStatus
    creation_timestamp: Optional[datetime] = None
    status_updated_timestamp: Optional[datetime] = None
    detail: Optional[ConsentDetail] = None
    payments: List[Payment] = Field(default_factory=list)
    card_network: Optional[str] = None


class QuickPaymentResponse(BlinkModel):
    quick_payment_id: str
    consent: Consent


class BankMetadataFlowFeature(BlinkModel):
    enabled: bool = False
    request_timeout: Optional[str] = None


class BankMetadataDecoupledFlow(BankMetadataFlowFeature):
    available_identifiers: List[Dict[str, Any]] = Field(default_factory=list)


class BankMetadataEnduringConsent(BlinkModel):
    enabled: bool = False
    maximum_consent: Optional[str] = None
    consent_indefinite: Optional[bool] = None


class BankMetadataFeatures(BlinkModel):
    enduring_consent: Optional[BankMetadataEnduringConsent] = None
    decoupled_flow: Optional[BankMetadataDecoupledFlow] = None
    card_payment: Optional[Dict[str, Any]] = None


class BankMetadata(BlinkModel):
    name: Bank
    payment_limit: Optional[Amount] = None
    features: BankMetadataFeatures = Field(default_factory=BankMetadataFeatures)
    redirect_flow: Optional[BankMetadataFlowFeature] = None


class DetailErrorResponse(BlinkModel):
    """Error body returned by the API on non-2xx responses."""

    timestamp: Optional[str] = None
    status: Optional[int] = None
    error: Optional[str] = None
    message: Optional[str] = None
    path: Optional[str] = None
    code: Optional[str] = None
