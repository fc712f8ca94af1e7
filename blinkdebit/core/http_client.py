import logging
import uuid
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from .data_models import DetailErrorResponse
from .exceptions import (
    BlinkClientError,
    BlinkForbiddenError,
    BlinkHttpError,
    BlinkNotImplementedError,
    BlinkRateLimitExceededError,
    BlinkRequestTimeoutError,
    BlinkResourceNotFoundError,
    BlinkRetryableError,
    BlinkServiceError,
    BlinkUnauthorisedError,
)

if TYPE_CHECKING:
    from ..config import BlinkDebitConfig
    from .token_manager import AccessTokenManager

logger = logging.getLogger(__name__)

USER_AGENT = "Python/Blink SDK 1.0"
REQUEST_ID = "request-id"
CORRELATION_ID = "x-correlation-id"
IDEMPOTENCY_KEY = "idempotency-key"
CUSTOMER_IP = "x-customer-ip"
CUSTOMER_USER_AGENT = "x-customer-user-agent"

# Transport errors worth another attempt
RETRYABLE_EXCEPTIONS = (
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.NetworkError,
    BlinkRetryableError,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _is_retryable(exc: BaseException) -> bool:
    """Retry only on transport errors, 408 and HTTP 5xx."""
    return isinstance(exc, RETRYABLE_EXCEPTIONS)


api_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception(_is_retryable),
    reraise=True,
)

_STATUS_ERRORS: Dict[int, Type[BlinkHttpError]] = {
    401: BlinkUnauthorisedError,
    403: BlinkForbiddenError,
    404: BlinkResourceNotFoundError,
    408: BlinkRequestTimeoutError,
    422: BlinkUnauthorisedError,
    429: BlinkRateLimitExceededError,
    501: BlinkNotImplementedError,
}


def new_request_id() -> str:
    return str(uuid.uuid4())


def _error_message(response: httpx.Response) -> Optional[str]:
    if not response.content:
        return None
    try:
        body = DetailErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        return response.text or None
    return body.message or body.error or response.text or None


def raise_for_blink_status(response: httpx.Response) -> None:
    """Translate a non-2xx response into the matching Blink error."""
    if response.is_success:
        return

    code = response.status_code
    error_cls = _STATUS_ERRORS.get(code)
    if error_cls is None:
        if 400 <= code < 500:
            error_cls = BlinkClientError
        elif code >= 500:
            error_cls = BlinkRetryableError
        else:
            error_cls = BlinkHttpError

    message = _error_message(response)
    correlation_id = response.headers.get(CORRELATION_ID)
    log = logger.warning if code in (422, 429) else logger.error
    log(
        "Blink Debit call %s %s failed: status=%s correlation_id=%s body=%s",
        response.request.method,
        response.request.url.path,
        code,
        correlation_id,
        message,
    )
    raise error_cls(message, status_code=code, correlation_id=correlation_id)


def parse_model(response: httpx.Response, model: Type[ModelT]) -> Optional[ModelT]:
    if not response.content:
        return None
    try:
        return model.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        logger.error("Failed to deserialize %s from %s: %s", model.__name__, response.request.url.path, exc)
        raise BlinkServiceError(f"Failed to deserialize response body: {exc}") from exc


class BlinkHttpClient:
    """Authenticated JSON calls against the Blink Debit API."""

    def __init__(
        self,
        config: "BlinkDebitConfig",
        token_manager: "AccessTokenManager",
        client: httpx.AsyncClient,
    ):
        self._config = config
        self._tokens = token_manager
        self._client = client

    async def _headers(
        self,
        request_id: str,
        extra: Optional[Dict[str, Optional[str]]] = None,
    ) -> Dict[str, str]:
        access_token = await self._tokens.get_access_token()
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            REQUEST_ID: request_id,
            CORRELATION_ID: request_id,
        }
        if extra:
            headers.update({key: value for key, value in extra.items() if value})
        return headers

    async def _send(
        self,
        method: str,
        path: str,
        request_id: str,
        json: Optional[Dict[str, Any]] = None,
        extra_headers: Optional[Dict[str, Optional[str]]] = None,
    ) -> httpx.Response:
        headers = await self._headers(request_id, extra_headers)
        logger.debug("%s %s with request-id: %s", method, path, request_id)
        response = await self._client.request(method, path, headers=headers, json=json)
        if response.status_code == 401:
            # Force a fresh token on the next call
            self._tokens.clear()
        raise_for_blink_status(response)
        return response

    async def _execute(
        self,
        method: str,
        path: str,
        request_id: Optional[str] = None,
        json: Optional[Dict[str, Any]] = None,
        extra_headers: Optional[Dict[str, Optional[str]]] = None,
    ) -> httpx.Response:
        request_id = request_id or new_request_id()
        try:
            if not self._config.retry_enabled:
                return await self._send(method, path, request_id, json, extra_headers)

            @api_retry
            async def _send_with_retry() -> httpx.Response:
                return await self._send(method, path, request_id, json, extra_headers)

            return await _send_with_retry()
        except httpx.HTTPError as exc:
            logger.error("IO error during %s request to %s: %s", method, path, exc)
            raise BlinkServiceError(f"IO error during {method} request to {path}: {exc}") from exc

    async def get(self, path: str, model: Type[ModelT], request_id: Optional[str] = None) -> Optional[ModelT]:
        response = await self._execute("GET", path, request_id)
        return parse_model(response, model)

    async def get_list(self, path: str, model: Type[ModelT], request_id: Optional[str] = None) -> List[ModelT]:
        response = await self._execute("GET", path, request_id)
        if not response.content:
            return []
        try:
            return TypeAdapter(List[model]).validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            logger.error("Failed to deserialize %s list from %s: %s", model.__name__, path, exc)
            raise BlinkServiceError(f"Failed to deserialize response body: {exc}") from exc

    async def post(
        self,
        path: str,
        body: BaseModel,
        model: Type[ModelT],
        request_id: Optional[str] = None,
        extra_headers: Optional[Dict[str, Optional[str]]] = None,
    ) -> Optional[ModelT]:
        payload = body.model_dump(mode="json", exclude_none=True)
        response = await self._execute("POST", path, request_id, json=payload, extra_headers=extra_headers)
        return parse_model(response, model)

    async def delete(self, path: str, request_id: Optional[str] = None) -> None:
        await self._execute("DELETE", path, request_id)
