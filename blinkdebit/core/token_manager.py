import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional

import httpx
import jwt

from .data_models import AccessTokenRequest, AccessTokenResponse
from .exceptions import BlinkServiceError
from .http_client import CORRELATION_ID, REQUEST_ID, USER_AGENT, new_request_id, parse_model, raise_for_blink_status

if TYPE_CHECKING:
    from ..config import BlinkDebitConfig

logger = logging.getLogger(__name__)

TOKEN_PATH = "/oauth2/token"
TOKEN_REFRESH_BUFFER = timedelta(seconds=60)
DEFAULT_TOKEN_LIFETIME = timedelta(hours=1)


class OAuthApiClient:
    """Client-credentials grant against the Blink Debit token endpoint."""

    def __init__(self, config: "BlinkDebitConfig", client: httpx.AsyncClient):
        self._config = config
        self._client = client

    async def get_access_token(self, request_id: Optional[str] = None) -> AccessTokenResponse:
        request_id = request_id or new_request_id()
        body = AccessTokenRequest(client_id=self._config.client_id, client_secret=self._config.client_secret)
        headers = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            REQUEST_ID: request_id,
            CORRELATION_ID: request_id,
        }

        logger.debug("Requesting access token from %s%s", self._config.debit_url, TOKEN_PATH)
        try:
            response = await self._client.post(TOKEN_PATH, headers=headers, json=body.to_payload())
        except httpx.HTTPError as exc:
            logger.error("IO error while getting access token: %s", exc)
            raise BlinkServiceError(f"IO error while getting access token: {exc}") from exc

        raise_for_blink_status(response)
        token = parse_model(response, AccessTokenResponse)
        if token is None:
            raise BlinkServiceError("Token endpoint returned an empty body")
        logger.debug("Successfully obtained access token")
        return token


class AccessTokenManager:
    """Caches the bearer token and refreshes it shortly before it expires."""

    def __init__(self, oauth_client: OAuthApiClient):
        self._oauth = oauth_client
        self._access_token: Optional[str] = None
        self._expires_at: Optional[datetime] = None
        self._lock = asyncio.Lock()

    def _is_valid(self) -> bool:
        if not self._access_token or not self._expires_at:
            return False
        return datetime.now(timezone.utc) + TOKEN_REFRESH_BUFFER < self._expires_at

    async def get_access_token(self) -> str:
        if self._is_valid():
            return self._access_token

        async with self._lock:
            if self._is_valid():
                return self._access_token
            logger.debug("Access token expired or missing, fetching new token")
            await self._refresh()
            return self._access_token

    async def _refresh(self) -> None:
        token = await self._oauth.get_access_token()
        self._expires_at = self._expiry_of(token)
        self._access_token = token.access_token
        logger.info("Obtained new Blink Debit access token (expires at %s).", self._expires_at.isoformat())

    @staticmethod
    def _expiry_of(token: AccessTokenResponse) -> datetime:
        now = datetime.now(timezone.utc)
        try:
            claims = jwt.decode(token.access_token, options={"verify_signature": False})
        except jwt.PyJWTError:
            claims = {}

        exp = claims.get("exp")
        if exp:
            return datetime.fromtimestamp(exp, tz=timezone.utc)
        if token.expires_in:
            return now + timedelta(seconds=token.expires_in)
        logger.warning("Access token has no expiry, assuming %s", DEFAULT_TOKEN_LIFETIME)
        return now + DEFAULT_TOKEN_LIFETIME

    def clear(self) -> None:
        self._access_token = None
        self._expires_at = None
        logger.debug("Access token cleared")
