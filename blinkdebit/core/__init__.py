"""Core package exposing the transport, models and await helpers."""

from .http_client import BlinkHttpClient
from .polling import Outcome, PollEvent, Poller, PollSpec
from .token_manager import AccessTokenManager, OAuthApiClient

__all__ = [
    "BlinkHttpClient",
    "AccessTokenManager",
    "OAuthApiClient",
    "Poller",
    "PollSpec",
    "PollEvent",
    "Outcome",
]
