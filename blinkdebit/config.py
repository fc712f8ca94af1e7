from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from .core.exceptions import BlinkInvalidValueError

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_META_CACHE_TTL = 300
_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


class BlinkDebitConfig:
    """Connection settings for the Blink Debit API."""

    def __init__(
        self,
        debit_url: Optional[str],
        client_id: Optional[str],
        client_secret: Optional[str],
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        retry_enabled: bool = True,
        meta_cache_ttl: int = DEFAULT_META_CACHE_TTL,
    ) -> None:
        if not debit_url or not debit_url.strip():
            raise BlinkInvalidValueError("Blink Debit URL is not configured")
        if not client_id or not client_id.strip():
            raise BlinkInvalidValueError("Blink Debit client ID is not configured")
        if not client_secret or not client_secret.strip():
            raise BlinkInvalidValueError("Blink Debit client secret is not configured")
        if timeout <= 0:
            raise BlinkInvalidValueError("Timeout must be positive")

        self.debit_url: str = debit_url.strip().rstrip("/")
        self.client_id: str = client_id.strip()
        self.client_secret: str = client_secret.strip()
        self.timeout: float = float(timeout)
        self.retry_enabled: bool = retry_enabled
        self.meta_cache_ttl: int = int(meta_cache_ttl)

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "BlinkDebitConfig":
        """Build the configuration from BLINKPAY_* environment variables.

        A ``.env`` file (the given path, or one found from the working directory)
        is loaded first without overriding variables that are already set.
        """
        if env_file is not None:
            load_dotenv(env_file)
        else:
            load_dotenv()

        try:
            timeout = float(os.getenv("BLINKPAY_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS)))
            meta_cache_ttl = int(os.getenv("BLINKPAY_META_CACHE_TTL", str(DEFAULT_META_CACHE_TTL)))
        except ValueError as exc:
            raise BlinkInvalidValueError(f"Invalid numeric BLINKPAY setting: {exc}") from exc

        return cls(
            debit_url=os.getenv("BLINKPAY_DEBIT_URL"),
            client_id=os.getenv("BLINKPAY_CLIENT_ID"),
            client_secret=os.getenv("BLINKPAY_CLIENT_SECRET"),
            timeout=timeout,
            retry_enabled=_env_flag("BLINKPAY_RETRY_ENABLED", True),
            meta_cache_ttl=meta_cache_ttl,
        )

    def __repr__(self) -> str:
        return (
            f"BlinkDebitConfig(debit_url={self.debit_url!r}, client_id={self.client_id!r}, "
            f"timeout={self.timeout}, retry_enabled={self.retry_enabled})"
        )
