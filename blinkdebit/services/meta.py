from __future__ import annotations

import logging
from typing import List, Optional

from cachetools import TTLCache

from ..core.data_models import BankMetadata
from ..core.http_client import BlinkHttpClient
from .base import PAYMENTS_V1, ApiClientBase

logger = logging.getLogger(__name__)

META_PATH = f"{PAYMENTS_V1}/meta"
_CACHE_KEY = "meta"


class MetaApiClient(ApiClientBase):
    """Bank metadata: supported banks, flows and limits."""

    def __init__(self, http: BlinkHttpClient, cache_ttl: int = 300):
        super().__init__(http)
        # Bank capabilities change rarely; a TTL of 0 disables caching.
        self._cache: Optional[TTLCache[str, List[BankMetadata]]] = (
            TTLCache(maxsize=1, ttl=cache_ttl) if cache_ttl > 0 else None
        )

    async def get_meta(self, request_id: Optional[str] = None) -> List[BankMetadata]:
        if self._cache is not None and _CACHE_KEY in self._cache:
            logger.debug("Serving bank metadata from cache")
            return list(self._cache[_CACHE_KEY])

        metadata = await self._http.get_list(META_PATH, BankMetadata, request_id=request_id)
        logger.info("Fetched metadata for %d banks", len(metadata))
        if self._cache is not None:
            self._cache[_CACHE_KEY] = metadata
        return list(metadata)

    def invalidate_cache(self) -> None:
        if self._cache is not None:
            self._cache.clear()
