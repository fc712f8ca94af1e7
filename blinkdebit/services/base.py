from __future__ import annotations

from typing import Any, Union
from uuid import UUID

from ..core.exceptions import BlinkInvalidValueError
from ..core.http_client import BlinkHttpClient

PAYMENTS_V1 = "/payments/v1"

ResourceId = Union[str, UUID]


def require_id(value: ResourceId, label: str) -> str:
    if value is None or not str(value).strip():
        raise BlinkInvalidValueError(f"{label} must not be null")
    return str(value).strip()


def require(value: Any, label: str) -> Any:
    if value is None:
        raise BlinkInvalidValueError(f"{label} must not be null")
    return value


class ApiClientBase:
    def __init__(self, http: BlinkHttpClient):
        self._http = http
