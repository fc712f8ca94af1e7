import json
import time
from typing import Any, Callable, Dict, List, Optional

import httpx
import jwt
import pytest

from blinkdebit import BlinkDebitClient, BlinkDebitConfig
from blinkdebit.core.polling import Poller

DEBIT_URL = "https://sandbox.debit.blinkpay.co.nz"


def make_token(expires_in: int = 3600) -> str:
    return jwt.encode({"sub": "client", "exp": int(time.time()) + expires_in}, "test-secret", algorithm="HS256")


def json_response(status_code: int, body: Any = None, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
    if body is None:
        return httpx.Response(status_code, headers=headers)
    return httpx.Response(status_code, json=body, headers=headers)


class FakeClock:
    """Monotonic clock that only moves when the poller sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class BlinkApiStub:
    """Routes requests to canned handlers keyed by (method, path)."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.routes: Dict[tuple, Callable[[httpx.Request], httpx.Response]] = {}
        self.token_calls = 0
        self.route("POST", "/oauth2/token", self._token)

    def _token(self, request: httpx.Request) -> httpx.Response:
        self.token_calls += 1
        return json_response(200, {"access_token": make_token(), "token_type": "Bearer", "expires_in": 3600})

    def route(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method, path)] = handler

    def respond(self, method: str, path: str, *responses: httpx.Response) -> None:
        """Serve the responses in order, repeating the last one."""
        queue = list(responses)

        def handler(request: httpx.Request) -> httpx.Response:
            return queue.pop(0) if len(queue) > 1 else queue[0]

        self.route(method, path, handler)

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return json_response(404, {"status": 404, "error": "Not Found", "message": f"No route {request.url.path}"})
        return handler(request)


def request_json(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content.decode())


@pytest.fixture
def config() -> BlinkDebitConfig:
    return BlinkDebitConfig(
        debit_url=DEBIT_URL,
        client_id="test-client-id",
        client_secret="test-client-secret",
        retry_enabled=False,
    )


@pytest.fixture
def api() -> BlinkApiStub:
    return BlinkApiStub()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def events() -> list:
    return []


@pytest.fixture
async def client(config, api, clock, events):
    poller = Poller(clock=clock, sleep=clock.sleep, observer=events.append)
    blink = BlinkDebitClient(config, transport=httpx.MockTransport(api), poller=poller)
    yield blink
    await blink.aclose()
