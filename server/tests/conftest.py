"""
Shared fixtures: an in-memory fake of the chat.z.ai upstream.
"""

import json
from typing import Any, Dict, List, Optional

import httpx
import jwt
import pytest

from zchat_proxy.shared.clients import UpstreamClient
from zchat_proxy.shared.core.config import Settings


UPSTREAM_BASE = "https://upstream.test"


def make_token(claims: Optional[Dict[str, Any]] = None) -> str:
    """Upstream-style JWT; the proxy never checks the signature."""
    if claims is None:
        claims = {"id": "0f3c9a1e-7b55-4c2d-9e1a-2b3c4d5e6f70", "email": "guest-42@guest.com"}
    return jwt.encode(claims, "upstream-secret", algorithm="HS256")


def sse_body(deltas: List[str], done: bool = True) -> bytes:
    lines = [f"data: {json.dumps({'type': 'chat:completion', 'data': {'delta_content': d, 'phase': 'answer'}}, ensure_ascii=False)}" for d in deltas]
    if done:
        lines.append("data: [DONE]")
    return ("\n".join(lines) + "\n").encode("utf-8")


class FakeUpstream:
    """
    Routes httpx requests the way the real upstream answers them.

    Attributes can be changed per test to simulate failures; every request is
    kept in ``requests`` for assertions.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.landing_html = '<html><script src="/_app/prod-fe-1.0.212/start.js"></script></html>'
        self.landing_status = 200
        self.auth_status = 401
        self.auth_body: Dict[str, Any] = {"detail": "Not authenticated"}
        self.guest_status = 200
        self.guest_body: Dict[str, Any] = {"token": make_token()}
        self.chat_status = 200
        self.chat_body = sse_body(["Hi", " there"])
        self.unreachable: set = set()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path in self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)

        if request.method == "GET" and path == "/":
            return httpx.Response(self.landing_status, text=self.landing_html)
        if request.method == "GET" and path == "/api/v1/auths/":
            return httpx.Response(self.auth_status, json=self.auth_body)
        if request.method == "POST" and path == "/api/v1/auths/guest":
            return httpx.Response(self.guest_status, json=self.guest_body)
        if request.method == "POST" and path == "/api/v2/chat/completions":
            if self.chat_status != 200:
                return httpx.Response(self.chat_status, text="upstream rejected the request")
            return httpx.Response(200, content=self.chat_body, headers={"content-type": "text/event-stream"})
        return httpx.Response(404, text="not found")

    def chat_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/api/v2/chat/completions"]

    def last_chat_payload(self) -> Dict[str, Any]:
        return json.loads(self.chat_requests()[-1].content)


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_key=None,
        upstream_base_url=UPSTREAM_BASE,
        log_level="WARNING",
        _env_file=None,
    )


@pytest.fixture
def upstream_client(fake_upstream) -> UpstreamClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_upstream))
    return UpstreamClient(http_client, UPSTREAM_BASE)
