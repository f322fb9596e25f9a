"""
Tests for the signed upstream chat exchange.
"""

from datetime import datetime, timezone

import pytest

from zchat_proxy.shared.core.exceptions import UpstreamProtocolError, UpstreamUnavailableError
from zchat_proxy.shared.models.internal import ZChatSession
from zchat_proxy.shared.services.chat import ChatService, build_context_variables
from zchat_proxy.shared.services.signing import Signer


FIXED_TS = 1_700_000_123_456
REQUEST_ID = "1b4e28ba-2fa1-4d3b-a3f5-ef19b5a7633b"


class TestChatService:
    """Request shape, error mapping and transcript handling."""

    @pytest.fixture
    def signer(self):
        return Signer(clock=lambda: FIXED_TS, request_id_factory=lambda: REQUEST_ID)

    @pytest.fixture
    def chat_service(self, upstream_client, signer):
        return ChatService(upstream_client, signer)

    @pytest.fixture
    def session(self):
        return ZChatSession(
            token="guest-token",
            user_id="user-1",
            user_name="alice",
            salt_key="secret",
            fe_version="prod-fe-1.0.212",
            use_web_search=True,
            use_thinking=True,
        )

    @pytest.mark.asyncio
    async def test_request_is_signed(self, chat_service, signer, session, fake_upstream):
        stream = await chat_service.start_chat(session, "Hello")
        _ = [d async for d in stream.deltas()]

        request = fake_upstream.chat_requests()[-1]
        expected = signer.sign("Hello", "guest-token", "user-1", "secret")

        assert request.method == "POST"
        assert request.headers["Authorization"] == "Bearer guest-token"
        assert request.headers["X-Signature"] == expected.signature
        assert request.headers["X-FE-Version"] == "prod-fe-1.0.212"
        assert request.headers["Origin"] == "https://upstream.test"

        params = request.url.params
        assert params["signature_timestamp"] == str(FIXED_TS)
        assert params["user_id"] == "user-1"
        assert params["token"] == "guest-token"

    @pytest.mark.asyncio
    async def test_payload_carries_transcript_and_features(self, chat_service, session, fake_upstream):
        stream = await chat_service.start_chat(session, "Hello")
        _ = [d async for d in stream.deltas()]

        payload = fake_upstream.last_chat_payload()
        assert payload["model"] == "glm-4.7"
        assert payload["chat_id"] == session.chat_id
        assert payload["messages"] == [{"role": "user", "content": "Hello"}]
        assert payload["signature_prompt"] == "Hello"
        assert payload["stream"] is True
        assert payload["features"] == {
            "image_generation": False,
            "web_search": True,
            "auto_web_search": True,
            "preview_model": False,
            "flags": [],
            "enable_thinking": True,
        }
        assert payload["variables"]["{{USER_NAME}}"] == "alice"
        assert payload["background_tasks"] == {"title_generation": True, "tags_generation": True}

    @pytest.mark.asyncio
    async def test_transcript_has_user_then_assistant(self, chat_service, session):
        stream = await chat_service.start_chat(session, "Hello")
        assert [m.role for m in session.messages] == ["user"]

        deltas = [d async for d in stream.deltas()]

        assert deltas == ["Hi", " there"]
        assert [(m.role, m.content) for m in session.messages] == [("user", "Hello"), ("assistant", "Hi there")]
        assert stream.text == "Hi there"

    @pytest.mark.asyncio
    async def test_consumer_closing_early_finishes_transcript_and_response(self, chat_service, session):
        """A client disconnect records the partial reply before the call returns."""
        stream = await chat_service.start_chat(session, "Hello")

        gen = stream.deltas()
        assert await gen.__anext__() == "Hi"
        await gen.aclose()

        assert [(m.role, m.content) for m in session.messages] == [("user", "Hello"), ("assistant", "Hi")]
        assert stream._response.is_closed

    @pytest.mark.asyncio
    async def test_response_closed_after_full_read(self, chat_service, session):
        stream = await chat_service.start_chat(session, "Hello")
        _ = [d async for d in stream.deltas()]
        assert stream._response.is_closed

    @pytest.mark.asyncio
    async def test_error_status_raises_protocol_error(self, chat_service, session, fake_upstream):
        fake_upstream.chat_status = 405
        with pytest.raises(UpstreamProtocolError) as exc_info:
            await chat_service.start_chat(session, "Hello")

        assert exc_info.value.status_code == 405
        assert str(exc_info.value) == "Error 405: upstream rejected the request"

    @pytest.mark.asyncio
    async def test_unreachable_chat_endpoint(self, chat_service, session, fake_upstream):
        fake_upstream.unreachable.add("/api/v2/chat/completions")
        with pytest.raises(UpstreamUnavailableError):
            await chat_service.start_chat(session, "Hello")


def test_context_variables():
    now = datetime(2024, 3, 5, 14, 7, 9, tzinfo=timezone.utc)
    variables = build_context_variables(ZChatSession(user_name="alice"), now)

    assert variables["{{USER_NAME}}"] == "alice"
    assert variables["{{CURRENT_DATETIME}}"] == "2024-03-05 14:07:09"
    assert variables["{{CURRENT_DATE}}"] == "2024-03-05"
    assert variables["{{CURRENT_TIME}}"] == "14:07:09"
    assert variables["{{CURRENT_WEEKDAY}}"] == "Tuesday"
    assert variables["{{CURRENT_TIMEZONE}}"] == "Europe/Paris"
