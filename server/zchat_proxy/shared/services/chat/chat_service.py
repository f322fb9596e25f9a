"""
Chat Service - signs and sends one prompt to the upstream streaming endpoint.
"""

import time
from contextlib import aclosing
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Optional

import httpx
from loguru import logger

from ...clients.upstream import UpstreamClient
from ...core.exceptions import UpstreamProtocolError
from ...middleware.monitoring import record_upstream_request
from ...models.internal import ZChatSession
from ..signing import Signer
from ..streaming import StreamTranslator


CHAT_COMPLETIONS_PATH = "/api/v2/chat/completions"


def build_context_variables(session: ZChatSession, now: Optional[datetime] = None) -> Dict[str, str]:
    """Template variables the upstream substitutes into its system prompt."""
    now = now or datetime.now(timezone.utc)
    return {
        "{{USER_NAME}}": session.user_name,
        "{{USER_LOCATION}}": "Unknown",
        "{{CURRENT_DATETIME}}": now.strftime("%Y-%m-%d %H:%M:%S"),
        "{{CURRENT_DATE}}": now.strftime("%Y-%m-%d"),
        "{{CURRENT_TIME}}": now.strftime("%H:%M:%S"),
        "{{CURRENT_WEEKDAY}}": now.strftime("%A"),
        "{{CURRENT_TIMEZONE}}": "Europe/Paris",
        "{{USER_LANGUAGE}}": "en-US",
    }


class ChatStream:
    """
    An open upstream chat response.

    Iterate ``deltas()`` exactly once; the upstream response is closed when
    iteration ends for any reason, including the consumer going away.
    """

    def __init__(self, response: httpx.Response, session: ZChatSession, started_at: float):
        self._response = response
        self._session = session
        self._started_at = started_at
        self.translator = StreamTranslator(response.aiter_bytes(), session)

    @property
    def text(self) -> str:
        return self.translator.text

    async def deltas(self) -> AsyncGenerator[str, None]:
        success = False
        try:
            async with aclosing(self.translator.deltas()) as deltas:
                async for delta in deltas:
                    yield delta
            success = True
        finally:
            await self._response.aclose()
            record_upstream_request(self._session.model, time.time() - self._started_at, success)


class ChatService:
    """Wires Signer and StreamTranslator around one upstream chat exchange."""

    def __init__(self, upstream: UpstreamClient, signer: Optional[Signer] = None):
        self.upstream = upstream
        self.signer = signer or Signer()

    def build_payload(self, session: ZChatSession, prompt: str) -> Dict[str, Any]:
        return {
            "model": session.model,
            "chat_id": session.chat_id,
            "messages": [message.model_dump() for message in session.messages],
            "signature_prompt": prompt,
            "stream": True,
            "params": {},
            "extra": {},
            "features": {
                "image_generation": session.use_image_gen,
                "web_search": session.use_web_search,
                "auto_web_search": session.use_web_search,
                "preview_model": session.use_preview_mode,
                "flags": [],
                "enable_thinking": session.use_thinking,
            },
            "variables": build_context_variables(session),
            "background_tasks": {
                "title_generation": True,
                "tags_generation": True,
            },
        }

    async def start_chat(self, session: ZChatSession, prompt: str) -> ChatStream:
        """
        Append the prompt to the transcript, sign it and open the upstream stream.

        Raises:
            UpstreamUnavailableError: If the chat endpoint cannot be reached
            UpstreamProtocolError: If the chat endpoint answers non-2xx
        """
        session.add_message("user", prompt)

        signed = self.signer.sign(prompt, session.token, session.user_id, session.salt_key)
        headers = {
            **self.upstream.browser_headers(),
            "Authorization": f"Bearer {session.token}",
            "X-Signature": signed.signature,
            "X-FE-Version": session.fe_version,
        }
        payload = self.build_payload(session, prompt)

        logger.info(f"Sending prompt to upstream model {session.model} (chat {session.chat_id})")
        started_at = time.time()
        response = await self.upstream.open_stream(
            f"{CHAT_COMPLETIONS_PATH}?{signed.url_params}", payload, headers=headers
        )

        if not response.is_success:
            try:
                body = (await response.aread()).decode("utf-8", errors="replace")
            finally:
                await response.aclose()
            record_upstream_request(session.model, time.time() - started_at, False)
            logger.error(f"Upstream chat call failed with {response.status_code}")
            raise UpstreamProtocolError(response.status_code, body)

        return ChatStream(response, session, started_at)
