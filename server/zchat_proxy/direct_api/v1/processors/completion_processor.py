"""
Completion Processor - turns upstream deltas into OpenAI chat-completion output.
"""

import time
import uuid
from typing import AsyncGenerator

from loguru import logger

from ....shared.models.internal import ZChatSession
from ....shared.models.requests import ChatCompletionRequest
from ....shared.models.responses import ChatCompletionResponse, CompletionChoice, Usage
from ....shared.services.chat import ChatService, ChatStream
from ....shared.services.session import SessionBootstrapper
from ....shared.services.streaming import (
    create_openai_streaming_chunk,
    create_finish_chunk,
    create_done_frame
)
from ....shared.services.token_counter import token_counter


def new_completion_id() -> str:
    return f"chatcmpl-{uuid.uuid4().hex}"


class CompletionProcessor:
    """
    Handles one OpenAI-style request end to end.
    ONLY orchestrates - bootstrapping, signing and transport live in the services.
    """

    def __init__(self, bootstrapper: SessionBootstrapper, chat_service: ChatService):
        self.bootstrapper = bootstrapper
        self.chat_service = chat_service

    async def prepare_session(self, request: ChatCompletionRequest) -> ZChatSession:
        """
        Bootstrap a session and infer feature flags from the conversation.

        Any message mentioning "search" enables web search, and "think"
        enables thinking mode.
        """
        session = await self.bootstrapper.bootstrap()
        session.model = request.model
        session.use_web_search = request.mentions("search")
        session.use_thinking = request.mentions("think")
        logger.debug(f"Inferred flags: web_search={session.use_web_search}, thinking={session.use_thinking}")
        return session

    async def start(self, request: ChatCompletionRequest) -> ChatStream:
        session = await self.prepare_session(request)
        return await self.chat_service.start_chat(session, request.prompt)

    async def stream_chunks(self, chat_stream: ChatStream, model: str) -> AsyncGenerator[str, None]:
        """SSE frames: one per delta, then a stop frame, then [DONE]."""
        completion_id = new_completion_id()
        created = int(time.time())

        async for delta in chat_stream.deltas():
            yield create_openai_streaming_chunk(delta, model, completion_id, created=created)

        yield create_finish_chunk(model, completion_id, created=created)
        yield create_done_frame()

    async def complete(self, chat_stream: ChatStream, request: ChatCompletionRequest) -> ChatCompletionResponse:
        """Buffer the whole reply into one chat.completion object."""
        chunks = [delta async for delta in chat_stream.deltas()]
        full_content = "".join(chunks)

        prompt_tokens, completion_tokens, total_tokens = token_counter.count_total_tokens(
            (message.text for message in request.messages), full_content
        )
        logger.info(f"Completion finished: {len(chunks)} deltas, ~{total_tokens} tokens")

        return ChatCompletionResponse(
            id=new_completion_id(),
            created=int(time.time()),
            model=request.model,
            choices=[CompletionChoice(
                index=0,
                message={"role": "assistant", "content": full_content},
                finish_reason="stop"
            )],
            usage=Usage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=total_tokens
            )
        )
