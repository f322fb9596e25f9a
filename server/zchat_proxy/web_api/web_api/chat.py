"""
Legacy chat endpoint: streams the assistant reply as raw text.
"""

from typing import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse, StreamingResponse
from loguru import logger

from ...shared.core.dependencies import SessionBootstrapperDep, ChatServiceDep, verify_api_key
from ...shared.models.requests import LegacyChatRequest
from ...shared.services.chat import ChatStream
from ...shared.services.streaming import encode_raw_delta


router = APIRouter(
    tags=["chat"],
    dependencies=[Depends(verify_api_key)]
)


async def _raw_text_stream(chat_stream: ChatStream) -> AsyncGenerator[bytes, None]:
    async for delta in chat_stream.deltas():
        yield encode_raw_delta(delta)


@router.post("/chat")
async def chat(
    request: LegacyChatRequest,
    bootstrapper: SessionBootstrapperDep,
    chat_service: ChatServiceDep
):
    """
    Send one prompt upstream and stream back the reply text.
    A new upstream session is created for every call.
    """
    try:
        logger.info(f"Legacy chat request, model={request.model}, search={request.web_search}, thinking={request.thinking}")

        session = await bootstrapper.bootstrap()
        session.model = request.model
        session.use_web_search = request.web_search
        session.use_thinking = request.thinking
        session.use_image_gen = request.image_gen
        session.use_preview_mode = request.preview_mode

        chat_stream = await chat_service.start_chat(session, request.prompt)

        return StreamingResponse(
            _raw_text_stream(chat_stream),
            media_type="text/plain; charset=utf-8",
            headers={"Cache-Control": "no-cache"}
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Chat error: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": f"Chat error: {e}"}
        )
