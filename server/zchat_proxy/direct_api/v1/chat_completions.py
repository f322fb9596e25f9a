"""
Direct API v1: OpenAI-compatible chat completions.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse, StreamingResponse
from loguru import logger

from ...shared.core.dependencies import SessionBootstrapperDep, ChatServiceDep, verify_api_key
from ...shared.models.requests import ChatCompletionRequest
from ...shared.models.responses import ChatCompletionResponse
from .processors.completion_processor import CompletionProcessor


router = APIRouter(
    prefix="/v1",
    tags=["direct-api-v1"],
    dependencies=[Depends(verify_api_key)]
)


@router.post("/chat/completions", response_model=ChatCompletionResponse)
async def chat_completions(
    request: ChatCompletionRequest,
    bootstrapper: SessionBootstrapperDep,
    chat_service: ChatServiceDep
):
    """
    OpenAI-compatible chat completion.
    Only the last message is sent upstream as the prompt.
    """
    try:
        logger.info(f"Chat completion request, model={request.model}, messages={len(request.messages)}, streaming={request.stream}")

        processor = CompletionProcessor(bootstrapper, chat_service)
        chat_stream = await processor.start(request)

        if request.stream:
            return StreamingResponse(
                processor.stream_chunks(chat_stream, request.model),
                media_type="text/event-stream",
                headers={"Cache-Control": "no-cache", "Connection": "keep-alive"}
            )

        return await processor.complete(chat_stream, request)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"OpenAI-compatible API error: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": f"API error: {e}"}
        )
