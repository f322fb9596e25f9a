"""
Shared streaming utilities for the legacy and OpenAI-compatible endpoints.
"""

import json
import time
from typing import Optional, Any


def extract_text_from_chunk(chunk: Any) -> Optional[str]:
    """
    Extract the text delta from one parsed upstream event payload.

    Handles the native upstream format (``data.delta_content``) first, then
    the OpenAI chat-completions passthrough (``choices[0].delta.content``).

    Args:
        chunk: Parsed JSON payload of a ``data:`` line

    Returns:
        Delta text, or None when the payload carries no text
    """
    if not isinstance(chunk, dict):
        return None

    # Native upstream format
    data = chunk.get('data')
    if isinstance(data, dict):
        delta_content = data.get('delta_content')
        if isinstance(delta_content, str) and delta_content:
            return delta_content

    # OpenAI Chat Completions format
    choices = chunk.get('choices')
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        delta = choices[0].get('delta')
        if isinstance(delta, dict):
            content = delta.get('content')
            if isinstance(content, str) and content:
                return content

    return None


def create_openai_streaming_chunk(
    content: Optional[str],
    model: str,
    chunk_id: str,
    finish_reason: Optional[str] = None,
    created: Optional[int] = None
) -> str:
    """
    Create OpenAI-compatible streaming chunk.
    Returns format expected by OpenAI SDK clients.
    """
    chunk_data = {
        "id": chunk_id,
        "object": "chat.completion.chunk",
        "created": created if created is not None else int(time.time()),
        "model": model,
        "choices": [
            {
                "index": 0,
                "delta": {"role": "assistant", "content": content} if content else {},
                "finish_reason": finish_reason
            }
        ]
    }

    return f"data: {json.dumps(chunk_data, ensure_ascii=False)}\n\n"


def create_finish_chunk(model: str, chunk_id: str, created: Optional[int] = None) -> str:
    """Final frame with an empty delta and ``finish_reason: stop``."""
    return create_openai_streaming_chunk(None, model, chunk_id, finish_reason="stop", created=created)


def create_done_frame() -> str:
    return "data: [DONE]\n\n"


def encode_raw_delta(content: str) -> bytes:
    """Legacy /chat egress: the delta text as-is."""
    return content.encode("utf-8")
