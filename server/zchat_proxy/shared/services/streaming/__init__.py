"""
Shared streaming utilities for the legacy and OpenAI-compatible endpoints.
"""

from .streaming_utils import (
    extract_text_from_chunk,
    create_openai_streaming_chunk,
    create_finish_chunk,
    create_done_frame,
    encode_raw_delta
)
from .translator import StreamTranslator, parse_event_line, STREAM_DONE

__all__ = [
    "extract_text_from_chunk",
    "create_openai_streaming_chunk",
    "create_finish_chunk",
    "create_done_frame",
    "encode_raw_delta",
    "StreamTranslator",
    "parse_event_line",
    "STREAM_DONE"
]
