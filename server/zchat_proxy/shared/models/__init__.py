"""
Data models for the proxy server.
"""

from .internal import Message, ZChatSession, SignedRequest

from .requests import (
    LegacyChatRequest,
    ChatMessage,
    ChatCompletionRequest,
)

from .responses import (
    CompletionChoice,
    Usage,
    ChatCompletionResponse,
    ErrorDetail,
    ErrorResponse,
)

__all__ = [
    "Message",
    "ZChatSession",
    "SignedRequest",
    "LegacyChatRequest",
    "ChatMessage",
    "ChatCompletionRequest",
    "CompletionChoice",
    "Usage",
    "ChatCompletionResponse",
    "ErrorDetail",
    "ErrorResponse",
]
