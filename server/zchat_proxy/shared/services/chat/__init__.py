"""
Upstream chat exchange.
"""

from .chat_service import ChatService, ChatStream, build_context_variables

__all__ = [
    "ChatService",
    "ChatStream",
    "build_context_variables"
]
