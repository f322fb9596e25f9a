"""
Request models for API endpoints.
"""

from typing import List, Optional, Dict, Any, Union
from pydantic import BaseModel, Field, field_validator


class LegacyChatRequest(BaseModel):
    """Request body for the legacy raw-text /chat endpoint."""
    prompt: str = Field(..., description="Prompt sent to the upstream model")
    model: str = Field(default="glm-4.7", description="Upstream model identifier")
    web_search: bool = Field(default=False, description="Enable upstream web search")
    thinking: bool = Field(default=False, description="Enable upstream thinking mode")
    image_gen: bool = Field(default=False, description="Enable upstream image generation")
    preview_mode: bool = Field(default=False, description="Enable upstream preview model")


class ChatMessage(BaseModel):
    """OpenAI-style chat message."""
    role: str = Field(..., description="Message role (system, user or assistant)")
    content: Union[str, List[Dict[str, Any]], None] = Field(default="", description="Message content")

    @property
    def text(self) -> str:
        """Flatten string or content-part content into plain text."""
        if self.content is None:
            return ""
        if isinstance(self.content, str):
            return self.content
        return "".join(
            part.get("text", "") for part in self.content
            if isinstance(part, dict) and part.get("type", "text") == "text"
        )


class ChatCompletionRequest(BaseModel):
    """OpenAI-compatible chat completion request."""
    model: str = Field(default="glm-4.7", description="Upstream model identifier")
    messages: List[ChatMessage] = Field(..., description="Conversation messages")
    temperature: Optional[float] = Field(default=0.7, description="Accepted for compatibility, not forwarded")
    max_tokens: Optional[int] = Field(default=2000, description="Accepted for compatibility, not forwarded")
    stream: bool = Field(default=False, description="Whether to stream the response")

    @field_validator('messages')
    @classmethod
    def validate_messages_not_empty(cls, v):
        """The last message is the prompt, so at least one is required."""
        if not v:
            raise ValueError("messages must contain at least one message")
        return v

    @property
    def prompt(self) -> str:
        return self.messages[-1].text

    def mentions(self, keyword: str) -> bool:
        """Case-insensitive substring check over every message."""
        keyword = keyword.lower()
        return any(keyword in message.text.lower() for message in self.messages)
