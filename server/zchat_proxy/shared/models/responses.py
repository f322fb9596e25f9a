"""
Response models for API endpoints.
"""

from typing import List, Optional, Dict
from pydantic import BaseModel, Field


class CompletionChoice(BaseModel):
    """OpenAI-compatible choice structure."""
    index: int = Field(0, description="Choice index")
    message: Dict[str, str] = Field(..., description="Message with role and content")
    finish_reason: str = Field("stop", description="Finish reason")


class Usage(BaseModel):
    """Approximate token usage."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletionResponse(BaseModel):
    """OpenAI-compatible chat completion response."""
    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "chatcmpl-0f8e4c1c2b4a4d6e9a3b5c7d9e1f2a3b",
                "object": "chat.completion",
                "created": 1677652288,
                "model": "glm-4.7",
                "choices": [{
                    "index": 0,
                    "message": {
                        "role": "assistant",
                        "content": "Hi there"
                    },
                    "finish_reason": "stop"
                }],
                "usage": {
                    "prompt_tokens": 2,
                    "completion_tokens": 2,
                    "total_tokens": 4
                }
            }
        }
    }

    id: str = Field(..., description="Unique completion ID")
    object: str = Field("chat.completion", description="Object type")
    created: int = Field(..., description="Unix timestamp")
    model: str = Field(..., description="Model used")
    choices: List[CompletionChoice] = Field(..., description="Completion choices")
    usage: Usage = Field(..., description="Token usage statistics")


class ErrorDetail(BaseModel):
    message: str
    type: Optional[str] = None


class ErrorResponse(BaseModel):
    """Structured error body used for 401 and 422 responses."""
    error: ErrorDetail
