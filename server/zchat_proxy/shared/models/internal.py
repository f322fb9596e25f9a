"""
Internal domain models.
"""

import uuid
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    """One transcript entry sent upstream."""
    role: Literal["system", "user", "assistant"]
    content: str


class ZChatSession(BaseModel):
    """
    Per-request upstream session state.

    Built by the bootstrapper, mutated only by appending transcript messages
    during a single chat exchange, then discarded with the request.
    """
    token: str = ""
    user_id: str = ""
    user_name: str = "Guest"
    chat_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    model: str = "glm-4.7"
    use_web_search: bool = False
    use_thinking: bool = False
    use_image_gen: bool = False
    use_preview_mode: bool = False
    messages: List[Message] = Field(default_factory=list)
    salt_key: str = ""
    fe_version: str = ""

    def add_message(self, role: str, content: str) -> None:
        self.messages.append(Message(role=role, content=content))


class SignedRequest(BaseModel):
    """Single-use signature material for one upstream chat call."""
    model_config = ConfigDict(frozen=True)

    signature: str
    timestamp: str
    url_params: str
