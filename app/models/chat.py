"""
app/models/chat.py

Purpose: Survey chat document model

- One chat per user
- Ordered, role-tagged messages
- Version counter for conditional saves
"""

import uuid
from typing import List, Literal

from pydantic import BaseModel, Field, ConfigDict

from utils.time_utils import now_ms


def new_message_id() -> str:
    return uuid.uuid4().hex


class Message(BaseModel):
    id: str = Field(default_factory=new_message_id)
    role: Literal["user", "assistant"]
    content: str
    created_at: int = Field(default_factory=now_ms)


class Chat(BaseModel):
    model_config = ConfigDict(extra="ignore")

    chat_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    messages: List[Message] = Field(default_factory=list)
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)
    version: int = 0

    def ordered_messages(self) -> List[Message]:
        """Messages by creation time; ties keep insertion order."""
        return sorted(self.messages, key=lambda m: m.created_at)

    def append(self, role: str, content: str) -> Message:
        # Never earlier than the last message, so clock skew cannot reorder history
        last = self.messages[-1].created_at if self.messages else 0
        message = Message(role=role, content=content, created_at=max(now_ms(), last))
        self.messages.append(message)
        return message
