"""DTOs for the Chat feature."""
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_core import PydanticCustomError

from api.features.chat.entities import MessageSender
from api.shared.dtos import BaseDTO
from core.settings import SETTINGS


class PostMessageRequest(BaseDTO):
    """Send a user message, optionally continuing an existing session."""

    message: str = Field(description="User message (1..4000 characters after trimming)")
    session_id: Optional[str] = Field(default=None, description="Existing session id")

    @field_validator("message")
    @classmethod
    def validate_message(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise PydanticCustomError("message_empty", "Message cannot be empty")
        if len(value) > SETTINGS.CHAT.CHAT_MAX_MESSAGE_LENGTH:
            raise PydanticCustomError("message_too_long", "Message is too long")
        return value

    @field_validator("session_id")
    @classmethod
    def validate_session_id(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise PydanticCustomError("session_id_empty", "Session id cannot be empty")
        return value


class PostMessageResponse(BaseDTO):
    """Reply to a posted message."""

    reply: str = Field(description="Assistant reply")
    session_id: str = Field(description="Session the exchange was stored in")


class MessageDTO(BaseDTO):
    """Stored chat message."""

    id: str = Field(description="Message identifier")
    conversation_id: str = Field(description="Owning conversation")
    sender: MessageSender = Field(description="Message sender: user or ai")
    text: str = Field(description="Message text")
    created_at: datetime = Field(description="Creation timestamp")


class HistoryResponse(BaseDTO):
    """Full history of a session, oldest first."""

    session_id: str = Field(description="Requested session id")
    messages: List[MessageDTO] = Field(description="Messages in chronological order")
