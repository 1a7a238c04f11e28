"""Message entity: one immutable line of a conversation."""
from enum import Enum

from sqlalchemy import Enum as SQLEnum, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from api.shared.entities.base import BaseEntity


class MessageSender(str, Enum):
    """Who wrote the message."""

    USER = "user"
    AI = "ai"


class Message(BaseEntity):
    """Message entity, ordered within its conversation by ``created_at``."""

    conversation_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("conversation.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sender: Mapped[MessageSender] = mapped_column(
        SQLEnum(
            MessageSender,
            native_enum=False,
            length=8,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
