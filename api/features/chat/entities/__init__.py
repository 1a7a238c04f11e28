"""Chat entities package: Conversation and Message ORM models."""
from api.features.chat.entities.conversation import Conversation
from api.features.chat.entities.message import Message, MessageSender

__all__ = ["Conversation", "Message", "MessageSender"]
