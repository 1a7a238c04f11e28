"""Repositories for conversation persistence operations."""
from __future__ import annotations

from typing import List, Optional

from api.features.chat.entities import Conversation, Message, MessageSender
from api.shared.base import BaseRepository


class ConversationRepository(BaseRepository[Conversation]):
    model = Conversation

    async def get_conversation(self, conversation_id: Optional[str]) -> Optional[Conversation]:
        return await self.get_by_id(conversation_id)

    async def create_conversation(self) -> Conversation:
        return await self.create(Conversation())


class MessageRepository(BaseRepository[Message]):
    model = Message

    async def append_message(
        self,
        conversation_id: str,
        sender: MessageSender,
        text: str,
    ) -> Message:
        return await self.create(
            Message(conversation_id=conversation_id, sender=MessageSender(sender), text=text)
        )

    async def list_messages(
        self,
        conversation_id: str,
        *,
        limit: Optional[int] = None,
    ) -> List[Message]:
        """Messages of a conversation in chronological order.

        With ``limit`` only the newest ``limit`` messages are returned, still
        oldest first.
        """
        if limit is None:
            return await self.get_by_field(
                "conversation_id", conversation_id, order_by="created_at"
            )
        newest = await self.get_by_field(
            "conversation_id", conversation_id, order_by="-created_at", limit=limit
        )
        return list(reversed(newest))
