"""Controller for the Chat feature."""
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.chat.dtos import (
    HistoryResponse,
    MessageDTO,
    PostMessageRequest,
    PostMessageResponse,
)
from api.features.chat.entities import MessageSender
from api.features.chat.repository import ConversationRepository, MessageRepository
from api.shared.utils import preview
from assistant.reply_generator import ReplyGenerator

logger = structlog.get_logger(__name__)


class ChatController:
    """Controller handling one user message → one assistant reply."""

    def __init__(self, reply_generator: ReplyGenerator, history_limit: int = 30) -> None:
        self.reply_generator = reply_generator
        self.history_limit = history_limit

    async def post_message(
        self,
        *,
        request: PostMessageRequest,
        db_session: AsyncSession,
    ) -> PostMessageResponse:
        conversations = ConversationRepository(db_session)
        messages = MessageRepository(db_session)

        conversation = None
        if request.session_id:
            conversation = await conversations.get_conversation(request.session_id)
        if conversation is None:
            conversation = await conversations.create_conversation()
            logger.info(
                "Conversation created",
                session_id=conversation.id,
                requested_session_id=request.session_id,
            )

        await messages.append_message(conversation.id, MessageSender.USER, request.message)
        history = await messages.list_messages(conversation.id, limit=self.history_limit)

        reply = await self.reply_generator.generate_reply(history)

        await messages.append_message(conversation.id, MessageSender.AI, reply)
        logger.info(
            "Reply stored",
            session_id=conversation.id,
            history_size=len(history),
            message=preview(request.message),
        )
        return PostMessageResponse(reply=reply, session_id=conversation.id)

    async def get_history(
        self,
        *,
        session_id: str,
        db_session: AsyncSession,
        limit: Optional[int] = None,
    ) -> HistoryResponse:
        conversation = await ConversationRepository(db_session).get_conversation(session_id)
        if conversation is None:
            return HistoryResponse(session_id=session_id, messages=[])

        rows = await MessageRepository(db_session).list_messages(conversation.id, limit=limit)
        return HistoryResponse(
            session_id=session_id,
            messages=[MessageDTO.model_validate(row) for row in rows],
        )
