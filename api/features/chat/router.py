"""Router for the Chat feature."""
import structlog
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.chat.controller import ChatController
from api.features.chat.dtos import HistoryResponse, PostMessageRequest, PostMessageResponse
from api.features.chat.exceptions import ChatRequestFailed
from api.shared.db import get_db_session
from api.shared.exceptions import InvalidRequestError, SupportChatException
from di.container import ApplicationContainer as DependencyContainer

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/message", response_model=PostMessageResponse)
@inject
async def post_message(
    request: PostMessageRequest,
    controller: ChatController = Depends(
        Provide[DependencyContainer.controllers.chat_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        return await controller.post_message(request=request, db_session=db_session)
    except SupportChatException:
        raise
    except Exception as e:
        logger.exception("Failed to handle chat message", session_id=request.session_id)
        raise ChatRequestFailed("Something went wrong. Please try again.", e) from e


@router.get("/history", response_model=HistoryResponse)
@inject
async def get_history(
    session_id: str = Query("", alias="sessionId", description="Session to load"),
    controller: ChatController = Depends(
        Provide[DependencyContainer.controllers.chat_controller]
    ),
    db_session: AsyncSession = Depends(get_db_session),
):
    session_id = session_id.strip()
    if not session_id:
        raise InvalidRequestError("sessionId is required")
    try:
        return await controller.get_history(session_id=session_id, db_session=db_session)
    except SupportChatException:
        raise
    except Exception as e:
        logger.exception("Failed to load chat history", session_id=session_id)
        raise ChatRequestFailed("Could not load history. Please refresh.", e) from e
