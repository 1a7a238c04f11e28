"""Exceptions for the Chat feature."""
from api.shared.exceptions import SupportChatException


class ChatException(SupportChatException):
    """Base exception for chat operations."""

    pass


class ChatRequestFailed(ChatException):
    """Raised when a chat request fails for a reason the user cannot fix."""

    def __init__(self, message: str, cause: Exception):
        super().__init__(
            message,
            "CHAT_REQUEST_FAILED",
            {"message": str(cause), "name": type(cause).__name__},
        )
