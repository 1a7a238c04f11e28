"""Shared exceptions for the support chat API."""
from typing import Any, Dict, Optional


class SupportChatException(Exception):
    """Base exception for the support chat API."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidRequestError(SupportChatException):
    """Raised when a request is missing or has malformed parameters."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class StoreNotInitializedError(SupportChatException):
    """Raised when the database is reachable but its tables do not exist yet."""

    def __init__(self, missing_tables: Optional[list[str]] = None):
        super().__init__(
            "Server database is not initialized. Run `alembic upgrade head`, then retry.",
            "STORE_NOT_INITIALIZED",
            {"missing_tables": missing_tables or []},
        )
