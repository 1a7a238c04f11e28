"""Shared DTOs for the support chat API."""
from typing import Any, Dict, List

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class BaseDTO(BaseModel):
    """Base DTO: snake_case in Python, camelCase on the wire."""

    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = to_camel


class HealthCheckResponse(BaseDTO):
    """Health check response DTO."""
    ok: bool = Field(description="Whether the service is up")


class ReadinessResponse(BaseDTO):
    """Readiness response DTO."""
    ok: bool = Field(description="Whether the service can serve chat requests")
    database: str = Field(description="Database schema state")
    missing_tables: List[str] = Field(default_factory=list)


class ErrorResponse(BaseDTO):
    """Error response DTO."""
    error: Any = Field(description="Error message or field error map")
    details: Dict[str, Any] | None = Field(default=None, description="Debug details outside prod")
