"""
Common schemas used across the application.

Response bodies are camelCase to match the frontend; request bodies accept
either camelCase or snake_case field names.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema that serializes field names as camelCase."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Envelope(CamelModel):
    """Success envelope shared by every endpoint."""
    status: str = "success"


class MessageResponse(Envelope):
    """Simple message response."""
    message: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    message: str = "API is running"
    timestamp: datetime
    version: str


class UserSummary(CamelModel):
    """Minimal user info embedded in other resources."""
    id: str
    name: str
    email: Optional[str] = None
