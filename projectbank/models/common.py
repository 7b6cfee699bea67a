"""
Common Pydantic models used across the application.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys on the wire."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = False
    message: str
    detail: Optional[str] = None
    code: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    environment: str
    timestamp: datetime = Field(default_factory=utc_now)

    # Service status
    storage_backend: str = "memory"
    storage: str = "unknown"
    projects_count: int = 0


class UserContext(BaseModel):
    """User context extracted from JWT token."""

    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: str = "authenticated"

    # Token metadata
    token_exp: Optional[datetime] = None
    token_iat: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        """Name stamped on projects this user creates."""
        return self.name or self.email or self.user_id
