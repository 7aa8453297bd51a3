"""User domain models."""

from typing import Any

from pydantic import BaseModel, Field


class User(BaseModel):
    """User data transfer object. The password hash is never carried here."""

    id: str = Field(..., description="Unique user ID from database")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Login email (lowercase)")
    created: str = Field(..., description="Creation timestamp (ISO format)")

    def to_api(self) -> dict[str, Any]:
        """Public view of the user returned by auth endpoints."""
        return {"id": self.id, "name": self.name, "email": self.email}
