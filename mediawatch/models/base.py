"""Base model class for all database models."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class DBModel(BaseModel):
    """Base model for all database models."""

    id: Optional[UUID] = Field(None, description="Primary key")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")

    class Config:
        """Pydantic config."""

        from_attributes = True
