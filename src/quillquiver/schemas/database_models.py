"""
Database Schema Models for the QuillQuiver notes backend.

This module contains Pydantic models for the rows and identities returned by
the remote service, providing validation and serialization for notes and
users.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict


class BaseEntity(BaseModel):
    """Base model for all database entities."""
    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        frozen=False,
    )


class UserIdentity(BaseEntity):
    """Authenticated user as reported by the auth backend."""
    id: str
    email: Optional[str] = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        """Normalize email casing and whitespace."""
        if v is None:
            return None
        return v.strip().lower()


class Note(BaseEntity):
    """Note row model."""
    id: str
    title: str = ""
    content: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    owner: str = Field(..., description="Id of the owning user (user_id column)")

    @model_validator(mode='before')
    @classmethod
    def map_owner_column(cls, data: Any) -> Any:
        """Accept the backend's ``user_id`` column as ``owner``."""
        if isinstance(data, dict) and 'owner' not in data and 'user_id' in data:
            data = dict(data)
            data['owner'] = data.pop('user_id')
        return data

    @model_validator(mode='after')
    def validate_timestamps(self) -> 'Note':
        """Validate updated_at is not before created_at."""
        if self.updated_at < self.created_at:
            raise ValueError('updated_at must not be earlier than created_at')
        return self

    @property
    def content_text(self) -> str:
        """Content with absent content treated as empty."""
        return self.content or ""

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match against title or content."""
        needle = query.lower()
        return needle in self.title.lower() or needle in self.content_text.lower()


class NoteUpdate(BaseEntity):
    """Partial note update model."""
    title: Optional[str] = None
    content: Optional[str] = None

    def to_changes(self) -> Dict[str, Any]:
        """Only the fields that were explicitly set."""
        return self.model_dump(exclude_unset=True)
