"""
Pydantic schemas for user-related requests and responses.
"""
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from teamauth.features.permissions.schemas import TagRef


class UserCreate(BaseModel):
    """Schema for registering a new user."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr | None = None


class UserUpdate(BaseModel):
    """Schema for updating user information."""
    name: str | None = Field(None, min_length=1, max_length=255)
    tags: list[TagRef] | None = None


class UserResponse(BaseModel):
    """Schema for user responses."""
    id: str = Field(..., alias="_id")
    name: str
    email: str | None = None
    tags: list[TagRef] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None

    model_config = ConfigDict(populate_by_name=True)
