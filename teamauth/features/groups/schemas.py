"""
Pydantic schemas for group-related requests and responses.
"""
from pydantic import BaseModel, ConfigDict, Field


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None


class GroupUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None


class GroupResponse(BaseModel):
    id: str = Field(..., alias="_id")
    name: str
    description: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    model_config = ConfigDict(populate_by_name=True)
