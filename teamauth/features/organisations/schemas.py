"""
Pydantic schemas for organisation-related requests and responses.
"""
from pydantic import BaseModel, ConfigDict, Field


class OrganisationCreate(BaseModel):
    """Schema for creating a new organisation, the creator becomes its owner."""
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)


class OrganisationUpdate(BaseModel):
    """Schema for updating organisation information."""
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)


class OrganisationResponse(BaseModel):
    """Schema for organisation responses."""
    id: str = Field(..., alias="_id")
    name: str
    description: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    model_config = ConfigDict(populate_by_name=True)
