"""
Pydantic schemas for authorisation requests and responses.
"""
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field


Scope = Literal["organisations", "groups"]
Permissions = Literal["member", "manager", "owner"]


class AuthorisationCreate(BaseModel):
    """
    Grant a role on a resource to a subject.

    Groups are resolved within their organisation given as `context`.
    """
    scope: Scope
    permissions: Permissions
    subject_id: str
    resource_id: str
    context: str | None = None


class AuthorisationResponse(BaseModel):
    id: str = Field(..., alias="_id")
    subject_id: str
    subjects_service: str
    resource_id: str
    scope: str
    permissions: str
    context: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    model_config = ConfigDict(populate_by_name=True)
