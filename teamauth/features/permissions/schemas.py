"""
Pydantic schemas for subjects and computed abilities.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Membership(BaseModel):
    """A role held by a subject on an organisation or a group."""
    id: str = Field(..., alias="_id")
    name: Optional[str] = None
    permissions: str = Field(..., description="Role name: member, manager or owner")
    context: Optional[str] = Field(None, description="Parent organisation ID for nested resources")

    model_config = ConfigDict(populate_by_name=True)


class TagRef(BaseModel):
    """A tag attached to a subject, identified by value and scope."""
    id: Optional[str] = Field(None, alias="_id")
    value: str
    scope: str
    context: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class Subject(BaseModel):
    """
    The principal abilities are computed for.

    Memberships mirror the authorisation records held by the subject.
    """
    id: str = Field(..., alias="_id")
    name: Optional[str] = None
    organisations: List[Membership] = Field(default_factory=list)
    groups: List[Membership] = Field(default_factory=list)
    tags: List[TagRef] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    def membership(self, scope: str, resource_id: str) -> Optional[Membership]:
        for membership in getattr(self, scope, []):
            if membership.id == resource_id:
                return membership
        return None


class RuleResponse(BaseModel):
    operations: List[str]
    resource_types: List[str]
    conditions: Optional[Dict[str, Any]] = None
    inverted: bool = False


class AbilitiesResponse(BaseModel):
    subject_id: Optional[str]
    rules: List[RuleResponse]
