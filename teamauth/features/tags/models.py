"""
Tag model for labelling members of an organisation.
"""
from typing import Any, Dict, Mapping
from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from teamauth.core.database.base import TenantBase, TimestampMixin, generate_ulid


class Tag(TenantBase, TimestampMixin):
    """
    Tag known by an organisation.

    Examples: value "Paris" in scope "locations", value "nurse" in scope "skills".
    Subjects carry copies of the tags attached to them.
    """
    __tablename__ = "tags"
    __table_args__ = (UniqueConstraint("value", "scope", name="uq_tag_value_scope"),)

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    value: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    scope: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    icon: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, value={self.value!r}, scope={self.scope!r})>"


def is_tag_equal(tag: Mapping[str, Any], other: Mapping[str, Any]) -> bool:
    """Tags are the same when value and scope match, whatever their IDs."""
    return tag.get("value") == other.get("value") and tag.get("scope") == other.get("scope")


def tag_reference(tag: Dict[str, Any], context: str) -> Dict[str, Any]:
    """Copy of an organisation tag as attached to a subject."""
    return {"_id": tag["_id"], "value": tag["value"], "scope": tag["scope"], "context": context}
