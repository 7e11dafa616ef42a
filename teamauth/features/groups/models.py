"""
Group model, stored in the database of its organisation.
"""
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from teamauth.core.database.base import TenantBase, TimestampMixin, generate_ulid


class Group(TenantBase, TimestampMixin):
    """
    Group of members inside an organisation.

    Membership and roles are held by authorisations scoped to 'groups'.
    """
    __tablename__ = "groups"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Group(id={self.id}, name={self.name!r})>"
