"""
Authorisation model linking a subject to a resource with a role.
"""
from typing import ClassVar, Dict
from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from teamauth.core.database.base import Base, TimestampMixin, generate_ulid


class Authorisation(Base, TimestampMixin):
    """
    One role of one subject on one resource.

    Subjects and resources are referenced by ID only, records follow the
    lifecycle of the resource. `context` is the parent organisation of a
    nested resource such as a group.
    """
    __tablename__ = "authorisations"
    __table_args__ = (
        UniqueConstraint("subject_id", "resource_id", "scope", name="uq_authorisation_subject_resource_scope"),
    )
    __field_aliases__: ClassVar[Dict[str, str]] = {"resource": "resource_id", "subject": "subject_id"}

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    subject_id: Mapped[str] = mapped_column(String(26), nullable=False, index=True)
    subjects_service: Mapped[str] = mapped_column(String(100), nullable=False, default="users")
    resource_id: Mapped[str] = mapped_column(String(26), nullable=False, index=True)
    scope: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # organisations, groups
    permissions: Mapped[str] = mapped_column(String(20), nullable=False)  # member, manager, owner
    context: Mapped[str | None] = mapped_column(String(26), nullable=True, index=True)

    def __repr__(self) -> str:
        return (
            f"<Authorisation(id={self.id}, subject={self.subject_id}, "
            f"resource={self.scope}:{self.resource_id}, permissions={self.permissions})>"
        )
