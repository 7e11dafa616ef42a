"""
Organisation model.

An organisation is a tenant: it owns a dedicated database holding its
groups, tags and storage.
"""
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from teamauth.core.database.base import Base, TimestampMixin, generate_ulid


class Organisation(Base, TimestampMixin):
    __tablename__ = "organisations"

    # A private organisation reuses the ID of its user
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    def __repr__(self) -> str:
        return f"<Organisation(id={self.id}, name={self.name!r})>"
