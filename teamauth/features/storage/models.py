"""
Storage object metadata, stored in the database of its organisation.
"""
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from teamauth.core.database.base import TenantBase, TimestampMixin, generate_ulid


class StorageObject(TenantBase, TimestampMixin):
    __tablename__ = "storage"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    key: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    content_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<StorageObject(id={self.id}, key={self.key!r})>"
