"""
User model with ULID primary keys.
"""
from typing import Any, Dict, List
from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from teamauth.core.database.base import Base, TimestampMixin, generate_ulid


class User(Base, TimestampMixin):
    """
    User model, the subject abilities are computed for.

    Memberships are not stored here, they are read from the authorisations
    referencing the user. Tags are kept inline as {_id, value, scope, context}.
    """
    __tablename__ = "users"

    # Primary key using ULID (Universally Unique Lexicographically Sortable Identifier)
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True, index=True)

    tags: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r})>"
