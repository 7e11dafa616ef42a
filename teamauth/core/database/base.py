"""
SQLAlchemy declarative bases and common model utilities.

Two metadata collections exist:
- Base: the main database (users, organisations, authorisations)
- TenantBase: tables created in the dedicated database of each organisation

Records leave the persistence layer as documents, plain dicts keyed by
column name with the primary key exposed as `_id`.
"""
from datetime import datetime
from typing import Any, ClassVar, Dict
from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from ulid import ULID


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ULID())


class DocumentMixin:
    """
    Conversion between ORM instances and documents.

    Models may declare `__field_aliases__` to expose a column under another
    document key, e.g. {"resource": "resource_id"} for ability conditions.
    """
    __field_aliases__: ClassVar[Dict[str, str]] = {}

    @classmethod
    def column_for(cls, key: str) -> str:
        if key == "_id":
            return "id"
        return cls.__field_aliases__.get(key, key)

    @classmethod
    def from_document(cls, data: Dict[str, Any]):
        columns = {column.key for column in cls.__table__.columns}
        values = {}
        for key, value in data.items():
            column = cls.column_for(key)
            if column in columns:
                values[column] = value
        return cls(**values)

    def update_from_document(self, data: Dict[str, Any]) -> None:
        columns = {column.key for column in self.__table__.columns}
        for key, value in data.items():
            column = self.column_for(key)
            if column in columns and column != "id":
                setattr(self, column, value)

    def to_document(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {}
        for column in self.__table__.columns:
            value = getattr(self, column.key)
            if isinstance(value, datetime):
                value = value.isoformat()
            document["_id" if column.key == "id" else column.key] = value
        return document


class Base(DeclarativeBase, DocumentMixin):
    """
    Base class for models stored in the main database.

    Usage:
        from teamauth.core.database.base import Base

        class User(Base):
            __tablename__ = "users"

            id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    """
    pass


class TenantBase(DeclarativeBase, DocumentMixin):
    """Base class for models stored in an organisation database."""
    pass


class TimestampMixin:
    """
    Mixin to add created_at and updated_at timestamps to models.

    Usage:
        class User(Base, TimestampMixin):
            __tablename__ = "users"
            id: Mapped[str] = mapped_column(String(26), primary_key=True)
    """
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
