"""Base models and mixins for SQLModel schemas.

Usage:
    - Database models (table=True) inherit from composed base classes
    - Response schemas use TimestampResponseMixin for timestamp fields
    - List responses use PaginatedResponse[T] generic

Example:
    class Translation(TranslationBase, SerialTimestampedTable, table=True):
        ...
"""

from datetime import UTC, datetime
from typing import Generic, TypeVar
import uuid

from sqlmodel import Field, SQLModel

T = TypeVar("T")


def utcnow() -> datetime:
    return datetime.now(UTC)


class UUIDPrimaryKeyMixin(SQLModel):
    """UUID primary key, for rows that are never range-scanned."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)


class SerialPrimaryKeyMixin(SQLModel):
    """Database-assigned, monotonically increasing integer primary key.

    Use for tables scanned in key order: new rows always sort last.
    """

    id: int | None = Field(default=None, primary_key=True)


class TimestampMixin(SQLModel):
    """Created/updated timestamps for audit trail."""

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class BaseTable(UUIDPrimaryKeyMixin):
    """Base for simple tables (ID only).

    Use for: User
    """

    pass


class SerialTimestampedTable(SerialPrimaryKeyMixin, TimestampMixin):
    """Base for ordered tables with timestamps.

    Use for: Translation
    """

    pass


class TimestampResponseMixin(SQLModel):
    """For Public/Response schemas that include timestamps."""

    created_at: datetime
    updated_at: datetime


class PaginatedResponse(SQLModel, Generic[T]):
    """Standard paginated response wrapper.

    Example:
        @router.get("/search", response_model=PaginatedResponse[TranslationPublic])
        def search(...):
            return PaginatedResponse(data=rows, count=total)
    """

    data: list[T]
    count: int
