from typing import Annotated

from pydantic import StringConstraints, field_validator
from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel

from translation_service.core.base_models import (
    PaginatedResponse,
    SerialTimestampedTable,
    TimestampResponseMixin,
)

MAX_TAGS = 32

# ASCII-only so a tag matches its JSON-encoded form byte for byte
Tag = Annotated[
    str, StringConstraints(min_length=1, max_length=50, pattern=r"^[A-Za-z0-9_.:-]+$")
]


def _dedupe_tags(tags: list[str] | None) -> list[str] | None:
    if tags is None:
        return None
    return list(dict.fromkeys(tags))


class TranslationBase(SQLModel):
    locale: str = Field(min_length=2, max_length=16, index=True)
    key: str = Field(min_length=1, max_length=255, index=True)
    value: str = Field(min_length=1)


class Translation(TranslationBase, SerialTimestampedTable, table=True):
    """A localized string, unique per (locale, key)."""

    __table_args__ = (
        UniqueConstraint("locale", "key", name="uq_translation_locale_key"),
    )

    tags: list[str] | None = Field(default=None, sa_column=Column(JSON, nullable=True))


class TranslationCreate(TranslationBase):
    tags: list[Tag] | None = Field(default=None, max_length=MAX_TAGS)

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: list[str] | None) -> list[str] | None:
        return _dedupe_tags(v)


class TranslationUpdate(SQLModel):
    locale: str | None = Field(default=None, min_length=2, max_length=16)
    key: str | None = Field(default=None, min_length=1, max_length=255)
    value: str | None = Field(default=None, min_length=1)
    tags: list[Tag] | None = Field(default=None, max_length=MAX_TAGS)

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: list[str] | None) -> list[str] | None:
        return _dedupe_tags(v)


class TranslationPublic(TranslationBase, TimestampResponseMixin):
    id: int
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def none_as_empty(cls, v: list[str] | None) -> list[str]:
        return v or []


TranslationsPublic = PaginatedResponse[TranslationPublic]


class TranslationSearch(SQLModel):
    """Search filters; every field is optional and filters combine with AND."""

    key: str | None = None
    value: str | None = None
    tags: list[str] | None = None
    locale: str | None = None
