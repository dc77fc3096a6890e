# app/db/base_class.py
from __future__ import annotations

"""
# ALPHA — SQLAlchemy Base & Mixins

SQLAlchemy 2.0 declarative **Base** with:
- Global **naming conventions** (stable constraint names across Postgres/SQLite)
- Automatic **snake_case `__tablename__`** (models usually set it explicitly)
- Compact `__repr__`

Usage:
    from app.db.base_class import Base

    class Podcast(Base):
        __tablename__ = "podcasts"
"""

from datetime import datetime, timezone
import re

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, declared_attr

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _to_snake(name: str) -> str:
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


def utcnow() -> datetime:
    """Timezone-aware UTC now (Python-side defaults)."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes (SQLite hands those back) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Base(DeclarativeBase):
    """Global declarative base for ALPHA models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    @declared_attr.directive
    def __tablename__(cls) -> str:  # type: ignore[override]
        return _to_snake(cls.__name__)

    def __repr__(self) -> str:  # pragma: no cover
        attrs: list[str] = []
        for key in ("id", "username", "title", "user_id"):
            if key in self.__dict__:
                attrs.append(f"{key}={self.__dict__[key]!r}")
        return f"{self.__class__.__name__}({', '.join(attrs)})"


__all__ = ["Base", "NAMING_CONVENTION", "utcnow", "as_utc"]
