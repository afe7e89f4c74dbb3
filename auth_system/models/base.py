"""SQLAlchemy declarative Base and shared model helpers."""

from datetime import UTC, datetime

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass


def utcnow() -> datetime:
    """Timezone-aware current time, used for column defaults."""
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)
