"""
Base model mixin and portable column types.

Models combine the declarative Base with BaseModel:

    class Scan(Base, BaseModel):
        __tablename__ = "scans"

GUID and JSONType map to native UUID/JSONB on PostgreSQL and to
CHAR(32)/JSON elsewhere, so the same models run against SQLite in tests.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import CHAR, JSON, Column, DateTime, TypeDecorator
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID


def utcnow() -> datetime:
    """Naive UTC timestamp (columns are stored without timezone)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class GUID(TypeDecorator):
    """Platform-independent GUID type."""
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID())
        return dialect.type_descriptor(CHAR(32))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(str(value))
        if dialect.name == "postgresql":
            return value
        return "%.32x" % value.int

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(value)
        return value


JSONType = JSON().with_variant(JSONB(), "postgresql")


class BaseModel:
    """
    Common columns shared by all persisted entities.

    Attributes:
        id: Primary key (UUID4)
        created_at: Creation timestamp, used for chronological ordering
        updated_at: Last modification timestamp
    """

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
