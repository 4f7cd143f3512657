"""
Base models and mixins for common database fields.
These patterns are reused across all tables to maintain consistency.
"""

from datetime import datetime
from typing import Any
from sqlalchemy import Column, DateTime, Uuid, inspect
import enum
import uuid


class TimestampMixin:
    """
    Adds created_at and updated_at fields to any model.
    SQLAlchemy handles these automatically - no manual updates needed.
    """
    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True
    )

    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )


class UUIDMixin:
    """
    Uses UUIDs instead of auto-incrementing integers for primary keys.
    Human-facing identifiers (policy/claim numbers) are allocated separately.
    """
    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False
    )


class AuditMixin:
    """
    Tracks which user created or modified a record.
    """
    created_by = Column(Uuid(as_uuid=True), nullable=True)
    updated_by = Column(Uuid(as_uuid=True), nullable=True)


def to_dict(obj: Any) -> dict:
    """
    Snapshot of a model's mapped columns, keyed by attribute name
    (Activity.activity_metadata is stored in a column called "metadata").
    Enum members are flattened to their values.
    Used for the policy snapshot handed to document generation.
    """
    snapshot = {}
    for attr in inspect(obj).mapper.column_attrs:
        value = getattr(obj, attr.key)
        snapshot[attr.key] = value.value if isinstance(value, enum.Enum) else value
    return snapshot
