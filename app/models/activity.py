"""
Activity model - append-only audit trail of every mutating operation.
"""

from sqlalchemy import Column, String, JSON, Text, Uuid, Enum as SQLEnum, Index, event
import enum

from app.core.database import Base
from app.models.base import TimestampMixin, UUIDMixin


class ActivityAction(str, enum.Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    STATUS_CHANGED = "STATUS_CHANGED"
    REPRICED = "REPRICED"
    FRAUD_ALERT_RAISED = "FRAUD_ALERT_RAISED"
    DOCUMENTS_REQUESTED = "DOCUMENTS_REQUESTED"


class Activity(Base, UUIDMixin, TimestampMixin):
    """
    One audit entry. Rows are written once and never updated or deleted.
    """
    __tablename__ = "activities"

    entity_type = Column(String(20), nullable=False, comment="POLICY, CLAIM")
    entity_id = Column(Uuid(as_uuid=True), nullable=False)

    user_id = Column(
        Uuid(as_uuid=True),
        nullable=True,
        comment="Acting user; empty for system actions"
    )

    action = Column(SQLEnum(ActivityAction), nullable=False, index=True)
    description = Column(Text, nullable=False)

    activity_metadata = Column(
        "metadata",
        JSON,
        nullable=True
    )

    __table_args__ = (
        Index('ix_activities_entity', 'entity_type', 'entity_id'),
    )

    def __repr__(self) -> str:
        return f"<Activity {self.entity_type} {self.action.value}>"


class ImmutableActivityError(RuntimeError):
    pass


@event.listens_for(Activity, "before_update")
def _refuse_update(mapper, connection, target):
    raise ImmutableActivityError(f"Activity {target.id} is append-only")


@event.listens_for(Activity, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise ImmutableActivityError(f"Activity {target.id} is append-only")
