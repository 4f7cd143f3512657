"""
Outbox message model - post-commit side effects written in the same
transaction as the aggregate and processed once it has committed.
"""

from sqlalchemy import Column, String, JSON, Text, Integer, DateTime, Enum as SQLEnum, Index
from datetime import datetime
import enum

from app.core.database import Base
from app.models.base import TimestampMixin, UUIDMixin


class OutboxStatus(str, enum.Enum):
    PENDING = "PENDING"
    DONE = "DONE"
    FAILED = "FAILED"  # Gave up after OUTBOX_MAX_ATTEMPTS


class OutboxTopic:
    """Topics understood by the dispatcher"""
    DECLARATION_DOCUMENTS = "policy.declaration_documents"
    FRAUD_EVALUATION = "claim.fraud_evaluation"


class OutboxMessage(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "outbox_messages"

    topic = Column(String(100), nullable=False, index=True)
    payload = Column(JSON, nullable=False)

    status = Column(
        SQLEnum(OutboxStatus),
        default=OutboxStatus.PENDING,
        nullable=False,
        index=True
    )

    # Error handling
    attempts = Column(Integer, default=0, nullable=False)
    last_error = Column(Text, nullable=True)

    available_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        comment="Not picked up before this time (retry backoff)"
    )
    processed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index('ix_outbox_status_available', 'status', 'available_at'),
    )

    def __repr__(self) -> str:
        return f"<OutboxMessage {self.topic} - {self.status.value}>"
