"""
Premium-bearing policy transactions (new business, endorsements, cancellations).
"""

from sqlalchemy import Column, Numeric, DateTime, ForeignKey, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from app.core.database import Base
from app.models.base import TimestampMixin, UUIDMixin, AuditMixin


class TransactionType(str, enum.Enum):
    NEW_BUSINESS = "NEW_BUSINESS"
    ENDORSEMENT = "ENDORSEMENT"
    REVERSAL = "REVERSAL"  # Referred policy withdrawn to QUOTE for rework
    CANCELLATION = "CANCELLATION"


class PolicyTransaction(Base, UUIDMixin, TimestampMixin, AuditMixin):
    __tablename__ = "policy_transactions"

    policy_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("policies.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    transaction_type = Column(SQLEnum(TransactionType), nullable=False, index=True)

    premium_change = Column(
        Numeric(12, 2),
        nullable=False,
        comment="Written premium delta carried by this transaction"
    )

    effective_date = Column(DateTime, nullable=False)

    policy = relationship("Policy", back_populates="transactions")

    def __repr__(self) -> str:
        return f"<PolicyTransaction {self.transaction_type.value} {self.premium_change}>"
