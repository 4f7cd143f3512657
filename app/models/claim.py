"""
Claim model - the loss reported against a policy.
A claim references its policy and customer but is not owned by them;
it owns its participants.
"""

from sqlalchemy import (
    Column, String, Numeric, DateTime, ForeignKey, Text, Uuid,
    Enum as SQLEnum, Index, CheckConstraint
)
from sqlalchemy.orm import relationship
import enum

from app.core.database import Base
from app.models.base import TimestampMixin, UUIDMixin, AuditMixin


class ClaimStatus(str, enum.Enum):
    """
    Claim lifecycle status.
    OPEN -> INVESTIGATING | PROCESSING -> CLOSED | DENIED
    """
    OPEN = "OPEN"  # Just filed
    INVESTIGATING = "INVESTIGATING"  # Potential fraud or coverage question
    PROCESSING = "PROCESSING"  # Adjustment in progress
    CLOSED = "CLOSED"
    DENIED = "DENIED"


OPEN_CLAIM_STATUSES = (ClaimStatus.OPEN, ClaimStatus.INVESTIGATING, ClaimStatus.PROCESSING)


class Claim(Base, UUIDMixin, TimestampMixin, AuditMixin):
    """
    Insurance claim from first notice of loss to closure.
    """
    __tablename__ = "claims"

    # Claim identification
    claim_number = Column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
        comment="Human-readable claim number (e.g., CLM-1729000000)"
    )

    status = Column(
        SQLEnum(ClaimStatus),
        default=ClaimStatus.OPEN,
        nullable=False,
        index=True
    )

    # Weak references: the claim outlives changes to either side
    policy_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("policies.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Policy this claim is filed under"
    )

    customer_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    assigned_adjuster_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Adjuster assigned to review this claim"
    )

    # Incident details
    loss_date = Column(
        DateTime,
        nullable=False,
        index=True,
        comment="When the loss occurred"
    )

    reported_date = Column(
        DateTime,
        nullable=False,
        index=True,
        comment="When the loss was reported to the carrier"
    )

    location = Column(String(500), nullable=True)

    description = Column(
        Text,
        nullable=False,
        comment="Claimant's description of what happened"
    )

    # Financial
    loss_amount = Column(Numeric(12, 2), nullable=True)
    reserve_amount = Column(Numeric(12, 2), nullable=True)

    # Relationships
    policy = relationship("Policy", back_populates="claims")

    assigned_adjuster = relationship(
        "User",
        back_populates="assigned_claims",
        foreign_keys=[assigned_adjuster_id]
    )

    participants = relationship(
        "Participant",
        back_populates="claim",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("reported_date >= loss_date", name="ck_claims_reported_after_loss"),
        CheckConstraint("reserve_amount IS NULL OR reserve_amount >= 0", name="ck_claims_reserve"),
        Index('ix_claims_customer_reported', 'customer_id', 'reported_date'),
        Index('ix_claims_adjuster_status', 'assigned_adjuster_id', 'status'),
    )

    def __repr__(self) -> str:
        return f"<Claim {self.claim_number} - {self.status.value}>"

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_CLAIM_STATUSES
