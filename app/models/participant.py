"""
People involved in a claim (drivers, witnesses, other parties).
"""

from sqlalchemy import Column, String, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.base import TimestampMixin, UUIDMixin


class Participant(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "claim_participants"

    claim_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("claims.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    participant_type = Column(
        String(50),
        nullable=False,
        default="OTHER",
        comment="INSURED, CLAIMANT, WITNESS, OTHER_PARTY"
    )
    name = Column(String(255), nullable=False)
    role = Column(String(100), nullable=True, comment="e.g., Driver, Passenger")
    contact = Column(String(255), nullable=True)

    claim = relationship("Claim", back_populates="participants")

    def __repr__(self) -> str:
        return f"<Participant {self.name} ({self.role})>"
