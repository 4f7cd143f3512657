"""
Coverage lines selected on a policy.
"""

from sqlalchemy import Column, String, Integer, Numeric, Boolean, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.base import TimestampMixin, UUIDMixin


class Coverage(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "coverages"

    policy_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("policies.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    position = Column(Integer, nullable=False, default=0)

    code = Column(String(50), nullable=False, comment="e.g., BI, PD, DWELLING")
    name = Column(String(255), nullable=False)
    coverage_type = Column(
        String(50),
        nullable=False,
        comment="LIABILITY, PHYSICAL_DAMAGE, PROPERTY, MEDICAL, CARGO"
    )

    limit_amount = Column(Numeric(14, 2), nullable=True)
    limit_label = Column(
        String(50),
        nullable=True,
        comment="Split limits as entered, e.g. 100000/300000"
    )
    deductible = Column(Numeric(12, 2), nullable=True)
    premium = Column(Numeric(12, 2), nullable=False)

    required = Column(Boolean, default=False, nullable=False)

    # Relationships
    policy = relationship("Policy", back_populates="coverages")

    def __repr__(self) -> str:
        return f"<Coverage {self.code} ${self.premium}>"
