"""
Customer model - the insured party a policy is issued to.
Owned by the customer-management side of the back office; read-only here.
"""

from sqlalchemy import Column, String, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from app.core.database import Base
from app.models.base import TimestampMixin, UUIDMixin


class CustomerType(str, enum.Enum):
    INDIVIDUAL = "INDIVIDUAL"
    BUSINESS = "BUSINESS"


class Customer(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "customers"

    customer_type = Column(
        SQLEnum(CustomerType),
        default=CustomerType.INDIVIDUAL,
        nullable=False
    )

    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    business_name = Column(String(255), nullable=True)

    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(20), nullable=True)

    state = Column(
        String(2),
        nullable=True,
        comment="Two-letter home state, fallback rating jurisdiction"
    )

    # Relationships
    policies = relationship("Policy", back_populates="customer")

    def __repr__(self) -> str:
        return f"<Customer {self.display_name}>"

    @property
    def display_name(self) -> str:
        if self.business_name:
            return self.business_name
        return " ".join(part for part in (self.first_name, self.last_name) if part) or self.email
