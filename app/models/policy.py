"""
Policy aggregate root.
A policy exclusively owns its coverages, insured items, drivers and
locations; deleting the policy deletes them.
"""

from decimal import Decimal
from sqlalchemy import (
    Column, String, Integer, Numeric, DateTime, ForeignKey, Uuid,
    Enum as SQLEnum, CheckConstraint, Index
)
from sqlalchemy.orm import relationship
import enum

from app.core.database import Base
from app.models.base import TimestampMixin, UUIDMixin, AuditMixin


class ProductType(str, enum.Enum):
    """Lines of business the carrier writes"""
    PERSONAL_AUTO = "PERSONAL_AUTO"
    HOMEOWNERS = "HOMEOWNERS"
    RENTERS = "RENTERS"
    COMMERCIAL_AUTO = "COMMERCIAL_AUTO"
    COMMERCIAL_PROPERTY = "COMMERCIAL_PROPERTY"
    UMBRELLA = "UMBRELLA"


class PolicyStatus(str, enum.Enum):
    """
    Policy lifecycle.
    QUOTE -> (underwriting decision) -> BOUND | REFERRED
    BOUND -> ACTIVE -> EXPIRED | CANCELLED | SUSPENDED | NON_RENEWED
    """
    QUOTE = "QUOTE"
    REFERRED = "REFERRED"  # Waiting on underwriter sign-off
    BOUND = "BOUND"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"
    SUSPENDED = "SUSPENDED"
    NON_RENEWED = "NON_RENEWED"


class PaymentPlan(str, enum.Enum):
    ANNUAL = "ANNUAL"
    SEMI_ANNUAL = "SEMI_ANNUAL"
    QUARTERLY = "QUARTERLY"
    MONTHLY = "MONTHLY"


class UnderwritingTier(str, enum.Enum):
    PREFERRED = "PREFERRED"
    STANDARD = "STANDARD"
    NON_STANDARD = "NON_STANDARD"


class BindingAuthority(str, enum.Enum):
    AUTO_BIND = "AUTO_BIND"
    UNDERWRITER_REVIEW = "UNDERWRITER_REVIEW"


class ComplianceStatus(str, enum.Enum):
    PENDING_REVIEW = "PENDING_REVIEW"
    COMPLIANT = "COMPLIANT"
    NON_COMPLIANT = "NON_COMPLIANT"


UNBOUND_STATUSES = (PolicyStatus.QUOTE, PolicyStatus.REFERRED)


class Policy(Base, UUIDMixin, TimestampMixin, AuditMixin):
    """
    Insurance policy with its premium breakdown and underwriting decision.
    """
    __tablename__ = "policies"

    policy_number = Column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
        comment="Human-readable policy number (e.g., POL-2024-000123)"
    )

    customer_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    product_type = Column(SQLEnum(ProductType), nullable=False, index=True)

    status = Column(
        SQLEnum(PolicyStatus),
        default=PolicyStatus.QUOTE,
        nullable=False,
        index=True
    )

    # Term
    effective_date = Column(DateTime, nullable=False, index=True)
    expiration_date = Column(DateTime, nullable=False, index=True)

    payment_plan = Column(
        SQLEnum(PaymentPlan),
        default=PaymentPlan.ANNUAL,
        nullable=False
    )

    jurisdiction_state = Column(
        String(2),
        nullable=True,
        comment="State whose tax rate was applied"
    )

    # Premium breakdown
    base_premium = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    fees = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    taxes = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total_premium = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    rating_version = Column(String(50), nullable=True)

    # Underwriting decision
    risk_score = Column(Integer, nullable=True, index=True, comment="0-100")
    underwriting_tier = Column(SQLEnum(UnderwritingTier), nullable=True)
    binding_authority = Column(SQLEnum(BindingAuthority), nullable=True)

    compliance_status = Column(
        SQLEnum(ComplianceStatus),
        default=ComplianceStatus.PENDING_REVIEW,
        nullable=False
    )

    # Relationships
    customer = relationship("Customer", back_populates="policies")

    coverages = relationship(
        "Coverage",
        back_populates="policy",
        cascade="all, delete-orphan",
        order_by="Coverage.position"
    )

    insured_items = relationship(
        "InsuredItem",
        back_populates="policy",
        cascade="all, delete-orphan"
    )

    drivers = relationship(
        "Driver",
        back_populates="policy",
        cascade="all, delete-orphan"
    )

    locations = relationship(
        "Location",
        back_populates="policy",
        cascade="all, delete-orphan"
    )

    transactions = relationship(
        "PolicyTransaction",
        back_populates="policy",
        cascade="all, delete-orphan"
    )

    claims = relationship("Claim", back_populates="policy")

    __table_args__ = (
        CheckConstraint("effective_date < expiration_date", name="ck_policies_term"),
        Index("ix_policies_customer_status", "customer_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Policy {self.policy_number} - {self.status.value}>"

    @property
    def is_bound(self) -> bool:
        return self.status not in UNBOUND_STATUSES

    @property
    def insured_item_count(self) -> int:
        return len(self.insured_items)

    @property
    def driver_count(self) -> int:
        return len(self.drivers)

    @property
    def location_count(self) -> int:
        return len(self.locations)

    @property
    def coverage_codes(self) -> set:
        return {coverage.code for coverage in self.coverages}

    @property
    def premium_is_balanced(self) -> bool:
        """total = sum of coverage premiums + fees + taxes"""
        coverage_sum = sum((c.premium or Decimal("0")) for c in self.coverages)
        return self.total_premium == coverage_sum + self.fees + self.taxes
