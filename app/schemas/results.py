"""
Pydantic models for the data passed between engine components and
returned to callers once a unit of work has committed.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from app.models.policy import (
    ProductType,
    PolicyStatus,
    PaymentPlan,
    UnderwritingTier,
    BindingAuthority,
    ComplianceStatus,
)
from app.models.claim import ClaimStatus
from app.models.fraud_alert import FraudSeverity


# ============================================================================
# RATING
# ============================================================================

class PricedCoverage(BaseModel):
    """Coverage line after rating"""
    model_config = ConfigDict(from_attributes=True)

    code: str
    name: str
    coverage_type: str
    limit_label: Optional[str] = None
    limit_amount: Optional[Decimal] = None
    deductible: Optional[Decimal] = None
    premium: Decimal
    required: bool = False


class RatingResult(BaseModel):
    coverages: List[PricedCoverage] = Field(default_factory=list)
    base_premium: Decimal
    fees: Decimal
    taxes: Decimal
    total_premium: Decimal
    tax_rate: Decimal
    jurisdiction_state: Optional[str] = None
    missing_required: List[str] = Field(
        default_factory=list,
        description="Required coverage codes absent from the request; blocks binding"
    )
    rating_version: str

    @property
    def is_complete(self) -> bool:
        return not self.missing_required


# ============================================================================
# UNDERWRITING
# ============================================================================

class DriverFacts(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date_of_birth: Optional[date] = None
    violation_count: int = 0


class RatedPolicy(BaseModel):
    """Facts the underwriting decision is a function of"""
    product_type: ProductType
    effective_date: datetime
    total_premium: Decimal
    coverages: List[PricedCoverage] = Field(default_factory=list)
    drivers: List[DriverFacts] = Field(default_factory=list)
    prior_claim_count: int = Field(default=0, description="Customer claims inside the loss history window")


class RiskFactor(BaseModel):
    """Individual contribution to the risk score"""
    factor_name: str
    points: int
    description: str


class UnderwritingDecision(BaseModel):
    risk_score: int = Field(ge=0, le=100)
    tier: UnderwritingTier
    binding_authority: BindingAuthority
    factors: List[RiskFactor] = Field(default_factory=list)

    @property
    def auto_bind(self) -> bool:
        return self.binding_authority == BindingAuthority.AUTO_BIND


# ============================================================================
# FRAUD
# ============================================================================

class ClaimFacts(BaseModel):
    """The claim as the fraud engine sees it"""
    model_config = ConfigDict(from_attributes=True)

    claim_number: str
    customer_id: UUID
    reported_date: datetime
    loss_date: datetime
    loss_amount: Optional[Decimal] = None


class FraudAssessment(BaseModel):
    indicators: List[str] = Field(default_factory=list)
    risk_score: int = Field(default=0, ge=0, le=100)
    severity: Optional[FraudSeverity] = None
    investigation_required: bool = False


# ============================================================================
# COMMITTED AGGREGATES
# ============================================================================

class IssuedPolicy(BaseModel):
    """Summary handed back after issue/quote/bind/revise"""
    policy_id: UUID
    policy_number: str
    status: PolicyStatus
    base_premium: Decimal
    fees: Decimal
    taxes: Decimal
    total_premium: Decimal
    risk_score: Optional[int] = None
    tier: Optional[UnderwritingTier] = None
    binding_authority: Optional[BindingAuthority] = None
    missing_required: List[str] = Field(default_factory=list)


class FiledClaim(BaseModel):
    claim_id: UUID
    claim_number: str
    status: ClaimStatus
    assigned_adjuster_id: Optional[UUID] = None


class CoverageView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    name: str
    coverage_type: str
    limit_label: Optional[str] = None
    limit_amount: Optional[Decimal] = None
    deductible: Optional[Decimal] = None
    premium: Decimal
    required: bool


class PolicyDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    policy_number: str
    customer_id: UUID
    product_type: ProductType
    status: PolicyStatus
    effective_date: datetime
    expiration_date: datetime
    payment_plan: PaymentPlan
    jurisdiction_state: Optional[str] = None
    base_premium: Decimal
    fees: Decimal
    taxes: Decimal
    total_premium: Decimal
    risk_score: Optional[int] = None
    underwriting_tier: Optional[UnderwritingTier] = None
    binding_authority: Optional[BindingAuthority] = None
    compliance_status: ComplianceStatus
    coverages: List[CoverageView] = Field(default_factory=list)
    insured_item_count: int = 0
    driver_count: int = 0
    location_count: int = 0


class ParticipantView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    participant_type: str
    name: str
    role: Optional[str] = None
    contact: Optional[str] = None


class ClaimDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    claim_number: str
    policy_id: UUID
    customer_id: UUID
    status: ClaimStatus
    loss_date: datetime
    reported_date: datetime
    loss_amount: Optional[Decimal] = None
    reserve_amount: Optional[Decimal] = None
    location: Optional[str] = None
    description: str
    assigned_adjuster_id: Optional[UUID] = None
    participants: List[ParticipantView] = Field(default_factory=list)
