"""
Pydantic models for the inbound side of the engine.
Policy applications and claim reports as submitted by the application layer.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from app.models.policy import ProductType, PaymentPlan
from app.models.exposure import InsuredItemType


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class CoverageRequest(BaseModel):
    """One coverage line as selected on the application"""
    code: str = Field(description="Coverage code, e.g. BI, PD, DWELLING")
    name: Optional[str] = Field(default=None, description="Display name; filled from the catalog when omitted")
    coverage_type: Optional[str] = Field(default=None, description="LIABILITY, PHYSICAL_DAMAGE, PROPERTY, ...")
    limit: Optional[str] = Field(default=None, description="Limit as entered; split limits like 100000/300000")
    deductible: Optional[Decimal] = Field(default=None, ge=0)
    premium: Optional[Decimal] = Field(default=None, ge=0, description="Premium from the rate table; absent means 0")

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def limit_amount(self) -> Optional[Decimal]:
        """Largest figure of a (possibly split) limit"""
        if not self.limit:
            return None
        parts = [p.strip().replace(",", "") for p in str(self.limit).split("/")]
        amounts = [Decimal(p) for p in parts if p and p.replace(".", "", 1).isdigit()]
        return max(amounts) if amounts else None


class InsuredItemInput(BaseModel):
    item_type: InsuredItemType
    description: Optional[str] = None
    year: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None
    vin: Optional[str] = Field(default=None, max_length=17)
    address: Optional[str] = None
    covered_amount: Optional[Decimal] = Field(default=None, ge=0)


class DriverInput(BaseModel):
    first_name: str
    last_name: str
    is_named_insured: bool = True
    license_number: Optional[str] = None
    license_state: Optional[str] = Field(default=None, min_length=2, max_length=2)
    date_of_birth: Optional[date] = None
    violation_count: int = Field(default=0, ge=0)


class LocationInput(BaseModel):
    address_line1: str
    address_line2: Optional[str] = None
    city: str
    state: str = Field(min_length=2, max_length=2)
    zip_code: str
    construction_type: Optional[str] = None
    occupancy: Optional[str] = None
    year_built: Optional[int] = None

    @field_validator("state")
    @classmethod
    def upper_state(cls, v: str) -> str:
        return v.upper()


class Jurisdiction(BaseModel):
    """Where the risk is rated; only the state drives taxes today"""
    state: Optional[str] = None


class PolicyApplication(BaseModel):
    """Raw application for a new policy"""
    customer_id: UUID
    product_type: ProductType
    effective_date: datetime
    expiration_date: datetime
    payment_plan: PaymentPlan = PaymentPlan.ANNUAL
    coverages: List[CoverageRequest] = Field(default_factory=list)
    insured_items: List[InsuredItemInput] = Field(default_factory=list)
    drivers: List[DriverInput] = Field(default_factory=list)
    locations: List[LocationInput] = Field(default_factory=list)

    @field_validator("effective_date", "expiration_date")
    @classmethod
    def naive_term(cls, v: datetime) -> datetime:
        return as_naive_utc(v)


class ParticipantInput(BaseModel):
    participant_type: str = "OTHER"
    name: str
    role: Optional[str] = None
    contact: Optional[str] = None


class ClaimReport(BaseModel):
    """First notice of loss"""
    policy_id: UUID
    customer_id: UUID
    loss_date: datetime
    description: str = Field(min_length=1)
    loss_amount: Optional[Decimal] = None
    reserve_amount: Optional[Decimal] = None
    location: Optional[str] = None
    reported_date: Optional[datetime] = Field(
        default=None,
        description="Defaults to the time the claim is filed"
    )
    participants: List[ParticipantInput] = Field(default_factory=list)

    @field_validator("loss_date", "reported_date")
    @classmethod
    def naive_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_naive_utc(v)
