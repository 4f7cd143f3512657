"""
Rating configuration.

Fee schedule, jurisdiction tax table and coverage catalog for one rate
version. Instances are immutable so several versions can be loaded side by
side and handed to separate RatingEngine instances.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from app.models.policy import ProductType


@dataclass(frozen=True)
class CoverageTemplate:
    code: str
    name: str
    coverage_type: str
    required: bool = False


def _freeze(mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class RatingConfig:
    version: str
    fee_schedule: Mapping[ProductType, Decimal]
    tax_rates: Mapping[str, Decimal]
    coverage_catalog: Mapping[ProductType, Tuple[CoverageTemplate, ...]]
    default_fee: Decimal = Decimal("25.00")
    default_tax_rate: Decimal = Decimal("0.02")

    def __post_init__(self):
        # Callers may pass plain dicts; store read-only views of copies
        object.__setattr__(self, "fee_schedule", _freeze(self.fee_schedule))
        object.__setattr__(self, "tax_rates", _freeze({k.upper(): v for k, v in self.tax_rates.items()}))
        object.__setattr__(
            self,
            "coverage_catalog",
            _freeze({k: tuple(v) for k, v in self.coverage_catalog.items()}),
        )

    def fee_for(self, product_type: ProductType) -> Decimal:
        return self.fee_schedule.get(product_type, self.default_fee)

    def tax_rate_for(self, state: Optional[str]) -> Decimal:
        if not state:
            return self.default_tax_rate
        return self.tax_rates.get(state.upper(), self.default_tax_rate)

    def templates_for(self, product_type: ProductType) -> Tuple[CoverageTemplate, ...]:
        return self.coverage_catalog.get(product_type, ())

    def template(self, product_type: ProductType, code: str) -> Optional[CoverageTemplate]:
        for template in self.templates_for(product_type):
            if template.code == code:
                return template
        return None

    def required_codes(self, product_type: ProductType) -> Tuple[str, ...]:
        return tuple(t.code for t in self.templates_for(product_type) if t.required)


# ============================================================================
# DEFAULT RATE VERSION
# ============================================================================

PERSONAL_AUTO_COVERAGES = (
    CoverageTemplate("BI", "Bodily Injury Liability", "LIABILITY", required=True),
    CoverageTemplate("PD", "Property Damage Liability", "LIABILITY", required=True),
    CoverageTemplate("COMP", "Comprehensive", "PHYSICAL_DAMAGE"),
    CoverageTemplate("COLL", "Collision", "PHYSICAL_DAMAGE"),
    CoverageTemplate("UM", "Uninsured Motorist", "LIABILITY"),
    CoverageTemplate("PIP", "Personal Injury Protection", "MEDICAL"),
)

HOMEOWNERS_COVERAGES = (
    CoverageTemplate("DWELLING", "Dwelling Coverage", "PROPERTY", required=True),
    CoverageTemplate("OTHER_STRUCTURES", "Other Structures", "PROPERTY", required=True),
    CoverageTemplate("PERSONAL_PROPERTY", "Personal Property", "PROPERTY", required=True),
    CoverageTemplate("LIABILITY", "Personal Liability", "LIABILITY", required=True),
    CoverageTemplate("MEDICAL_PAYMENTS", "Medical Payments to Others", "MEDICAL"),
)

RENTERS_COVERAGES = (
    CoverageTemplate("PERSONAL_PROPERTY", "Personal Property", "PROPERTY", required=True),
    CoverageTemplate("LIABILITY", "Personal Liability", "LIABILITY", required=True),
    CoverageTemplate("LOSS_OF_USE", "Loss of Use", "PROPERTY"),
    CoverageTemplate("MEDICAL_PAYMENTS", "Medical Payments to Others", "MEDICAL"),
)

COMMERCIAL_AUTO_COVERAGES = (
    CoverageTemplate("BI", "Bodily Injury Liability", "LIABILITY", required=True),
    CoverageTemplate("PD", "Property Damage Liability", "LIABILITY", required=True),
    CoverageTemplate("COMP", "Comprehensive", "PHYSICAL_DAMAGE"),
    CoverageTemplate("COLL", "Collision", "PHYSICAL_DAMAGE"),
    CoverageTemplate("CARGO", "Cargo Coverage", "CARGO"),
)

COMMERCIAL_PROPERTY_COVERAGES = (
    CoverageTemplate("BUILDING", "Building Coverage", "PROPERTY", required=True),
    CoverageTemplate("BUSINESS_PERSONAL_PROPERTY", "Business Personal Property", "PROPERTY"),
    CoverageTemplate("BUSINESS_INCOME", "Business Income", "PROPERTY"),
)

UMBRELLA_COVERAGES = (
    CoverageTemplate("UMBRELLA_LIABILITY", "Personal Umbrella Liability", "LIABILITY", required=True),
)


DEFAULT_RATING_CONFIG = RatingConfig(
    version="2024.1",
    fee_schedule={
        ProductType.PERSONAL_AUTO: Decimal("25.00"),
        ProductType.HOMEOWNERS: Decimal("35.00"),
        ProductType.RENTERS: Decimal("15.00"),
        ProductType.COMMERCIAL_AUTO: Decimal("75.00"),
        ProductType.COMMERCIAL_PROPERTY: Decimal("100.00"),
        ProductType.UMBRELLA: Decimal("25.00"),
    },
    tax_rates={
        "CA": Decimal("0.025"),
        "NY": Decimal("0.03"),
        "TX": Decimal("0.0185"),
        "FL": Decimal("0.0175"),
        "IL": Decimal("0.035"),
        "WA": Decimal("0.02"),
    },
    coverage_catalog={
        ProductType.PERSONAL_AUTO: PERSONAL_AUTO_COVERAGES,
        ProductType.HOMEOWNERS: HOMEOWNERS_COVERAGES,
        ProductType.RENTERS: RENTERS_COVERAGES,
        ProductType.COMMERCIAL_AUTO: COMMERCIAL_AUTO_COVERAGES,
        ProductType.COMMERCIAL_PROPERTY: COMMERCIAL_PROPERTY_COVERAGES,
        ProductType.UMBRELLA: UMBRELLA_COVERAGES,
    },
)
