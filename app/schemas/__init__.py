"""
Pydantic models exchanged with the engine.
"""

from .application import (
    CoverageRequest,
    InsuredItemInput,
    DriverInput,
    LocationInput,
    Jurisdiction,
    PolicyApplication,
    ParticipantInput,
    ClaimReport,
)
from .results import (
    PricedCoverage,
    RatingResult,
    DriverFacts,
    RatedPolicy,
    RiskFactor,
    UnderwritingDecision,
    ClaimFacts,
    FraudAssessment,
    IssuedPolicy,
    FiledClaim,
    PolicyDetail,
    ClaimDetail,
)

__all__ = [
    "CoverageRequest",
    "InsuredItemInput",
    "DriverInput",
    "LocationInput",
    "Jurisdiction",
    "PolicyApplication",
    "ParticipantInput",
    "ClaimReport",
    "PricedCoverage",
    "RatingResult",
    "DriverFacts",
    "RatedPolicy",
    "RiskFactor",
    "UnderwritingDecision",
    "ClaimFacts",
    "FraudAssessment",
    "IssuedPolicy",
    "FiledClaim",
    "PolicyDetail",
    "ClaimDetail",
]
