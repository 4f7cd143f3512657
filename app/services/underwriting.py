"""
Underwriting Decision Engine
Scores a rated policy from its declared facts and assigns the tier and
binding authority. Deterministic: the same facts always give the same score.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import List, Mapping, Tuple

from app.models.policy import ProductType, UnderwritingTier, BindingAuthority, PolicyStatus
from app.schemas.results import RatedPolicy, RiskFactor, UnderwritingDecision


@dataclass(frozen=True)
class UnderwritingConfig:
    """Score weights and tier thresholds"""

    product_base_points: Mapping[ProductType, int] = field(default_factory=lambda: MappingProxyType({
        ProductType.PERSONAL_AUTO: 15,
        ProductType.HOMEOWNERS: 10,
        ProductType.RENTERS: 5,
        ProductType.COMMERCIAL_AUTO: 25,
        ProductType.COMMERCIAL_PROPERTY: 20,
        ProductType.UMBRELLA: 15,
    }))

    # Exposure
    limit_points_per: Decimal = Decimal("50000")
    max_limit_points: int = 20
    premium_points_per: Decimal = Decimal("250")
    max_premium_points: int = 20

    # Loss history
    points_per_prior_claim: int = 10
    max_loss_history_points: int = 30

    # Drivers
    youthful_driver_age: int = 25
    youthful_driver_points: int = 10
    points_per_violation: int = 5
    max_violation_points: int = 15

    # Tier ladder
    preferred_max_score: int = 30
    preferred_max_premium: Decimal = Decimal("2000")
    standard_max_score: int = 50


DEFAULT_UNDERWRITING_CONFIG = UnderwritingConfig()


def assign_tier(
    risk_score: int,
    total_premium: Decimal,
    config: UnderwritingConfig = DEFAULT_UNDERWRITING_CONFIG,
) -> Tuple[UnderwritingTier, BindingAuthority]:
    """Threshold ladder from score and premium to tier and binding authority"""
    if risk_score <= config.preferred_max_score and Decimal(total_premium) <= config.preferred_max_premium:
        return UnderwritingTier.PREFERRED, BindingAuthority.AUTO_BIND
    if risk_score <= config.standard_max_score:
        return UnderwritingTier.STANDARD, BindingAuthority.UNDERWRITER_REVIEW
    return UnderwritingTier.NON_STANDARD, BindingAuthority.UNDERWRITER_REVIEW


def status_after_decision(decision: UnderwritingDecision) -> PolicyStatus:
    """QUOTE -> BOUND when the policy may auto-bind, otherwise REFERRED"""
    return PolicyStatus.BOUND if decision.auto_bind else PolicyStatus.REFERRED


class UnderwritingEngine:
    """
    Computes the risk score as a sum of capped factor points (0-100).
    Each factor is reported so underwriters can see why a policy was referred.
    """

    def __init__(self, config: UnderwritingConfig = DEFAULT_UNDERWRITING_CONFIG):
        self.config = config

    def decide(self, policy: RatedPolicy) -> UnderwritingDecision:
        factors = self.score_factors(policy)
        risk_score = max(0, min(100, sum(f.points for f in factors)))
        tier, authority = assign_tier(risk_score, policy.total_premium, self.config)

        return UnderwritingDecision(
            risk_score=risk_score,
            tier=tier,
            binding_authority=authority,
            factors=factors,
        )

    def score_factors(self, policy: RatedPolicy) -> List[RiskFactor]:
        cfg = self.config
        factors = []

        base = cfg.product_base_points.get(policy.product_type, 0)
        factors.append(RiskFactor(
            factor_name="product_type",
            points=base,
            description=f"Base exposure for {policy.product_type.value}",
        ))

        total_limits = sum(
            (c.limit_amount for c in policy.coverages if c.limit_amount is not None),
            Decimal("0"),
        )
        limit_points = min(cfg.max_limit_points, int(total_limits // cfg.limit_points_per))
        if limit_points:
            factors.append(RiskFactor(
                factor_name="coverage_limits",
                points=limit_points,
                description=f"${total_limits:,.0f} of selected limits",
            ))

        premium_points = min(cfg.max_premium_points, int(Decimal(policy.total_premium) // cfg.premium_points_per))
        if premium_points:
            factors.append(RiskFactor(
                factor_name="premium_size",
                points=premium_points,
                description=f"${policy.total_premium:,.2f} total premium",
            ))

        if policy.prior_claim_count:
            factors.append(RiskFactor(
                factor_name="loss_history",
                points=min(cfg.max_loss_history_points, policy.prior_claim_count * cfg.points_per_prior_claim),
                description=f"{policy.prior_claim_count} prior claim(s)",
            ))

        factors.extend(self._driver_factors(policy))
        return factors

    def _driver_factors(self, policy: RatedPolicy) -> List[RiskFactor]:
        cfg = self.config
        factors = []
        rated_on = policy.effective_date.date()

        youthful = [
            d for d in policy.drivers
            if d.date_of_birth is not None and _age_on(d.date_of_birth, rated_on) < cfg.youthful_driver_age
        ]
        if youthful:
            factors.append(RiskFactor(
                factor_name="youthful_driver",
                points=cfg.youthful_driver_points,
                description=f"{len(youthful)} driver(s) under {cfg.youthful_driver_age}",
            ))

        violations = sum(d.violation_count for d in policy.drivers)
        if violations:
            factors.append(RiskFactor(
                factor_name="driving_record",
                points=min(cfg.max_violation_points, violations * cfg.points_per_violation),
                description=f"{violations} violation(s) across drivers",
            ))

        return factors


def _age_on(dob, on) -> int:
    return on.year - dob.year - ((on.month, on.day) < (dob.month, dob.day))


# Singleton instance
_underwriting_engine = None

def get_underwriting_engine() -> UnderwritingEngine:
    """Get or create UnderwritingEngine instance"""
    global _underwriting_engine
    if _underwriting_engine is None:
        _underwriting_engine = UnderwritingEngine()
    return _underwriting_engine
