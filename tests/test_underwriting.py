"""
Tests for the underwriting decision engine.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from app.models import ProductType, UnderwritingTier, BindingAuthority, PolicyStatus
from app.schemas.results import DriverFacts, PricedCoverage, RatedPolicy, UnderwritingDecision
from app.services.underwriting import (
    UnderwritingConfig,
    UnderwritingEngine,
    assign_tier,
    status_after_decision,
)


def rated_auto(**overrides) -> RatedPolicy:
    data = dict(
        product_type=ProductType.PERSONAL_AUTO,
        effective_date=datetime(2024, 4, 1),
        total_premium=Decimal("640.00"),
        coverages=[
            PricedCoverage(code="BI", name="Bodily Injury Liability", coverage_type="LIABILITY",
                           limit_amount=Decimal("300000"), premium=Decimal("400")),
            PricedCoverage(code="PD", name="Property Damage Liability", coverage_type="LIABILITY",
                           limit_amount=Decimal("50000"), premium=Decimal("200")),
        ],
    )
    data.update(overrides)
    return RatedPolicy(**data)


class TestTierLadder:

    def test_low_score_small_premium_auto_binds(self):
        assert assign_tier(20, Decimal("1500")) == (UnderwritingTier.PREFERRED, BindingAuthority.AUTO_BIND)

    def test_low_score_large_premium_is_standard(self):
        assert assign_tier(20, Decimal("2000.01")) == (
            UnderwritingTier.STANDARD, BindingAuthority.UNDERWRITER_REVIEW
        )

    @pytest.mark.parametrize("score, tier", [
        (30, UnderwritingTier.PREFERRED),
        (31, UnderwritingTier.STANDARD),
        (50, UnderwritingTier.STANDARD),
        (51, UnderwritingTier.NON_STANDARD),
        (100, UnderwritingTier.NON_STANDARD),
    ])
    def test_boundaries(self, score, tier):
        assert assign_tier(score, Decimal("2000"))[0] == tier

    def test_status_follows_binding_authority(self):
        auto = UnderwritingDecision(risk_score=10, tier=UnderwritingTier.PREFERRED,
                                    binding_authority=BindingAuthority.AUTO_BIND)
        review = UnderwritingDecision(risk_score=60, tier=UnderwritingTier.NON_STANDARD,
                                      binding_authority=BindingAuthority.UNDERWRITER_REVIEW)

        assert status_after_decision(auto) == PolicyStatus.BOUND
        assert status_after_decision(review) == PolicyStatus.REFERRED


class TestRiskScore:

    def test_clean_personal_auto(self):
        """15 product + 7 for $350k limits + 2 for $640 premium."""
        decision = UnderwritingEngine().decide(rated_auto())

        assert decision.risk_score == 24
        assert decision.tier == UnderwritingTier.PREFERRED
        assert decision.auto_bind
        assert [f.factor_name for f in decision.factors] == ["product_type", "coverage_limits", "premium_size"]

    def test_deterministic(self):
        engine = UnderwritingEngine()
        policy = rated_auto(prior_claim_count=1, drivers=[DriverFacts(date_of_birth=date(2002, 6, 1))])

        first = engine.decide(policy)
        assert all(engine.decide(policy) == first for _ in range(5))

    def test_youthful_driver_and_violations(self):
        policy = rated_auto(drivers=[
            DriverFacts(date_of_birth=date(2001, 4, 2), violation_count=2),  # 22 on the effective date
            DriverFacts(date_of_birth=date(1980, 1, 1), violation_count=3),
        ])
        factors = {f.factor_name: f.points for f in UnderwritingEngine().score_factors(policy)}

        assert factors["youthful_driver"] == 10
        assert factors["driving_record"] == 15  # 5 violations, capped

    def test_driver_turning_25_on_effective_date_is_not_youthful(self):
        policy = rated_auto(drivers=[DriverFacts(date_of_birth=date(1999, 4, 1))])
        factors = {f.factor_name for f in UnderwritingEngine().score_factors(policy)}

        assert "youthful_driver" not in factors

    def test_loss_history_is_capped(self):
        factors = {
            f.factor_name: f.points
            for f in UnderwritingEngine().score_factors(rated_auto(prior_claim_count=7))
        }
        assert factors["loss_history"] == 30

    def test_score_is_clamped_to_100(self):
        policy = rated_auto(
            product_type=ProductType.COMMERCIAL_AUTO,
            total_premium=Decimal("25000"),
            coverages=[PricedCoverage(code="BI", name="BI", coverage_type="LIABILITY",
                                      limit_amount=Decimal("5000000"), premium=Decimal("25000"))],
            prior_claim_count=5,
            drivers=[DriverFacts(date_of_birth=date(2005, 1, 1), violation_count=9)],
        )
        decision = UnderwritingEngine().decide(policy)

        # 25 + 20 + 20 + 30 + 10 + 15 = 120
        assert decision.risk_score == 100
        assert decision.tier == UnderwritingTier.NON_STANDARD
        assert decision.binding_authority == BindingAuthority.UNDERWRITER_REVIEW

    def test_custom_weights(self):
        strict = UnderwritingConfig(preferred_max_score=10)
        decision = UnderwritingEngine(strict).decide(rated_auto())

        assert decision.risk_score == 24
        assert decision.tier == UnderwritingTier.STANDARD
