"""
Tests for the rating engine.
"""

from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest

from app.core.exceptions import MissingRequiredCoverage
from app.models import ProductType
from app.schemas.application import CoverageRequest, Jurisdiction
from app.services.rating import RatingConfig, RatingEngine, DEFAULT_RATING_CONFIG, to_cents


@pytest.fixture
def engine():
    return RatingEngine()


class TestPremiumArithmetic:
    """Base premium, fee, tax and total."""

    def test_personal_auto_in_california(self, engine):
        """BI 400 + PD 200 with the auto fee and 2.5% CA tax."""
        result = engine.price(
            [CoverageRequest(code="BI", premium=400), CoverageRequest(code="PD", premium=200)],
            ProductType.PERSONAL_AUTO,
            Jurisdiction(state="CA"),
        )

        assert result.base_premium == Decimal("600.00")
        assert result.fees == Decimal("25.00")
        assert result.taxes == Decimal("15.00")
        assert result.total_premium == Decimal("640.00")
        assert result.is_complete

    def test_total_is_exact_sum(self, engine):
        result = engine.price(
            [
                CoverageRequest(code="BI", premium=Decimal("333.33")),
                CoverageRequest(code="PD", premium=Decimal("166.67")),
                CoverageRequest(code="COMP", premium=Decimal("87.19")),
            ],
            ProductType.PERSONAL_AUTO,
            Jurisdiction(state="NY"),
        )

        assert result.total_premium == result.base_premium + result.fees + result.taxes
        assert result.base_premium == sum(line.premium for line in result.coverages)

    def test_taxes_round_half_up(self, engine):
        """0.5 cents rounds away from zero."""
        result = engine.price(
            [CoverageRequest(code="BI", premium=Decimal("10.10")), CoverageRequest(code="PD", premium=0)],
            ProductType.PERSONAL_AUTO,
            Jurisdiction(state="CA"),
        )
        # 10.10 * 0.025 = 0.2525
        assert result.taxes == Decimal("0.25")
        assert to_cents(Decimal("0.125")) == Decimal("0.13")

    def test_missing_premium_counts_as_zero(self, engine):
        result = engine.price(
            [CoverageRequest(code="BI", premium=500), CoverageRequest(code="PD")],
            ProductType.PERSONAL_AUTO,
            Jurisdiction(state="CA"),
        )

        assert result.coverages[1].premium == Decimal("0.00")
        assert result.base_premium == Decimal("500.00")

    def test_unknown_state_uses_default_tax(self, engine):
        result = engine.price(
            [CoverageRequest(code="BI", premium=400), CoverageRequest(code="PD", premium=200)],
            ProductType.PERSONAL_AUTO,
            Jurisdiction(state="ZZ"),
        )

        assert result.tax_rate == Decimal("0.02")
        assert result.taxes == Decimal("12.00")

    def test_no_jurisdiction_uses_default_tax(self, engine):
        result = engine.price(
            [CoverageRequest(code="BI", premium=100), CoverageRequest(code="PD", premium=100)],
            ProductType.PERSONAL_AUTO,
        )

        assert result.jurisdiction_state is None
        assert result.taxes == Decimal("4.00")

    @pytest.mark.parametrize("product_type, fee", [
        (ProductType.HOMEOWNERS, Decimal("35.00")),
        (ProductType.RENTERS, Decimal("15.00")),
        (ProductType.COMMERCIAL_AUTO, Decimal("75.00")),
        (ProductType.COMMERCIAL_PROPERTY, Decimal("100.00")),
    ])
    def test_fee_schedule(self, engine, product_type, fee):
        result = engine.price([], product_type)
        assert result.fees == fee

    def test_unlisted_product_gets_default_fee(self):
        config = RatingConfig(
            version="test",
            fee_schedule={ProductType.PERSONAL_AUTO: Decimal("10")},
            tax_rates={},
            coverage_catalog={},
        )
        result = RatingEngine(config).price([], ProductType.UMBRELLA)

        assert result.fees == Decimal("25.00")
        assert result.rating_version == "test"


class TestRequiredCoverages:

    def test_missing_required_reported_for_quotes(self, engine):
        result = engine.price([CoverageRequest(code="BI", premium=400)], ProductType.PERSONAL_AUTO)

        assert result.missing_required == ["PD"]
        assert not result.is_complete

    def test_missing_required_raises_when_complete_required(self, engine):
        with pytest.raises(MissingRequiredCoverage) as exc_info:
            engine.price(
                [CoverageRequest(code="DWELLING", premium=900)],
                ProductType.HOMEOWNERS,
                require_complete=True,
            )

        assert exc_info.value.missing_codes == ["OTHER_STRUCTURES", "PERSONAL_PROPERTY", "LIABILITY"]

    def test_codes_are_normalized(self, engine):
        result = engine.price(
            [CoverageRequest(code=" bi ", premium=1), CoverageRequest(code="pd", premium=1)],
            ProductType.PERSONAL_AUTO,
            require_complete=True,
        )
        assert result.is_complete

    def test_catalog_fills_names_and_flags(self, engine):
        result = engine.price(
            [
                CoverageRequest(code="BI", premium=400),
                CoverageRequest(code="PD", premium=200),
                CoverageRequest(code="ROADSIDE", premium=12),
            ],
            ProductType.PERSONAL_AUTO,
        )

        bi, pd, roadside = result.coverages
        assert bi.name == "Bodily Injury Liability"
        assert bi.required and pd.required
        assert roadside.name == "ROADSIDE"
        assert roadside.coverage_type == "OTHER"
        assert not roadside.required

    def test_split_limit_uses_largest_figure(self):
        assert CoverageRequest(code="BI", limit="100,000/300,000").limit_amount == Decimal("300000")
        assert CoverageRequest(code="PD", limit="Actual cash value").limit_amount is None


class TestRatingConfig:

    def test_config_is_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_RATING_CONFIG.fee_schedule[ProductType.PERSONAL_AUTO] = Decimal("0")

        with pytest.raises(FrozenInstanceError):
            DEFAULT_RATING_CONFIG.version = "tampered"

    def test_versions_coexist(self):
        cheaper = RatingConfig(
            version="2024.2",
            fee_schedule={ProductType.PERSONAL_AUTO: Decimal("5")},
            tax_rates={"ca": Decimal("0.01")},
            coverage_catalog=DEFAULT_RATING_CONFIG.coverage_catalog,
        )
        coverages = [CoverageRequest(code="BI", premium=400), CoverageRequest(code="PD", premium=200)]

        old = RatingEngine().price(coverages, ProductType.PERSONAL_AUTO, Jurisdiction(state="CA"))
        new = RatingEngine(cheaper).price(coverages, ProductType.PERSONAL_AUTO, Jurisdiction(state="CA"))

        assert old.total_premium == Decimal("640.00")
        assert new.total_premium == Decimal("611.00")
        assert new.rating_version == "2024.2"
