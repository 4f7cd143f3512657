"""
Rating Engine
Prices submitted coverages and adds the product fee and jurisdiction tax.
Pure: no I/O, the same inputs always give the same result.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence

from app.core.exceptions import MissingRequiredCoverage
from app.models.policy import ProductType
from app.schemas.application import CoverageRequest, Jurisdiction
from app.schemas.results import PricedCoverage, RatingResult
from app.services.rating.rate_tables import RatingConfig, DEFAULT_RATING_CONFIG


CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_cents(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


class RatingEngine:
    """
    Computes base premium, fees, taxes and total for a coverage set.

    The premium on each coverage request comes from an upstream rate table
    or a manual quote; a line without one contributes zero.
    """

    def __init__(self, config: RatingConfig = DEFAULT_RATING_CONFIG):
        self.config = config

    def price(
        self,
        coverages: Sequence[CoverageRequest],
        product_type: ProductType,
        jurisdiction: Optional[Jurisdiction] = None,
        require_complete: bool = False,
    ) -> RatingResult:
        """
        Price a coverage set.

        Args:
            coverages: Coverage lines from the application
            product_type: Line of business; selects fee and coverage catalog
            jurisdiction: Rating jurisdiction; its state selects the tax rate
            require_complete: Raise instead of reporting missing required coverages

        Returns:
            RatingResult with priced lines and the premium breakdown

        Raises:
            MissingRequiredCoverage: require_complete is set and a required
                coverage for the product is absent
        """
        missing = self.missing_required(coverages, product_type)
        if missing and require_complete:
            raise MissingRequiredCoverage(missing)

        priced = [self._price_line(request, product_type) for request in coverages]

        base_premium = to_cents(sum((line.premium for line in priced), ZERO))
        fees = to_cents(self.config.fee_for(product_type))

        state = jurisdiction.state.upper() if jurisdiction and jurisdiction.state else None
        tax_rate = self.config.tax_rate_for(state)
        taxes = to_cents(base_premium * tax_rate)

        return RatingResult(
            coverages=priced,
            base_premium=base_premium,
            fees=fees,
            taxes=taxes,
            total_premium=base_premium + fees + taxes,
            tax_rate=tax_rate,
            jurisdiction_state=state,
            missing_required=missing,
            rating_version=self.config.version,
        )

    def missing_required(
        self,
        coverages: Sequence[CoverageRequest],
        product_type: ProductType,
    ) -> List[str]:
        """Required coverage codes for the product that the request lacks, in catalog order"""
        selected = {c.code for c in coverages}
        return [code for code in self.config.required_codes(product_type) if code not in selected]

    def _price_line(self, request: CoverageRequest, product_type: ProductType) -> PricedCoverage:
        """Fill catalog details and normalize the premium of one line"""
        template = self.config.template(product_type, request.code)

        return PricedCoverage(
            code=request.code,
            name=request.name or (template.name if template else request.code),
            coverage_type=request.coverage_type or (template.coverage_type if template else "OTHER"),
            limit_label=request.limit,
            limit_amount=request.limit_amount,
            deductible=request.deductible,
            premium=to_cents(request.premium) if request.premium is not None else ZERO,
            required=bool(template and template.required),
        )


# Singleton instance
_rating_engine = None

def get_rating_engine() -> RatingEngine:
    """Get or create RatingEngine instance for the default rate version"""
    global _rating_engine
    if _rating_engine is None:
        _rating_engine = RatingEngine()
    return _rating_engine
