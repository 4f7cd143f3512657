"""
Fraud Signal Engine
Rule-based fraud indicators evaluated against a claim and the filer's
claim history. Each indicator is evaluated independently and their points
accumulate; new rules are added by passing more indicators to the engine.
"""

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Callable, List, Optional, Sequence

from app.core.config import settings
from app.models.fraud_alert import FraudSeverity
from app.schemas.results import ClaimFacts, FraudAssessment


ClaimPredicate = Callable[[ClaimFacts, Sequence[ClaimFacts]], bool]


@dataclass(frozen=True)
class FraudIndicator:
    """
    One named signal.

    points count once per fired indicator; bonus is extra weight some
    indicators carry on top of that (the high value bonus). window_days is
    how far back the predicate looks into the claim history.
    """
    label: str
    predicate: ClaimPredicate
    points: int = 25
    bonus: int = 0
    window_days: int = 0

    def fires(self, claim: ClaimFacts, history: Sequence[ClaimFacts]) -> bool:
        return bool(self.predicate(claim, history))


def high_value_claim(threshold: Decimal) -> FraudIndicator:
    def predicate(claim: ClaimFacts, history: Sequence[ClaimFacts]) -> bool:
        return claim.loss_amount is not None and claim.loss_amount > threshold

    return FraudIndicator(label="high value claim", predicate=predicate, points=25, bonus=25)


def multiple_recent_claims(window_days: int, limit: int) -> FraudIndicator:
    """
    Claims by the same customer reported inside the trailing window,
    counting the claim under evaluation, must not exceed the limit.
    """
    def predicate(claim: ClaimFacts, history: Sequence[ClaimFacts]) -> bool:
        return count_recent_claims(claim, history, window_days) > limit

    return FraudIndicator(label="multiple recent claims", predicate=predicate, points=25, window_days=window_days)


def count_recent_claims(claim: ClaimFacts, history: Sequence[ClaimFacts], window_days: int) -> int:
    window_start = claim.reported_date - timedelta(days=window_days)
    others = {
        h.claim_number
        for h in history
        if h.claim_number != claim.claim_number
        and h.customer_id == claim.customer_id
        and window_start <= h.reported_date <= claim.reported_date
    }
    return len(others) + 1


def default_indicators() -> List[FraudIndicator]:
    return [
        high_value_claim(Decimal(str(settings.FRAUD_HIGH_VALUE_THRESHOLD))),
        multiple_recent_claims(
            settings.FRAUD_RECENT_CLAIMS_WINDOW_DAYS,
            settings.FRAUD_RECENT_CLAIMS_LIMIT,
        ),
    ]


class FraudSignalEngine:
    """
    Aggregates fired indicators into a FraudAssessment.
    Pure: re-evaluating the same claim and history gives the same result.
    """

    def __init__(
        self,
        indicators: Optional[Sequence[FraudIndicator]] = None,
        high_severity_threshold: Optional[Decimal] = None,
    ):
        self.indicators = list(indicators) if indicators is not None else default_indicators()
        self.high_severity_threshold = (
            high_severity_threshold
            if high_severity_threshold is not None
            else Decimal(str(settings.FRAUD_HIGH_SEVERITY_THRESHOLD))
        )

    @property
    def history_window_days(self) -> int:
        """Trailing days of claim history the indicators need"""
        return max((i.window_days for i in self.indicators), default=0)

    def evaluate(self, claim: ClaimFacts, history: Sequence[ClaimFacts] = ()) -> FraudAssessment:
        fired = [indicator for indicator in self.indicators if indicator.fires(claim, history)]

        if not fired:
            return FraudAssessment()

        risk_score = min(100, sum(i.points + i.bonus for i in fired))

        loss = claim.loss_amount or Decimal("0")
        severity = FraudSeverity.HIGH if loss > self.high_severity_threshold else FraudSeverity.MEDIUM

        return FraudAssessment(
            indicators=[i.label for i in fired],
            risk_score=risk_score,
            severity=severity,
            investigation_required=True,
        )


# Singleton instance
_fraud_engine = None

def get_fraud_engine() -> FraudSignalEngine:
    """Get or create FraudSignalEngine instance"""
    global _fraud_engine
    if _fraud_engine is None:
        _fraud_engine = FraudSignalEngine()
    return _fraud_engine
