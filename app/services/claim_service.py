"""
Claim intake.
Files a claim against a policy, assigns an adjuster, and scores it for
fraud once the claim has committed.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.database import SessionLocal, session_scope
from app.core.exceptions import (
    ClaimNotFound,
    CustomerNotFound,
    InvalidClaimReport,
    InvalidStatusTransition,
    PolicyNotFound,
)
from app.models import (
    ActivityAction,
    Claim,
    ClaimStatus,
    FraudAlert,
    FraudAlertStatus,
    Participant,
    Policy,
)
from app.models.outbox import OutboxTopic
from app.schemas.application import ClaimReport
from app.schemas.results import ClaimDetail, ClaimFacts, FiledClaim, FraudAssessment
from app.services.audit import record_activity
from app.services.collaborators import (
    AdjusterWorkload,
    CustomerDirectory,
    SqlAdjusterWorkload,
    SqlCustomerDirectory,
)
from app.services.fraud import FraudSignalEngine, get_fraud_engine
from app.services.identifiers import IdentifierAllocator, IdentifierKind
from app.services.outbox import OutboxDispatcher

logger = logging.getLogger(__name__)


ENTITY_TYPE = "CLAIM"

CLAIM_TRANSITIONS = {
    ClaimStatus.OPEN: {ClaimStatus.INVESTIGATING, ClaimStatus.PROCESSING},
    ClaimStatus.INVESTIGATING: {ClaimStatus.PROCESSING, ClaimStatus.CLOSED, ClaimStatus.DENIED},
    ClaimStatus.PROCESSING: {ClaimStatus.INVESTIGATING, ClaimStatus.CLOSED, ClaimStatus.DENIED},
}


class ClaimService:
    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        allocator: Optional[IdentifierAllocator] = None,
        fraud_engine: Optional[FraudSignalEngine] = None,
        customers: Optional[CustomerDirectory] = None,
        adjusters: Optional[AdjusterWorkload] = None,
        outbox: Optional[OutboxDispatcher] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.allocator = allocator or IdentifierAllocator(session_factory, clock=clock)
        self.fraud_engine = fraud_engine or get_fraud_engine()
        self.customers = customers or SqlCustomerDirectory()
        self.adjusters = adjusters or SqlAdjusterWorkload()
        self.outbox = outbox or OutboxDispatcher(session_factory, clock=clock)

        self.outbox.register(OutboxTopic.FRAUD_EVALUATION, self.handle_fraud_evaluation)

    def file_claim(self, report: ClaimReport, actor_id: Optional[UUID] = None) -> FiledClaim:
        """
        Persist a new claim with its participants and assign it to the
        adjuster holding the fewest open claims.

        Fraud evaluation runs after commit; its failure never fails the filing.

        Raises:
            InvalidClaimReport: reported before loss, negative amounts, or the
                customer does not hold the policy
            PolicyNotFound / CustomerNotFound: unknown references
            AllocatorUnavailable: no claim number could be issued
            PersistenceError: the transaction failed and was rolled back
        """
        reported_date = report.reported_date or self.clock()
        self._validate_report(report, reported_date)
        logger.info(f"Filing claim on policy {report.policy_id} for customer {report.customer_id}")

        message_ids = []
        with session_scope(self.session_factory) as session:
            policy = session.get(Policy, report.policy_id)
            if policy is None:
                raise PolicyNotFound(report.policy_id)

            customer = self.customers.find_customer(session, report.customer_id)
            if customer is None:
                raise CustomerNotFound(report.customer_id)
            if policy.customer_id != customer.id:
                raise InvalidClaimReport(
                    f"Customer {customer.id} does not hold policy {policy.policy_number}"
                )

            claim = Claim(
                claim_number=self.allocator.allocate(IdentifierKind.CLAIM),
                status=ClaimStatus.OPEN,
                policy_id=policy.id,
                customer_id=customer.id,
                loss_date=report.loss_date,
                reported_date=reported_date,
                location=report.location,
                description=report.description,
                loss_amount=report.loss_amount,
                reserve_amount=report.reserve_amount,
                created_by=actor_id,
                updated_by=actor_id,
                participants=[Participant(**p.model_dump()) for p in report.participants],
            )
            session.add(claim)
            session.flush()

            adjuster = self._assign_adjuster(session, claim)

            record_activity(
                session,
                ENTITY_TYPE,
                claim.id,
                ActivityAction.CREATED,
                f"Claim {claim.claim_number} filed",
                user_id=actor_id,
                metadata={
                    "loss_amount": str(claim.loss_amount) if claim.loss_amount is not None else None,
                    "status": claim.status.value,
                    "assigned_adjuster_id": str(adjuster.id) if adjuster else None,
                },
            )
            message = self.outbox.enqueue(session, OutboxTopic.FRAUD_EVALUATION, {"claim_id": str(claim.id)})
            message_ids.append(message.id)

            filed = FiledClaim(
                claim_id=claim.id,
                claim_number=claim.claim_number,
                status=claim.status,
                assigned_adjuster_id=claim.assigned_adjuster_id,
            )

        logger.info(f"Claim {filed.claim_number} filed, adjuster {filed.assigned_adjuster_id}")
        self.outbox.dispatch(message_ids)
        return filed

    def change_status(
        self,
        claim_id: UUID,
        status: ClaimStatus,
        actor_id: Optional[UUID] = None,
    ) -> ClaimDetail:
        status = ClaimStatus(status)

        with session_scope(self.session_factory) as session:
            claim = self._load(session, claim_id)
            previous = claim.status
            if status not in CLAIM_TRANSITIONS.get(previous, set()):
                raise InvalidStatusTransition("Claim", previous, status)

            claim.status = status
            claim.updated_by = actor_id

            record_activity(
                session,
                ENTITY_TYPE,
                claim.id,
                ActivityAction.STATUS_CHANGED,
                f"Claim {claim.claim_number} moved from {previous.value} to {status.value}",
                user_id=actor_id,
                metadata={"from": previous.value, "to": status.value},
            )
            detail = ClaimDetail.model_validate(claim)

        logger.info(f"Claim {detail.claim_number}: {previous.value} -> {status.value}")
        return detail

    def get_claim(self, claim_id: UUID) -> ClaimDetail:
        with session_scope(self.session_factory) as session:
            return ClaimDetail.model_validate(self._load(session, claim_id))

    # ------------------------------------------------------------------
    # Fraud evaluation (outbox handler)
    # ------------------------------------------------------------------

    def handle_fraud_evaluation(self, session: Session, payload: dict) -> None:
        claim = session.get(Claim, UUID(payload["claim_id"]))
        if claim is None:
            raise ClaimNotFound(payload["claim_id"])

        assessment = self.assess(session, claim)
        if not assessment.indicators:
            logger.info(f"Claim {claim.claim_number}: no fraud indicators")
            return

        alert = FraudAlert(
            alert_type="SUSPICIOUS_PATTERN",
            entity_type=ENTITY_TYPE,
            entity_id=claim.id,
            severity=assessment.severity,
            risk_score=assessment.risk_score,
            indicators=assessment.indicators,
            description=f"Potential fraud detected: {', '.join(assessment.indicators)}",
            investigation_required=assessment.investigation_required,
            status=FraudAlertStatus.PENDING,
        )
        session.add(alert)

        record_activity(
            session,
            ENTITY_TYPE,
            claim.id,
            ActivityAction.FRAUD_ALERT_RAISED,
            f"Fraud alert raised on claim {claim.claim_number} (score {assessment.risk_score})",
            metadata={
                "indicators": assessment.indicators,
                "risk_score": assessment.risk_score,
                "severity": assessment.severity.value,
            },
        )
        logger.warning(
            f"Fraud alert on claim {claim.claim_number}: {assessment.indicators} "
            f"score={assessment.risk_score} severity={assessment.severity.value}"
        )

    def assess(self, session: Session, claim: Claim) -> FraudAssessment:
        """Evaluate a claim against the customer's claims in the window the indicators look at"""
        window_start = claim.reported_date - timedelta(days=self.fraud_engine.history_window_days)
        history = (
            session.query(Claim)
            .filter(
                Claim.customer_id == claim.customer_id,
                Claim.id != claim.id,
                Claim.reported_date >= window_start,
                Claim.reported_date <= claim.reported_date,
            )
            .all()
        )
        return self.fraud_engine.evaluate(
            ClaimFacts.model_validate(claim),
            [ClaimFacts.model_validate(h) for h in history],
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_report(self, report: ClaimReport, reported_date: datetime) -> None:
        errors: List[str] = []
        if reported_date < report.loss_date:
            errors.append("reported date is before loss date")
        for field_name in ("loss_amount", "reserve_amount"):
            amount = getattr(report, field_name)
            if amount is not None and Decimal(amount) < 0:
                errors.append(f"{field_name} must not be negative")

        if errors:
            raise InvalidClaimReport(f"Invalid claim report: {'; '.join(errors)}")

    def _assign_adjuster(self, session: Session, claim: Claim):
        adjusters = self.adjusters.list_adjusters_by_open_claim_count(session)
        if not adjusters:
            logger.warning(f"No active adjusters; claim {claim.claim_number} left unassigned")
            return None

        adjuster = adjusters[0]
        claim.assigned_adjuster_id = adjuster.id
        return adjuster

    def _load(self, session: Session, claim_id: UUID) -> Claim:
        claim = session.get(Claim, claim_id)
        if claim is None:
            raise ClaimNotFound(claim_id)
        return claim
