"""
Policy assembly.
Turns an application into a priced, underwritten and persisted policy
aggregate in one unit of work, and drives the policy lifecycle after that.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import SessionLocal, session_scope
from app.core.exceptions import (
    CustomerNotFound,
    InvalidApplication,
    InvalidStatusTransition,
    MissingRequiredCoverage,
    PolicyNotFound,
)
from app.models import (
    ActivityAction,
    Claim,
    Coverage,
    Driver,
    InsuredItem,
    InsuredItemType,
    Location,
    Policy,
    PolicyStatus,
    PolicyTransaction,
    ProductType,
    TransactionType,
    to_dict,
)
from app.models.outbox import OutboxTopic
from app.models.policy import UNBOUND_STATUSES
from app.schemas.application import CoverageRequest, Jurisdiction, PolicyApplication
from app.schemas.results import (
    DriverFacts,
    IssuedPolicy,
    PolicyDetail,
    PricedCoverage,
    RatedPolicy,
    RatingResult,
    UnderwritingDecision,
)
from app.services.audit import record_activity
from app.services.collaborators import (
    CustomerDirectory,
    DocumentGenerator,
    LoggingDocumentGenerator,
    SqlCustomerDirectory,
)
from app.services.identifiers import IdentifierAllocator, IdentifierKind
from app.services.outbox import OutboxDispatcher
from app.services.rating import RatingEngine, get_rating_engine
from app.services.underwriting import UnderwritingEngine, get_underwriting_engine, status_after_decision

logger = logging.getLogger(__name__)


ENTITY_TYPE = "POLICY"

# Manual status changes; QUOTE -> BOUND/REFERRED goes through underwriting
POLICY_TRANSITIONS = {
    PolicyStatus.QUOTE: {PolicyStatus.CANCELLED},
    PolicyStatus.REFERRED: {PolicyStatus.BOUND, PolicyStatus.CANCELLED},  # underwriter sign-off
    PolicyStatus.BOUND: {PolicyStatus.ACTIVE, PolicyStatus.CANCELLED},
    PolicyStatus.ACTIVE: {
        PolicyStatus.EXPIRED,
        PolicyStatus.CANCELLED,
        PolicyStatus.SUSPENDED,
        PolicyStatus.NON_RENEWED,
    },
    PolicyStatus.SUSPENDED: {PolicyStatus.ACTIVE, PolicyStatus.CANCELLED},
}

# Products that cannot bind without at least one insured item of this type
REQUIRED_ITEM_TYPES = {
    ProductType.PERSONAL_AUTO: InsuredItemType.VEHICLE,
    ProductType.COMMERCIAL_AUTO: InsuredItemType.VEHICLE,
    ProductType.HOMEOWNERS: InsuredItemType.PROPERTY,
}


class PolicyService:
    """
    Issue, quote, bind, revise and move policies through their lifecycle.

    Every operation is a single transaction: on any failure nothing is
    written. Declaration documents are requested through the outbox and
    generated after commit.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        allocator: Optional[IdentifierAllocator] = None,
        rating_engine: Optional[RatingEngine] = None,
        underwriting_engine: Optional[UnderwritingEngine] = None,
        customers: Optional[CustomerDirectory] = None,
        documents: Optional[DocumentGenerator] = None,
        outbox: Optional[OutboxDispatcher] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        loss_history_years: int = settings.LOSS_HISTORY_YEARS,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.allocator = allocator or IdentifierAllocator(session_factory, clock=clock)
        self.rating_engine = rating_engine or get_rating_engine()
        self.underwriting_engine = underwriting_engine or get_underwriting_engine()
        self.customers = customers or SqlCustomerDirectory()
        self.documents = documents or LoggingDocumentGenerator()
        self.outbox = outbox or OutboxDispatcher(session_factory, clock=clock)
        self.loss_history_years = loss_history_years

        self.outbox.register(OutboxTopic.DECLARATION_DOCUMENTS, self.handle_declaration_documents)

    # ------------------------------------------------------------------
    # New business
    # ------------------------------------------------------------------

    def issue_policy(self, application: PolicyApplication, actor_id: Optional[UUID] = None) -> IssuedPolicy:
        """
        Price, underwrite and persist a new policy, then bind it or refer it.

        Raises:
            InvalidApplication: bad term, no coverages, or missing insured items
            CustomerNotFound: unknown customer
            MissingRequiredCoverage: a required coverage for the product is absent
            AllocatorUnavailable: no policy number could be issued
            PersistenceError: the transaction failed and was rolled back
        """
        return self._create(application, actor_id, bind=True)

    def quote_policy(self, application: PolicyApplication, actor_id: Optional[UUID] = None) -> IssuedPolicy:
        """Same as issue_policy but the policy stays a QUOTE and may be incomplete"""
        return self._create(application, actor_id, bind=False)

    def _create(self, application: PolicyApplication, actor_id: Optional[UUID], bind: bool) -> IssuedPolicy:
        self._validate_application(application)
        logger.info(
            f"{'Issuing' if bind else 'Quoting'} {application.product_type.value} "
            f"policy for customer {application.customer_id}"
        )

        message_ids = []
        with session_scope(self.session_factory) as session:
            customer = self.customers.find_customer(session, application.customer_id)
            if customer is None:
                raise CustomerNotFound(application.customer_id)

            jurisdiction = self._jurisdiction(application, customer)
            rating = self.rating_engine.price(
                application.coverages,
                application.product_type,
                jurisdiction,
                require_complete=bind,
            )
            if bind:
                self._check_insured_items(application.product_type, application.insured_items)

            policy = Policy(
                policy_number=self.allocator.allocate(IdentifierKind.POLICY),
                customer_id=customer.id,
                product_type=application.product_type,
                status=PolicyStatus.QUOTE,
                effective_date=application.effective_date,
                expiration_date=application.expiration_date,
                payment_plan=application.payment_plan,
                created_by=actor_id,
                updated_by=actor_id,
                insured_items=[InsuredItem(**item.model_dump()) for item in application.insured_items],
                drivers=[Driver(**driver.model_dump()) for driver in application.drivers],
                locations=[Location(**location.model_dump()) for location in application.locations],
            )
            self._apply_rating(policy, rating)
            session.add(policy)
            session.flush()

            decision = self._decide(session, policy)

            if bind:
                policy.status = status_after_decision(decision)
                self._write_new_business(policy, actor_id)
                message_ids.append(self._request_documents(session, policy).id)

            record_activity(
                session,
                ENTITY_TYPE,
                policy.id,
                ActivityAction.CREATED,
                f"Policy {policy.policy_number} created as {policy.status.value}",
                user_id=actor_id,
                metadata={
                    "total_premium": str(policy.total_premium),
                    "risk_score": decision.risk_score,
                    "tier": decision.tier.value,
                },
            )
            summary = self._summary(policy, rating.missing_required)

        logger.info(
            f"Policy {summary.policy_number} {summary.status.value}: "
            f"total {summary.total_premium}, score {summary.risk_score} ({summary.tier.value})"
        )
        self.outbox.dispatch(message_ids)
        return summary

    def bind_policy(self, policy_id: UUID, actor_id: Optional[UUID] = None) -> IssuedPolicy:
        """
        Submit a quote for binding. The underwriting decision is recomputed;
        the policy ends BOUND when it may auto-bind, otherwise REFERRED.
        """
        message_ids = []
        with session_scope(self.session_factory) as session:
            policy = self._load(session, policy_id)
            if policy.status != PolicyStatus.QUOTE:
                raise InvalidStatusTransition("Policy", policy.status, PolicyStatus.BOUND)

            missing = self.rating_engine.missing_required(policy.coverages, policy.product_type)
            if missing:
                raise MissingRequiredCoverage(missing)
            self._check_insured_items(policy.product_type, policy.insured_items)

            decision = self._decide(session, policy)
            policy.status = status_after_decision(decision)
            policy.updated_by = actor_id

            self._write_new_business(policy, actor_id)
            record_activity(
                session,
                ENTITY_TYPE,
                policy.id,
                ActivityAction.STATUS_CHANGED,
                f"Policy {policy.policy_number} moved from QUOTE to {policy.status.value}",
                user_id=actor_id,
                metadata={"from": PolicyStatus.QUOTE.value, "to": policy.status.value},
            )
            message_ids.append(self._request_documents(session, policy).id)
            summary = self._summary(policy, [])

        logger.info(f"Policy {summary.policy_number} bound: {summary.status.value}")
        self.outbox.dispatch(message_ids)
        return summary

    def revise_coverages(
        self,
        policy_id: UUID,
        coverages: Sequence[CoverageRequest],
        actor_id: Optional[UUID] = None,
    ) -> IssuedPolicy:
        """
        Replace the coverages of an unbound policy. Premium and underwriting
        decision are recomputed and the policy returns to QUOTE.
        """
        if not coverages:
            raise InvalidApplication("At least one coverage is required")

        with session_scope(self.session_factory) as session:
            policy = self._load(session, policy_id)
            if policy.status not in UNBOUND_STATUSES:
                raise InvalidStatusTransition("Policy", policy.status, PolicyStatus.QUOTE)

            previous_total = policy.total_premium
            previous_codes = sorted(policy.coverage_codes)
            rating = self.rating_engine.price(
                coverages,
                policy.product_type,
                Jurisdiction(state=policy.jurisdiction_state),
            )
            self._apply_rating(policy, rating)
            session.flush()

            decision = self._decide(session, policy)
            if policy.status == PolicyStatus.REFERRED:
                # Bind writes new business again at the revised premium
                self._reverse_written_premium(policy, TransactionType.REVERSAL, actor_id)
            policy.status = PolicyStatus.QUOTE
            policy.updated_by = actor_id

            record_activity(
                session,
                ENTITY_TYPE,
                policy.id,
                ActivityAction.REPRICED,
                f"Policy {policy.policy_number} repriced from {previous_total} to {policy.total_premium}",
                user_id=actor_id,
                metadata={
                    "previous_total": str(previous_total),
                    "total_premium": str(policy.total_premium),
                    "previous_coverages": previous_codes,
                    "coverages": [c.code for c in policy.coverages],
                    "risk_score": decision.risk_score,
                },
            )
            summary = self._summary(policy, rating.missing_required)

        return summary

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def change_status(
        self,
        policy_id: UUID,
        status: PolicyStatus,
        actor_id: Optional[UUID] = None,
    ) -> IssuedPolicy:
        status = PolicyStatus(status)

        message_ids = []
        with session_scope(self.session_factory) as session:
            policy = self._load(session, policy_id)
            previous = policy.status
            if status not in POLICY_TRANSITIONS.get(previous, set()):
                raise InvalidStatusTransition("Policy", previous, status)

            if status == PolicyStatus.CANCELLED:
                self._write_cancellation(policy, actor_id)

            policy.status = status
            policy.updated_by = actor_id

            if previous == PolicyStatus.REFERRED and status == PolicyStatus.BOUND:
                message_ids.append(self._request_documents(session, policy).id)

            record_activity(
                session,
                ENTITY_TYPE,
                policy.id,
                ActivityAction.STATUS_CHANGED,
                f"Policy {policy.policy_number} moved from {previous.value} to {status.value}",
                user_id=actor_id,
                metadata={"from": previous.value, "to": status.value},
            )
            summary = self._summary(policy, [])

        logger.info(f"Policy {summary.policy_number}: {previous.value} -> {status.value}")
        self.outbox.dispatch(message_ids)
        return summary

    def get_policy(self, policy_id: UUID) -> PolicyDetail:
        with session_scope(self.session_factory) as session:
            return PolicyDetail.model_validate(self._load(session, policy_id))

    # ------------------------------------------------------------------
    # Outbox handler
    # ------------------------------------------------------------------

    def handle_declaration_documents(self, session: Session, payload: dict) -> None:
        policy = session.get(Policy, UUID(payload["policy_id"]))
        if policy is None:
            raise PolicyNotFound(payload["policy_id"])

        snapshot = to_dict(policy)
        snapshot["coverages"] = [to_dict(coverage) for coverage in policy.coverages]
        self.documents.generate_declaration_documents(snapshot)

        record_activity(
            session,
            ENTITY_TYPE,
            policy.id,
            ActivityAction.DOCUMENTS_REQUESTED,
            f"Declaration documents requested for {policy.policy_number}",
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_application(self, application: PolicyApplication) -> None:
        if application.effective_date >= application.expiration_date:
            raise InvalidApplication("Effective date must be before expiration date")
        if not application.coverages:
            raise InvalidApplication("At least one coverage is required")

    def _check_insured_items(self, product_type: ProductType, items) -> None:
        required = REQUIRED_ITEM_TYPES.get(product_type)
        if required and not any(item.item_type == required for item in items):
            raise InvalidApplication(
                f"{product_type.value} requires at least one {required.value.lower()} insured item"
            )

    def _jurisdiction(self, application: PolicyApplication, customer) -> Jurisdiction:
        """First rated location, else the customer's home state"""
        if application.locations:
            return Jurisdiction(state=application.locations[0].state)
        return Jurisdiction(state=customer.state)

    def _load(self, session: Session, policy_id: UUID) -> Policy:
        policy = session.get(Policy, policy_id)
        if policy is None:
            raise PolicyNotFound(policy_id)
        return policy

    def _apply_rating(self, policy: Policy, rating: RatingResult) -> None:
        policy.coverages = [
            Coverage(
                position=position,
                code=line.code,
                name=line.name,
                coverage_type=line.coverage_type,
                limit_amount=line.limit_amount,
                limit_label=line.limit_label,
                deductible=line.deductible,
                premium=line.premium,
                required=line.required,
            )
            for position, line in enumerate(rating.coverages)
        ]
        policy.base_premium = rating.base_premium
        policy.fees = rating.fees
        policy.taxes = rating.taxes
        policy.total_premium = rating.total_premium
        policy.jurisdiction_state = rating.jurisdiction_state
        policy.rating_version = rating.rating_version

    def _decide(self, session: Session, policy: Policy) -> UnderwritingDecision:
        """Run underwriting on the policy as it stands and store the decision on it"""
        rated = RatedPolicy(
            product_type=policy.product_type,
            effective_date=policy.effective_date,
            total_premium=policy.total_premium,
            coverages=[PricedCoverage.model_validate(c) for c in policy.coverages],
            drivers=[DriverFacts.model_validate(d) for d in policy.drivers],
            prior_claim_count=self._prior_claim_count(session, policy.customer_id),
        )
        decision = self.underwriting_engine.decide(rated)

        policy.risk_score = decision.risk_score
        policy.underwriting_tier = decision.tier
        policy.binding_authority = decision.binding_authority
        return decision

    def _prior_claim_count(self, session: Session, customer_id: UUID) -> int:
        since = self.clock() - timedelta(days=365 * self.loss_history_years)
        return (
            session.query(func.count(Claim.id))
            .filter(Claim.customer_id == customer_id, Claim.reported_date >= since)
            .scalar()
        ) or 0

    def _written_premium(self, policy: Policy) -> Decimal:
        return sum((t.premium_change for t in policy.transactions), Decimal("0"))

    def _write_new_business(self, policy: Policy, actor_id: Optional[UUID]) -> None:
        policy.transactions.append(PolicyTransaction(
            transaction_type=TransactionType.NEW_BUSINESS,
            premium_change=policy.total_premium,
            effective_date=policy.effective_date,
            created_by=actor_id,
        ))

    def _write_cancellation(self, policy: Policy, actor_id: Optional[UUID]) -> None:
        """Return whatever premium has been written; quotes have none"""
        self._reverse_written_premium(policy, TransactionType.CANCELLATION, actor_id)

    def _reverse_written_premium(
        self,
        policy: Policy,
        transaction_type: TransactionType,
        actor_id: Optional[UUID],
    ) -> None:
        written = self._written_premium(policy)
        if written:
            policy.transactions.append(PolicyTransaction(
                transaction_type=transaction_type,
                premium_change=-written,
                effective_date=self.clock(),
                created_by=actor_id,
            ))

    def _request_documents(self, session: Session, policy: Policy):
        return self.outbox.enqueue(
            session,
            OutboxTopic.DECLARATION_DOCUMENTS,
            {"policy_id": str(policy.id), "policy_number": policy.policy_number},
        )

    def _summary(self, policy: Policy, missing_required: List[str]) -> IssuedPolicy:
        return IssuedPolicy(
            policy_id=policy.id,
            policy_number=policy.policy_number,
            status=policy.status,
            base_premium=policy.base_premium,
            fees=policy.fees,
            taxes=policy.taxes,
            total_premium=policy.total_premium,
            risk_score=policy.risk_score,
            tier=policy.underwriting_tier,
            binding_authority=policy.binding_authority,
            missing_required=missing_required,
        )
