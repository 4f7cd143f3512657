"""
Tests for claim intake, adjuster assignment and fraud evaluation.
"""

import calendar
from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from app.core.exceptions import (
    CustomerNotFound,
    InvalidClaimReport,
    InvalidStatusTransition,
    PolicyNotFound,
)
from app.models import (
    Activity,
    ActivityAction,
    Claim,
    ClaimStatus,
    FraudAlert,
    FraudAlertStatus,
    FraudSeverity,
    OutboxMessage,
    OutboxStatus,
)
from app.schemas.application import ParticipantInput
from app.services.fraud import FraudSignalEngine, multiple_recent_claims
from app.services.outbox import OutboxDispatcher
from app.services.registry import build_services

from factories import FIXED_NOW, make_claim_report


def fraud_alerts(session_factory):
    with session_factory() as session:
        return session.query(FraudAlert).all()


class TestFileClaim:

    def test_file_claim(self, services, bound_policy, customer, adjusters, session_factory):
        report = make_claim_report(
            bound_policy.policy_id,
            customer.id,
            participants=[ParticipantInput(participant_type="WITNESS", name="Dana Ruiz", role="Pedestrian")],
        )
        filed = services.claims.file_claim(report, actor_id=uuid4())

        assert filed.claim_number == f"CLM-{calendar.timegm(FIXED_NOW.utctimetuple())}"
        assert filed.status == ClaimStatus.OPEN
        assert filed.assigned_adjuster_id == adjusters[0].id

        detail = services.claims.get_claim(filed.claim_id)
        assert detail.reported_date == FIXED_NOW
        assert detail.loss_amount == Decimal("4200.00")
        assert [p.name for p in detail.participants] == ["Dana Ruiz"]

        with session_factory() as session:
            activity = session.query(Activity).filter(Activity.entity_id == filed.claim_id).one()
            message = session.query(OutboxMessage).filter(OutboxMessage.topic == "claim.fraud_evaluation").one()

        assert activity.action == ActivityAction.CREATED
        assert message.status == OutboxStatus.DONE
        assert fraud_alerts(session_factory) == []

    def test_adjusters_assigned_by_open_workload(self, services, bound_policy, customer, adjusters):
        filed = [
            services.claims.file_claim(make_claim_report(bound_policy.policy_id, customer.id))
            for _ in range(4)
        ]

        assigned = [c.assigned_adjuster_id for c in filed]
        assert assigned == [adjusters[0].id, adjusters[1].id, adjusters[2].id, adjusters[0].id]

    def test_closed_claims_free_up_adjusters(self, services, bound_policy, customer, adjusters):
        first = services.claims.file_claim(make_claim_report(bound_policy.policy_id, customer.id))
        services.claims.change_status(first.claim_id, ClaimStatus.PROCESSING)
        services.claims.change_status(first.claim_id, ClaimStatus.CLOSED)

        second = services.claims.file_claim(make_claim_report(bound_policy.policy_id, customer.id))

        assert second.assigned_adjuster_id == adjusters[0].id

    def test_without_adjusters_claim_is_unassigned(self, services, bound_policy, customer):
        filed = services.claims.file_claim(make_claim_report(bound_policy.policy_id, customer.id))
        assert filed.assigned_adjuster_id is None

    def test_reported_before_loss_is_rejected(self, services, bound_policy, customer, session_factory):
        report = make_claim_report(
            bound_policy.policy_id,
            customer.id,
            loss_date=FIXED_NOW,
            reported_date=FIXED_NOW - timedelta(hours=1),
        )

        with pytest.raises(InvalidClaimReport):
            services.claims.file_claim(report)

        with session_factory() as session:
            assert session.query(Claim).count() == 0

    def test_loss_in_the_future_is_rejected(self, services, bound_policy, customer):
        report = make_claim_report(bound_policy.policy_id, customer.id, loss_date=FIXED_NOW + timedelta(days=1))

        with pytest.raises(InvalidClaimReport):
            services.claims.file_claim(report)

    def test_negative_reserve_is_rejected(self, services, bound_policy, customer):
        report = make_claim_report(bound_policy.policy_id, customer.id, reserve_amount=Decimal("-1"))

        with pytest.raises(InvalidClaimReport):
            services.claims.file_claim(report)

    def test_unknown_policy(self, services, customer):
        with pytest.raises(PolicyNotFound):
            services.claims.file_claim(make_claim_report(uuid4(), customer.id))

    def test_unknown_customer(self, services, bound_policy):
        with pytest.raises(CustomerNotFound):
            services.claims.file_claim(make_claim_report(bound_policy.policy_id, uuid4()))

    def test_customer_must_hold_the_policy(self, services, bound_policy, other_customer):
        with pytest.raises(InvalidClaimReport):
            services.claims.file_claim(make_claim_report(bound_policy.policy_id, other_customer.id))


class TestFraudEvaluation:

    def test_high_value_claim_with_recent_history(self, services, bound_policy, customer, adjusters,
                                                  session_factory, clock):
        for days_ago in (40, 30, 20, 10):
            services.claims.file_claim(make_claim_report(
                bound_policy.policy_id,
                customer.id,
                loss_date=FIXED_NOW - timedelta(days=days_ago + 1),
                reported_date=FIXED_NOW - timedelta(days=days_ago),
                loss_amount=Decimal("800"),
            ))
        before = {a.entity_id for a in fraud_alerts(session_factory)}

        filed = services.claims.file_claim(make_claim_report(
            bound_policy.policy_id, customer.id, loss_amount=Decimal("60000")
        ))

        [alert] = [a for a in fraud_alerts(session_factory) if a.entity_id not in before]
        assert alert.entity_id == filed.claim_id
        assert alert.entity_type == "CLAIM"
        assert alert.indicators == ["high value claim", "multiple recent claims"]
        assert alert.risk_score == 75
        assert alert.severity == FraudSeverity.MEDIUM
        assert alert.investigation_required
        assert alert.status == FraudAlertStatus.PENDING
        assert alert.recommended_action == "immediate_investigation"

        with session_factory() as session:
            actions = {a.action for a in session.query(Activity).filter(Activity.entity_id == filed.claim_id)}
        assert ActivityAction.FRAUD_ALERT_RAISED in actions

    def test_very_high_value_is_high_severity(self, services, bound_policy, customer, session_factory):
        services.claims.file_claim(make_claim_report(
            bound_policy.policy_id, customer.id, loss_amount=Decimal("90000")
        ))

        [alert] = fraud_alerts(session_factory)
        assert alert.severity == FraudSeverity.HIGH
        assert alert.risk_score == 50
        assert alert.recommended_action == "detailed_review"

    def test_history_is_loaded_for_the_engine_window(self, session_factory, clock, application, customer):
        engine = FraudSignalEngine(indicators=[multiple_recent_claims(window_days=120, limit=1)])
        services = build_services(session_factory, clock=clock, fraud_engine=engine)
        policy = services.policies.issue_policy(application)

        services.claims.file_claim(make_claim_report(
            policy.policy_id,
            customer.id,
            loss_date=FIXED_NOW - timedelta(days=101),
            reported_date=FIXED_NOW - timedelta(days=100),
        ))
        filed = services.claims.file_claim(make_claim_report(policy.policy_id, customer.id))

        [alert] = fraud_alerts(session_factory)
        assert alert.entity_id == filed.claim_id
        assert alert.indicators == ["multiple recent claims"]

    def test_scoring_failure_does_not_fail_filing(self, services, bound_policy, customer,
                                                  session_factory, clock, mocker):
        mocker.patch.object(services.claims.fraud_engine, "evaluate", side_effect=RuntimeError("scoring down"))

        filed = services.claims.file_claim(make_claim_report(
            bound_policy.policy_id, customer.id, loss_amount=Decimal("60000")
        ))

        with session_factory() as session:
            assert session.get(Claim, filed.claim_id).is_open
            message = session.query(OutboxMessage).filter(OutboxMessage.topic == "claim.fraud_evaluation").one()
            assert message.status == OutboxStatus.PENDING
            assert message.attempts == 1
            assert "scoring down" in message.last_error
        assert fraud_alerts(session_factory) == []

        # Retry runner picks it up once the backoff has passed
        mocker.stopall()
        assert services.outbox.dispatch_pending() == 0
        clock.advance(seconds=5)
        assert services.outbox.dispatch_pending() == 1

        [alert] = fraud_alerts(session_factory)
        assert alert.entity_id == filed.claim_id

    def test_message_parked_after_max_attempts(self, services, bound_policy, customer,
                                               session_factory, clock, mocker):
        services.outbox.max_attempts = 2
        mocker.patch.object(services.claims.fraud_engine, "evaluate", side_effect=RuntimeError("scoring down"))

        services.claims.file_claim(make_claim_report(bound_policy.policy_id, customer.id))
        clock.advance(minutes=1)
        services.outbox.dispatch_pending()

        with session_factory() as session:
            message = session.query(OutboxMessage).filter(OutboxMessage.topic == "claim.fraud_evaluation").one()
        assert message.status == OutboxStatus.FAILED
        assert message.attempts == 2

        clock.advance(minutes=1)
        assert services.outbox.dispatch_pending() == 0

    def test_unknown_topic_is_recorded_as_failure(self, session_factory, clock):
        dispatcher = OutboxDispatcher(session_factory, clock=clock)
        with session_factory() as session:
            message = OutboxDispatcher.enqueue(session, "policy.renewal_notice", {"policy_id": "x"})
            session.commit()

        assert dispatcher.dispatch([message.id]) == 0
        with session_factory() as session:
            stored = session.get(OutboxMessage, message.id)
        assert stored.attempts == 1
        assert "No handler registered" in stored.last_error


class TestClaimLifecycle:

    def test_investigate_then_deny(self, services, bound_policy, customer):
        filed = services.claims.file_claim(make_claim_report(bound_policy.policy_id, customer.id))

        services.claims.change_status(filed.claim_id, ClaimStatus.INVESTIGATING)
        denied = services.claims.change_status(filed.claim_id, ClaimStatus.DENIED)

        assert denied.status == ClaimStatus.DENIED

    def test_cannot_close_without_review(self, services, bound_policy, customer):
        filed = services.claims.file_claim(make_claim_report(bound_policy.policy_id, customer.id))

        with pytest.raises(InvalidStatusTransition):
            services.claims.change_status(filed.claim_id, ClaimStatus.CLOSED)

    def test_closed_claims_stay_closed(self, services, bound_policy, customer):
        filed = services.claims.file_claim(make_claim_report(bound_policy.policy_id, customer.id))
        services.claims.change_status(filed.claim_id, ClaimStatus.PROCESSING)
        services.claims.change_status(filed.claim_id, ClaimStatus.CLOSED)

        with pytest.raises(InvalidStatusTransition):
            services.claims.change_status(filed.claim_id, ClaimStatus.OPEN)
