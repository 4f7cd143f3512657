"""
SQLAlchemy ORM Models for the policy & claims engine
"""

from app.models.base import TimestampMixin, UUIDMixin, AuditMixin, to_dict
from app.models.customer import Customer, CustomerType
from app.models.user import User, RoleType
from app.models.policy import (
    Policy,
    ProductType,
    PolicyStatus,
    PaymentPlan,
    UnderwritingTier,
    BindingAuthority,
    ComplianceStatus,
)
from app.models.coverage import Coverage
from app.models.exposure import InsuredItem, InsuredItemType, Driver, Location
from app.models.policy_transaction import PolicyTransaction, TransactionType
from app.models.claim import Claim, ClaimStatus
from app.models.participant import Participant
from app.models.fraud_alert import FraudAlert, FraudSeverity, FraudAlertStatus
from app.models.activity import Activity, ActivityAction, ImmutableActivityError
from app.models.sequence import SequenceCounter
from app.models.outbox import OutboxMessage, OutboxStatus, OutboxTopic

__all__ = [
    # Base mixins
    "TimestampMixin",
    "UUIDMixin",
    "AuditMixin",
    "to_dict",
    # Parties
    "Customer",
    "CustomerType",
    "User",
    "RoleType",
    # Policy aggregate
    "Policy",
    "ProductType",
    "PolicyStatus",
    "PaymentPlan",
    "UnderwritingTier",
    "BindingAuthority",
    "ComplianceStatus",
    "Coverage",
    "InsuredItem",
    "InsuredItemType",
    "Driver",
    "Location",
    "PolicyTransaction",
    "TransactionType",
    # Claim aggregate
    "Claim",
    "ClaimStatus",
    "Participant",
    # Fraud detection
    "FraudAlert",
    "FraudSeverity",
    "FraudAlertStatus",
    # Audit
    "Activity",
    "ActivityAction",
    "ImmutableActivityError",
    # Infrastructure
    "SequenceCounter",
    "OutboxMessage",
    "OutboxStatus",
    "OutboxTopic",
]
