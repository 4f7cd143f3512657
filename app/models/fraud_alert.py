"""
Fraud alert model - rule-based fraud signals raised against a claim.
"""

from sqlalchemy import Column, String, Integer, JSON, Text, Boolean, Uuid, Enum as SQLEnum, Index
import enum

from app.core.database import Base
from app.models.base import TimestampMixin, UUIDMixin


class FraudSeverity(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class FraudAlertStatus(str, enum.Enum):
    """Only PENDING is written by the engine; reviewers move it on"""
    PENDING = "PENDING"
    INVESTIGATING = "INVESTIGATING"
    CONFIRMED = "CONFIRMED"
    DISMISSED = "DISMISSED"


class FraudAlert(Base, UUIDMixin, TimestampMixin):
    """
    Result of one fraud evaluation that fired at least one indicator.
    Holds a weak reference (entity type + id) to whatever triggered it.
    """
    __tablename__ = "fraud_alerts"

    alert_type = Column(String(50), nullable=False, default="SUSPICIOUS_PATTERN")

    entity_type = Column(String(20), nullable=False, comment="CLAIM")
    entity_id = Column(Uuid(as_uuid=True), nullable=False)

    severity = Column(SQLEnum(FraudSeverity), nullable=False, index=True)

    risk_score = Column(
        Integer,
        nullable=False,
        index=True,
        comment="0-100"
    )

    indicators = Column(
        JSON,
        nullable=False,
        comment="Human-readable indicator labels that fired"
    )

    # Examples:
    # ["high value claim", "multiple recent claims"]

    description = Column(Text, nullable=False)

    investigation_required = Column(
        Boolean,
        default=False,
        nullable=False,
        index=True
    )

    status = Column(
        SQLEnum(FraudAlertStatus),
        default=FraudAlertStatus.PENDING,
        nullable=False,
        index=True
    )

    __table_args__ = (
        Index('ix_fraud_alerts_entity', 'entity_type', 'entity_id'),
    )

    def __repr__(self) -> str:
        return f"<FraudAlert {self.risk_score} - {self.severity.value}>"

    @property
    def recommended_action(self) -> str:
        """Suggest next steps based on score"""
        if self.risk_score >= 75:
            return "immediate_investigation"
        elif self.risk_score >= 50:
            return "detailed_review"
        else:
            return "flag_for_monitoring"
