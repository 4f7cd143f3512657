"""
Collaborators the engine consumes but does not own: the customer directory,
adjuster workload, and declaration document generation.
Default implementations read from the shared database or just log.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol
from uuid import UUID

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from app.models.claim import Claim, OPEN_CLAIM_STATUSES
from app.models.customer import Customer
from app.models.user import User, RoleType

logger = logging.getLogger(__name__)


class CustomerDirectory(Protocol):
    def find_customer(self, session: Session, customer_id: UUID) -> Optional[Customer]:
        ...


class AdjusterWorkload(Protocol):
    def list_adjusters_by_open_claim_count(self, session: Session) -> List[User]:
        ...


class DocumentGenerator(Protocol):
    def generate_declaration_documents(self, policy: Dict[str, Any]) -> None:
        ...


class SqlCustomerDirectory:
    """Customers live in the same database"""

    def find_customer(self, session: Session, customer_id: UUID) -> Optional[Customer]:
        return session.get(Customer, customer_id)


class SqlAdjusterWorkload:
    """
    Active adjusters ordered by how many OPEN/INVESTIGATING/PROCESSING
    claims they hold. Ties go to the longest-standing adjuster, then email.
    """

    def list_adjusters_by_open_claim_count(self, session: Session) -> List[User]:
        open_claims = func.count(Claim.id)

        rows = (
            session.query(User, open_claims)
            .outerjoin(
                Claim,
                and_(
                    Claim.assigned_adjuster_id == User.id,
                    Claim.status.in_(OPEN_CLAIM_STATUSES),
                ),
            )
            .filter(User.role == RoleType.ADJUSTER, User.is_active.is_(True))
            .group_by(User.id)
            .order_by(open_claims, User.created_at, User.email)
            .all()
        )
        return [user for user, _ in rows]


class LoggingDocumentGenerator:
    """Stand-in until a document service is wired in"""

    def generate_declaration_documents(self, policy: Dict[str, Any]) -> None:
        logger.info(
            f"Declaration documents requested for {policy['policy_number']} "
            f"({len(policy.get('coverages', []))} coverages, total {policy['total_premium']})"
        )
