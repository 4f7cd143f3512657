"""
Wires the services together around one allocator and one outbox dispatcher,
so every outbox topic has its handler registered wherever messages are
dispatched from.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.core.database import SessionLocal
from app.services.claim_service import ClaimService
from app.services.collaborators import AdjusterWorkload, CustomerDirectory, DocumentGenerator
from app.services.fraud import FraudSignalEngine
from app.services.identifiers import IdentifierAllocator
from app.services.outbox import OutboxDispatcher
from app.services.policy_service import PolicyService


@dataclass
class Services:
    allocator: IdentifierAllocator
    outbox: OutboxDispatcher
    policies: PolicyService
    claims: ClaimService


def build_services(
    session_factory: Callable[[], Session] = SessionLocal,
    clock: Callable[[], datetime] = datetime.utcnow,
    customers: Optional[CustomerDirectory] = None,
    adjusters: Optional[AdjusterWorkload] = None,
    documents: Optional[DocumentGenerator] = None,
    fraud_engine: Optional[FraudSignalEngine] = None,
) -> Services:
    allocator = IdentifierAllocator(session_factory, clock=clock)
    outbox = OutboxDispatcher(session_factory, clock=clock)

    policies = PolicyService(
        session_factory,
        allocator=allocator,
        customers=customers,
        documents=documents,
        outbox=outbox,
        clock=clock,
    )
    claims = ClaimService(
        session_factory,
        allocator=allocator,
        fraud_engine=fraud_engine,
        customers=customers,
        adjusters=adjusters,
        outbox=outbox,
        clock=clock,
    )
    return Services(allocator=allocator, outbox=outbox, policies=policies, claims=claims)


# Singleton instance
_services = None

def get_services() -> Services:
    """Get or create the Services bound to the configured database"""
    global _services
    if _services is None:
        _services = build_services()
    return _services
