"""
Identifier Allocator
Hands out human-readable policy and claim numbers from per-(kind, year)
sequence counters. Each allocation is one single-row atomic update in its
own short transaction, so concurrent callers never receive the same number
and only ever wait on each other for that one statement.
"""

import calendar
import enum
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import SessionLocal
from app.core.exceptions import AllocatorUnavailable
from app.models.sequence import SequenceCounter

logger = logging.getLogger(__name__)


class IdentifierKind(str, enum.Enum):
    POLICY = "POLICY"
    CLAIM = "CLAIM"


Clock = Callable[[], datetime]


class IdentifierAllocator:
    """
    Policy numbers: POL-YYYY-NNNNNN, a zero-padded per-year sequence.
    Claim numbers:  CLM-<epoch seconds>, bumped past the last issued value
    when several claims are filed in the same second.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        clock: Clock = datetime.utcnow,
        policy_prefix: str = settings.POLICY_NUMBER_PREFIX,
        claim_prefix: str = settings.CLAIM_NUMBER_PREFIX,
        max_attempts: int = settings.ALLOCATOR_MAX_ATTEMPTS,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.prefixes = {
            IdentifierKind.POLICY: policy_prefix,
            IdentifierKind.CLAIM: claim_prefix,
        }
        self.max_attempts = max_attempts

    def allocate(self, kind: IdentifierKind, clock: Optional[Clock] = None) -> str:
        """
        Allocate the next number for a kind.

        Raises:
            AllocatorUnavailable: sequence storage could not be reached or
                kept conflicting; no number has been issued
        """
        kind = IdentifierKind(kind)
        now = (clock or self.clock)()
        floor = self._floor(kind, now)

        for attempt in range(1, self.max_attempts + 1):
            session = self.session_factory()
            try:
                value = self._next_value(session, kind, now.year, floor)
                session.commit()
                return self.format(kind, now.year, value)
            except IntegrityError:
                # Counter row for this year was created concurrently
                session.rollback()
                logger.warning(f"Sequence {kind.value}/{now.year} created concurrently, retrying ({attempt})")
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Sequence storage unavailable for {kind.value}: {e}")
                raise AllocatorUnavailable(f"Could not allocate {kind.value.lower()} number") from e
            finally:
                session.close()

        raise AllocatorUnavailable(
            f"Could not allocate {kind.value.lower()} number after {self.max_attempts} attempts"
        )

    def format(self, kind: IdentifierKind, year: int, value: int) -> str:
        prefix = self.prefixes[kind]
        if kind == IdentifierKind.POLICY:
            return f"{prefix}-{year}-{value:06d}"
        return f"{prefix}-{value}"

    def _floor(self, kind: IdentifierKind, now: datetime) -> int:
        """Lowest value the next number may take"""
        if kind == IdentifierKind.CLAIM:
            return calendar.timegm(now.utctimetuple())
        return 0

    def _next_value(self, session: Session, kind: IdentifierKind, year: int, floor: int) -> int:
        incremented = SequenceCounter.value + 1
        stmt = (
            update(SequenceCounter)
            .where(SequenceCounter.kind == kind.value, SequenceCounter.year == year)
            .values(value=case((incremented > floor, incremented), else_=floor))
            .returning(SequenceCounter.value)
            .execution_options(synchronize_session=False)
        )
        value = session.execute(stmt).scalar_one_or_none()

        if value is None:
            # First number of the year; a racing insert fails on the primary key
            value = max(1, floor)
            session.add(SequenceCounter(kind=kind.value, year=year, value=value))
            session.flush()

        return value

