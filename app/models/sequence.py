"""
Sequence counters backing policy and claim numbers.
One row per (kind, year); only ever changed by a single-row atomic update.
"""

from sqlalchemy import Column, String, Integer, BigInteger, DateTime
from datetime import datetime

from app.core.database import Base


class SequenceCounter(Base):
    __tablename__ = "sequence_counters"

    kind = Column(String(20), primary_key=True)
    year = Column(Integer, primary_key=True, autoincrement=False)

    value = Column(
        BigInteger,
        nullable=False,
        default=0,
        comment="Last value handed out"
    )

    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<SequenceCounter {self.kind}/{self.year} = {self.value}>"
