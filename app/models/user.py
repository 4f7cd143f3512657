"""
User model for back-office staff.
Adjusters receive claim assignments; every other role only shows up as
the acting user on audit entries.
"""

from sqlalchemy import Column, String, Boolean, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from app.core.database import Base
from app.models.base import TimestampMixin, UUIDMixin


class RoleType(str, enum.Enum):
    """
    Predefined roles for the system.
    """
    ADMIN = "ADMIN"
    UNDERWRITER = "UNDERWRITER"  # Signs off referred policies
    ADJUSTER = "ADJUSTER"  # Works assigned claims
    EXECUTIVE = "EXECUTIVE"
    AUDITOR = "AUDITOR"


class User(Base, UUIDMixin, TimestampMixin):
    """
    Staff accounts. Credentials live with the identity provider.
    """
    __tablename__ = "users"

    email = Column(
        String(255),
        unique=True,
        nullable=False,
        index=True
    )

    full_name = Column(String(255), nullable=False)

    role = Column(
        SQLEnum(RoleType),
        nullable=False,
        index=True
    )

    is_active = Column(
        Boolean,
        default=True,
        nullable=False,
        index=True,
        comment="Inactive users receive no assignments"
    )

    # Claims assigned to this user (as an adjuster)
    assigned_claims = relationship(
        "Claim",
        back_populates="assigned_adjuster",
        foreign_keys="Claim.assigned_adjuster_id"
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"
