"""
Rated exposures owned by a policy: insured items, drivers and locations.
"""

from sqlalchemy import Column, String, Integer, Numeric, Date, Boolean, ForeignKey, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from app.core.database import Base
from app.models.base import TimestampMixin, UUIDMixin


class InsuredItemType(str, enum.Enum):
    VEHICLE = "VEHICLE"
    PROPERTY = "PROPERTY"


class InsuredItem(Base, UUIDMixin, TimestampMixin):
    """Vehicle or property covered by the policy"""
    __tablename__ = "insured_items"

    policy_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("policies.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    item_type = Column(SQLEnum(InsuredItemType), nullable=False)
    description = Column(String(500), nullable=True)

    # Vehicles
    year = Column(Integer, nullable=True)
    make = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    vin = Column(String(17), nullable=True, index=True)

    # Property
    address = Column(String(500), nullable=True)

    covered_amount = Column(Numeric(14, 2), nullable=True)

    policy = relationship("Policy", back_populates="insured_items")

    def __repr__(self) -> str:
        return f"<InsuredItem {self.item_type.value} {self.description or self.vin or self.address}>"


class Driver(Base, UUIDMixin, TimestampMixin):
    """Named or occasional operator on an auto policy"""
    __tablename__ = "drivers"

    policy_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("policies.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    is_named_insured = Column(Boolean, default=True, nullable=False)

    license_number = Column(String(50), nullable=True)
    license_state = Column(String(2), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    violation_count = Column(Integer, default=0, nullable=False)

    policy = relationship("Policy", back_populates="drivers")

    def __repr__(self) -> str:
        return f"<Driver {self.first_name} {self.last_name}>"


class Location(Base, UUIDMixin, TimestampMixin):
    """Rated premises with construction/occupancy attributes"""
    __tablename__ = "locations"

    policy_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("policies.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    address_line1 = Column(String(255), nullable=False)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=False)
    state = Column(String(2), nullable=False)
    zip_code = Column(String(10), nullable=False)

    construction_type = Column(String(50), nullable=True, comment="FRAME, MASONRY, FIRE_RESISTIVE")
    occupancy = Column(String(50), nullable=True, comment="OWNER, TENANT, VACANT, COMMERCIAL")
    year_built = Column(Integer, nullable=True)

    policy = relationship("Policy", back_populates="locations")

    def __repr__(self) -> str:
        return f"<Location {self.city}, {self.state}>"
