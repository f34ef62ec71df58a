"""Service model definitions."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Numeric, String
from salon.database import Base


class Service(Base):
    """Represents a bookable service and its duration in minutes."""
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration > 0", name="ck_services_duration_positive"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    name = Column(String, nullable=False)
    duration = Column(Integer, nullable=False, default=30)
    price = Column(Numeric(10, 2), nullable=False, default=0)
