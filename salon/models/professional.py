"""Professional model definitions."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, func
from salon.database import Base


class Professional(Base):
    """Represents a professional who takes appointments.

    ``working_hours`` holds the weekly schedule keyed by weekday
    ("0" is Sunday), e.g. ``{"1": {"start": "09:00", "end": "18:00"}}``.
    Weekdays that are missing or null are closed.
    """
    __tablename__ = "professionals"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    name = Column(String, nullable=False)
    specialty = Column(String, nullable=False, default="")
    color = Column(String)
    working_hours = Column(JSON)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
