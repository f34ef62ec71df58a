"""Appointment model definitions."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from salon.database import APPOINTMENT_START_CONSTRAINT, Base


class Appointment(Base):
    """Represents a committed booking.

    Start and duration are stored in minutes so the database can compare
    intervals directly; overlapping rows for the same professional and date
    are rejected by the guard installed in ``ensure_appointment_schema``.
    """
    __tablename__ = "appointments"
    __table_args__ = (
        UniqueConstraint("professional_id", "date", "start_minute", name=APPOINTMENT_START_CONSTRAINT),
        CheckConstraint("duration > 0", name="ck_appointments_duration_positive"),
        CheckConstraint("start_minute >= 0 AND start_minute < 1440", name="ck_appointments_start_minute"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    professional_id = Column(Integer, ForeignKey("professionals.id", ondelete="CASCADE"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="SET NULL"))
    date = Column(Date, nullable=False)
    start_minute = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=False)
    notes = Column(String)
    status = Column(String, default="booked")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
