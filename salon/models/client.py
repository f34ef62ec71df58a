"""Client model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from salon.database import Base


class Client(Base):
    """Represents a salon client."""
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    name = Column(String, nullable=False)
    phone = Column(String)
    email = Column(String)
    notes = Column(String)
    created_at = Column(DateTime, server_default=func.now())
