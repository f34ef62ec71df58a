"""User model definitions."""

from sqlalchemy import Column, Integer, String
from salon.database import Base


class User(Base):
    """Represents a business owner account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    business_name = Column(String)
    role = Column(String, default="owner")  # owner/staff
