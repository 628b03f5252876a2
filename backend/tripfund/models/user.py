"""
User model for authentication.
"""
from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from tripfund.db.base import BaseModel


class User(BaseModel):
    """Account that owns trips; identified by email."""
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    trips = relationship("Trip", back_populates="owner", cascade="all, delete-orphan")
    viewed_trips = relationship("TripViewer", back_populates="user", cascade="all, delete-orphan")
