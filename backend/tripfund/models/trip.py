"""
Trip model with its pooled fund setup.
"""
from sqlalchemy import Column, String, Numeric, ForeignKey, Integer, JSON, DateTime, UniqueConstraint, func
from sqlalchemy.orm import relationship
from tripfund.db.base import BaseModel


class Trip(BaseModel):
    """A trip with ordered participants and the fund they pooled."""
    __tablename__ = "trips"

    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    participants = Column(JSON, nullable=False)  # ordered list of names
    contributions = Column(JSON, nullable=False)  # name -> amount as string
    total_pooled = Column(Numeric(15, 2), nullable=False)  # fixed at fund creation

    # Relationships
    owner = relationship("User", back_populates="trips")
    expenses = relationship("Expense", back_populates="trip", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="trip", cascade="all, delete-orphan")
    viewers = relationship("TripViewer", back_populates="trip", cascade="all, delete-orphan")


class TripViewer(BaseModel):
    """A non-owner who opened a shared trip."""
    __tablename__ = "trip_viewers"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    viewed_at = Column(DateTime, server_default=func.now(), nullable=False)

    # Relationships
    trip = relationship("Trip", back_populates="viewers")
    user = relationship("User", back_populates="viewed_trips")

    __table_args__ = (
        UniqueConstraint('trip_id', 'user_id', name='uq_trip_viewer'),
    )
