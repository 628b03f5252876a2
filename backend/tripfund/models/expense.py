"""
Expense model for tracking spending against a trip.
"""
from sqlalchemy import Column, String, Numeric, ForeignKey, Integer, Boolean
from sqlalchemy.orm import relationship
from tripfund.db.base import BaseModel


class Expense(BaseModel):
    """Expense model representing a single spending event."""
    __tablename__ = "expenses"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    paid_by = Column(String(100), nullable=False)  # participant name or "Pool Fund"
    split_type = Column(String(20), nullable=False, default="equal")
    deduct_from_fund = Column(Boolean, default=False, nullable=False)

    # Relationships
    trip = relationship("Trip", back_populates="expenses")
