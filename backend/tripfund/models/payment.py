"""
Payment acknowledgement model.
"""
from sqlalchemy import Column, String, Numeric, ForeignKey, Integer, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from tripfund.db.base import BaseModel


class Payment(BaseModel):
    """Records that ``debtor`` has paid back ``payer``."""
    __tablename__ = "payments"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    payer = Column(String(100), nullable=False)  # who is owed
    debtor = Column(String(100), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)  # amount owed when acknowledged
    received = Column(Boolean, default=False, nullable=False)

    # Relationships
    trip = relationship("Trip", back_populates="payments")

    __table_args__ = (
        UniqueConstraint('trip_id', 'payer', 'debtor', name='uq_trip_payer_debtor'),
    )
