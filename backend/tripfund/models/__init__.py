"""Models package - Import all models for SQLAlchemy registration."""
from tripfund.models.user import User
from tripfund.models.trip import Trip, TripViewer
from tripfund.models.expense import Expense
from tripfund.models.payment import Payment

__all__ = [
    "User",
    "Trip",
    "TripViewer",
    "Expense",
    "Payment",
]
