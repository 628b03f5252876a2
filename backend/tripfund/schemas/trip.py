"""
Pydantic schemas for Trip entity.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional
from datetime import datetime
from decimal import Decimal

from tripfund.core.utils import round_money


class TripCreate(BaseModel):
    """
    Schema for trip creation.

    Either give ``contributions`` per participant, or ``equal_total`` to
    split one pooled amount evenly across everyone.
    """
    name: str = Field(min_length=1, max_length=200)
    participants: List[str]
    contributions: Optional[Dict[str, Decimal]] = None
    equal_total: Optional[Decimal] = None


class TripUpdate(BaseModel):
    """Schema for trip update."""
    name: str = Field(min_length=1, max_length=200)


class TripResponse(BaseModel):
    """Schema for trip response."""
    id: int
    owner_id: int
    name: str
    participants: List[str]
    contributions: Dict[str, Decimal]
    total_pooled: Decimal
    created_at: datetime
    updated_at: datetime

    @field_validator("contributions")
    @classmethod
    def round_contributions(cls, v):
        """Equal division is stored exactly; show it in cents."""
        return {name: round_money(amount) for name, amount in v.items()}

    class Config:
        from_attributes = True


class TripDetailResponse(TripResponse):
    """Schema for detailed trip response."""
    is_owner: bool
    remaining_fund: Decimal
    expense_count: int


class ViewedTripResponse(BaseModel):
    """A trip the current user opened as a viewer."""
    trip_id: int
    viewed_at: datetime
    trip: TripResponse
