"""
Pydantic schemas for Expense entity.
"""
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal


class ExpenseCreate(BaseModel):
    """
    Schema for expense creation.

    ``paid_by`` may be omitted when the pooled fund covers the whole amount.
    Amount and title are checked by the expense service so that the caller
    gets one consistent error message.
    """
    title: str
    amount: Decimal
    paid_by: Optional[str] = None
    deduct_from_fund: bool = False


class ExpenseResponse(BaseModel):
    """Schema for expense response."""
    id: int
    trip_id: int
    title: str
    amount: Decimal
    paid_by: str
    split_type: str
    deduct_from_fund: bool
    per_person_share: Decimal
    covered_by_fund: Decimal
    uncovered_amount: Decimal
    created_at: datetime


class ExpenseListResponse(BaseModel):
    """Chronological expenses plus the fund state they leave behind."""
    trip_id: int
    total_expenses: Decimal
    remaining_fund: Decimal
    expenses: List[ExpenseResponse]
