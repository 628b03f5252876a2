"""
Pydantic schemas for ledger output.
"""
from pydantic import BaseModel
from typing import List
from decimal import Decimal


class ParticipantBalance(BaseModel):
    """Contribution, share and balance breakdown for one participant."""
    name: str
    initial_contribution: Decimal
    extra_paid: Decimal
    total_contribution: Decimal
    total_expense_share: Decimal
    balance: Decimal

    class Config:
        from_attributes = True


class ReimbursementItem(BaseModel):
    """``debtor`` owes ``payer``."""
    payer: str
    debtor: str
    amount: Decimal
    status: str

    class Config:
        from_attributes = True


class SettlementItem(BaseModel):
    """Schema for a single settlement instruction."""
    from_name: str
    to_name: str
    amount: Decimal
    status: str

    class Config:
        from_attributes = True


class LedgerResponse(BaseModel):
    """Full ledger for a trip."""
    trip_id: int
    total_pooled: Decimal
    total_expenses: Decimal
    total_deducted_from_fund: Decimal
    remaining_fund: Decimal
    participants: List[ParticipantBalance]
    reimbursements: List[ReimbursementItem]
    settlements: List[SettlementItem]
    is_settled: bool
    summary: str


class MarkReceivedRequest(BaseModel):
    """Acknowledge that ``debtor`` has paid ``payer``."""
    payer: str
    debtor: str


class PaymentResponse(BaseModel):
    """Schema for a stored acknowledgement."""
    id: int
    trip_id: int
    payer: str
    debtor: str
    amount: Decimal
    received: bool

    class Config:
        from_attributes = True
