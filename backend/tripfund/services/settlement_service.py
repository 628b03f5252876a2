"""
Settlement service: runs the ledger for a stored trip and renders it.
"""
from typing import List
from sqlalchemy.orm import Session
from tripfund.core.config import settings
from tripfund.core.utils import format_money
from tripfund.models.trip import Trip
from tripfund.schemas.ledger import (
    LedgerResponse, ParticipantBalance, ReimbursementItem, SettlementItem
)
from tripfund.services.ledger import LedgerResult, compute_ledger
from tripfund.services.trip_service import load_snapshot


def build_summary(ledger: LedgerResult, symbol: str = "") -> str:
    """Plain-text summary of fund, balances and transfers."""
    summary_lines = []
    summary_lines.append(f"Total pooled: {format_money(ledger.total_pooled, symbol)}")
    summary_lines.append(f"Total expenses: {format_money(ledger.total_expenses, symbol)}")
    summary_lines.append(f"Remaining fund: {format_money(ledger.remaining_fund, symbol)}")
    summary_lines.append("\nBalances:")
    for person in ledger.participants:
        sign = "+" if person.balance > 0 else ""
        summary_lines.append(f"  {person.name}: {sign}{format_money(person.balance, symbol)}")

    summary_lines.append("\nSettlements:")
    if not ledger.settlements:
        summary_lines.append("  All settled! Everyone is even.")
    for s in ledger.settlements:
        summary_lines.append(
            f"  {s.from_name} -> {s.to_name}: {format_money(s.amount, symbol)} ({s.status})"
        )
    return "\n".join(summary_lines)


def get_trip_ledger(trip: Trip, db: Session) -> LedgerResponse:
    """Recompute the ledger from the full current snapshot of a trip."""
    ledger = compute_ledger(load_snapshot(trip, db))

    return LedgerResponse(
        trip_id=trip.id,
        total_pooled=ledger.total_pooled,
        total_expenses=ledger.total_expenses,
        total_deducted_from_fund=ledger.total_deducted_from_fund,
        remaining_fund=ledger.remaining_fund,
        participants=[ParticipantBalance.model_validate(p) for p in ledger.participants],
        reimbursements=[ReimbursementItem.model_validate(r) for r in ledger.reimbursements],
        settlements=[SettlementItem.model_validate(s) for s in ledger.settlements],
        is_settled=ledger.is_settled,
        summary=build_summary(ledger, settings.CURRENCY_SYMBOL)
    )


def get_trip_settlements(trip: Trip, db: Session) -> List[SettlementItem]:
    ledger = compute_ledger(load_snapshot(trip, db))
    return [SettlementItem.model_validate(s) for s in ledger.settlements]
