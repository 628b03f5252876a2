"""
Expense service: validation before the ledger sees an expense, and
create/delete against the trip store.
"""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from tripfund.core.config import settings
from tripfund.core.utils import format_money, round_money
from tripfund.models.expense import Expense
from tripfund.models.trip import Trip
from tripfund.services.ledger import POOL_FUND, LedgerSnapshot, remaining_fund

logger = logging.getLogger(__name__)


class ExpenseValidationError(ValueError):
    """The expense cannot be posted as given."""


def resolve_payer(
    snapshot: LedgerSnapshot,
    amount: Decimal,
    paid_by: Optional[str],
    deduct_from_fund: bool
) -> str:
    """
    Decide who is recorded as paying.

    A fund-deducted expense that the remaining fund fully covers is paid by
    the pool. Anything else needs a real participant: the direct payer, or
    whoever fronts the shortfall.
    """
    paid_by = paid_by.strip() if paid_by else None
    if paid_by == POOL_FUND:
        paid_by = None

    if paid_by and paid_by not in snapshot.participants:
        raise ExpenseValidationError(f"{paid_by} is not a participant of this trip")

    if deduct_from_fund:
        fund_left = remaining_fund(snapshot)
        if fund_left >= amount:
            return POOL_FUND
        if not paid_by:
            symbol = settings.CURRENCY_SYMBOL
            raise ExpenseValidationError(
                f"Pool fund has only {format_money(fund_left, symbol)}. "
                f"Please select who will pay the remaining {format_money(amount - fund_left, symbol)}"
            )
        return paid_by

    if not paid_by:
        raise ExpenseValidationError("Please select who paid for this expense")
    return paid_by


def validate_expense(
    snapshot: LedgerSnapshot,
    title: str,
    amount,
    paid_by: Optional[str],
    deduct_from_fund: bool
) -> str:
    """
    Check title and amount, then resolve the payer. Returns ``paid_by``.

    The amount is judged at the cent precision it will be stored with.
    """
    if not title or not title.strip():
        raise ExpenseValidationError("Please fill in all required fields")
    if amount is None:
        raise ExpenseValidationError("Please fill in all required fields")
    amount = round_money(amount)
    if amount <= 0:
        raise ExpenseValidationError("Amount must be greater than 0")
    return resolve_payer(snapshot, amount, paid_by, deduct_from_fund)


def create_expense(
    trip: Trip,
    snapshot: LedgerSnapshot,
    title: str,
    amount,
    paid_by: Optional[str],
    deduct_from_fund: bool,
    db: Session
) -> Expense:
    """Validate against the current snapshot and store the expense."""
    try:
        payer = validate_expense(snapshot, title, amount, paid_by, deduct_from_fund)
    except ExpenseValidationError as e:
        logger.warning(f"Rejected expense for trip {trip.id}: {e}")
        raise

    expense = Expense(
        trip_id=trip.id,
        title=title.strip(),
        amount=round_money(amount),
        paid_by=payer,
        split_type="equal",
        deduct_from_fund=deduct_from_fund
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)

    logger.info(f"Added expense {expense.id} to trip {trip.id}: {expense.amount} paid by {payer}")
    return expense


def delete_expense(trip: Trip, expense_id: int, db: Session):
    """Delete one expense of a trip."""
    expense = db.query(Expense).filter(
        Expense.id == expense_id,
        Expense.trip_id == trip.id
    ).first()
    if not expense:
        raise LookupError("Expense not found")

    db.delete(expense)
    db.commit()
    logger.info(f"Deleted expense {expense_id} from trip {trip.id}")
