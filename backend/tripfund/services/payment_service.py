"""
Acknowledgement store for reimbursements that have been paid back.
"""
import logging
from typing import Dict, Iterable

from sqlalchemy.orm import Session

from tripfund.models.payment import Payment
from tripfund.models.trip import Trip
from tripfund.services.ledger import LedgerSnapshot, compute_ledger

logger = logging.getLogger(__name__)


class PaymentError(ValueError):
    """The acknowledged payer/debtor pair is not an open obligation."""


def received_map(payments: Iterable[Payment]) -> Dict[str, Dict[str, bool]]:
    """payer -> debtor -> True for every acknowledged payment."""
    result: Dict[str, Dict[str, bool]] = {}
    for payment in payments:
        if payment.received:
            result.setdefault(payment.payer, {})[payment.debtor] = True
    return result


def mark_received(
    trip: Trip,
    payer: str,
    debtor: str,
    snapshot: LedgerSnapshot,
    db: Session
) -> Payment:
    """
    Flag ``debtor -> payer`` as received.

    The pair must be a current reimbursement or settlement. The flag is
    display metadata only: balances and settlements are not recomputed
    around it, and it is never reset.
    """
    ledger = compute_ledger(snapshot)

    amount = ledger.reimbursement_map().get(payer, {}).get(debtor)
    if amount is None:
        amount = next(
            (s.amount for s in ledger.settlements if s.to_name == payer and s.from_name == debtor),
            None
        )
    if amount is None:
        raise PaymentError(f"{debtor} has no pending payment to {payer}")

    payment = db.query(Payment).filter(
        Payment.trip_id == trip.id,
        Payment.payer == payer,
        Payment.debtor == debtor
    ).first()
    if payment:
        payment.amount = amount
        payment.received = True
    else:
        payment = Payment(
            trip_id=trip.id,
            payer=payer,
            debtor=debtor,
            amount=amount,
            received=True
        )
        db.add(payment)
    db.commit()
    db.refresh(payment)

    logger.info(f"Trip {trip.id}: marked {debtor} -> {payer} ({amount}) as received")
    return payment
