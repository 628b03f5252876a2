"""
Trip service: participant and fund validation, snapshot building and
viewer tracking.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from tripfund.core.config import settings
from tripfund.core.utils import ZERO, round_money, to_decimal
from tripfund.models.expense import Expense
from tripfund.models.payment import Payment
from tripfund.models.trip import Trip, TripViewer
from tripfund.models.user import User
from tripfund.services.ledger import POOL_FUND, LedgerExpense, LedgerSnapshot
from tripfund.services.payment_service import received_map

logger = logging.getLogger(__name__)


class TripValidationError(ValueError):
    """Trip setup input was rejected."""


def normalize_participants(names: Iterable[str]) -> List[str]:
    """
    Trim names, drop blanks and reject duplicates ignoring case.
    Order is preserved. The pool sentinel name is reserved.
    """
    participants = [name.strip() for name in names if name and name.strip()]

    if len(participants) < settings.MIN_PARTICIPANTS:
        raise TripValidationError(
            f"You need at least {settings.MIN_PARTICIPANTS} participants for a trip"
        )
    if len(participants) > settings.MAX_PARTICIPANTS:
        raise TripValidationError(
            f"Maximum {settings.MAX_PARTICIPANTS} participants allowed"
        )

    seen = set()
    for name in participants:
        key = name.lower()
        if key == POOL_FUND.lower():
            raise TripValidationError(f"\"{POOL_FUND}\" is a reserved name")
        if key in seen:
            raise TripValidationError(f"Duplicate participant name: {name}")
        seen.add(key)

    return participants


def build_fund(
    participants: List[str],
    contributions: Optional[Dict[str, Decimal]] = None,
    equal_total: Optional[Decimal] = None
) -> Tuple[Dict[str, Decimal], Decimal]:
    """Return (contributions, total_pooled) for a new trip."""
    if contributions is not None and equal_total is not None:
        raise TripValidationError("Give either contributions or an equal total, not both")

    if equal_total is not None:
        total = to_decimal(equal_total)
        if total <= 0:
            raise TripValidationError("Pooled total must be greater than 0")
        share = total / len(participants)
        return {name: share for name in participants}, total

    contributions = contributions or {}
    unknown = [name for name in contributions if name not in participants]
    if unknown:
        raise TripValidationError(f"Contribution for unknown participant: {', '.join(unknown)}")

    fund: Dict[str, Decimal] = {}
    for name in participants:
        amount = to_decimal(contributions.get(name, ZERO))
        if amount < 0:
            raise TripValidationError(f"Contribution for {name} cannot be negative")
        fund[name] = amount

    total = sum(fund.values(), ZERO)
    if total <= 0:
        raise TripValidationError("Please enter at least one contribution")
    return fund, total


def create_trip(
    owner: User,
    name: str,
    participants: Iterable[str],
    contributions: Optional[Dict[str, Decimal]],
    equal_total: Optional[Decimal],
    db: Session
) -> Trip:
    """Validate and store a trip together with its pooled fund."""
    names = normalize_participants(participants)
    fund, total = build_fund(names, contributions, equal_total)

    trip = Trip(
        owner_id=owner.id,
        name=name.strip(),
        participants=names,
        # JSON columns cannot hold Decimal
        contributions={person: str(amount) for person, amount in fund.items()},
        total_pooled=round_money(total)
    )
    db.add(trip)
    db.commit()
    db.refresh(trip)

    logger.info(f"Created trip {trip.id} with {len(names)} participants and pool {trip.total_pooled}")
    return trip


def get_trip_expenses(trip_id: int, db: Session) -> List[Expense]:
    """All expenses of a trip in chronological creation order."""
    return db.query(Expense).filter(
        Expense.trip_id == trip_id
    ).order_by(Expense.created_at.asc(), Expense.id.asc()).all()


def get_trip_payments(trip_id: int, db: Session) -> List[Payment]:
    return db.query(Payment).filter(Payment.trip_id == trip_id).all()


def build_snapshot(
    trip: Trip,
    expenses: Iterable[Expense],
    payments: Iterable[Payment] = ()
) -> LedgerSnapshot:
    """Convert stored rows into the immutable ledger input."""
    ordered = sorted(expenses, key=lambda e: (e.created_at or datetime.min, e.id or 0))
    return LedgerSnapshot(
        participants=tuple(trip.participants),
        contributions={
            name: to_decimal(amount)
            for name, amount in (trip.contributions or {}).items()
        },
        total_pooled=to_decimal(trip.total_pooled),
        expenses=tuple(
            LedgerExpense(
                id=e.id,
                title=e.title,
                amount=to_decimal(e.amount),
                paid_by=e.paid_by,
                deduct_from_fund=e.deduct_from_fund,
                created_at=e.created_at
            )
            for e in ordered
        ),
        received_payments=received_map(payments)
    )


def load_snapshot(trip: Trip, db: Session) -> LedgerSnapshot:
    """Load the full, current snapshot for a trip."""
    return build_snapshot(
        trip,
        get_trip_expenses(trip.id, db),
        get_trip_payments(trip.id, db)
    )


def list_owned_trips(user_id: int, db: Session) -> List[Trip]:
    return db.query(Trip).filter(
        Trip.owner_id == user_id
    ).order_by(Trip.created_at.desc(), Trip.id.desc()).all()


def record_viewer(trip: Trip, user: User, db: Session) -> Optional[TripViewer]:
    """Remember that a non-owner opened this trip; owners are not recorded."""
    if trip.owner_id == user.id:
        return None

    viewer = db.query(TripViewer).filter(
        TripViewer.trip_id == trip.id,
        TripViewer.user_id == user.id
    ).first()
    if viewer:
        viewer.viewed_at = datetime.utcnow()
    else:
        viewer = TripViewer(trip_id=trip.id, user_id=user.id, viewed_at=datetime.utcnow())
        db.add(viewer)
    db.commit()
    return viewer


def list_viewed_trips(user_id: int, db: Session) -> List[TripViewer]:
    return db.query(TripViewer).filter(
        TripViewer.user_id == user_id
    ).order_by(TripViewer.viewed_at.desc(), TripViewer.id.desc()).all()


def delete_trip(trip: Trip, db: Session):
    """Delete a trip; expenses, payments and viewers go with it."""
    trip_id = trip.id
    db.delete(trip)
    db.commit()
    logger.info(f"Deleted trip {trip_id}")
