"""
Ledger and settlement routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from tripfund.db.session import get_db
from tripfund.models.user import User
from tripfund.schemas.ledger import LedgerResponse, SettlementItem, MarkReceivedRequest, PaymentResponse
from tripfund.api.dependencies import get_current_user
from tripfund.api.routes.trips import get_trip_or_404, check_trip_owner
from tripfund.services import payment_service, settlement_service
from tripfund.services.trip_service import load_snapshot

router = APIRouter(prefix="/ledger", tags=["ledger"])


@router.get("/{trip_id}", response_model=LedgerResponse)
async def get_ledger(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Fund summary, per-person balances, reimbursements and settlements."""
    trip = get_trip_or_404(trip_id, db)
    return settlement_service.get_trip_ledger(trip, db)


@router.get("/{trip_id}/settlements", response_model=List[SettlementItem])
async def get_settlements(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Settlement instructions only."""
    trip = get_trip_or_404(trip_id, db)
    return settlement_service.get_trip_settlements(trip, db)


@router.post("/{trip_id}/received", response_model=PaymentResponse)
async def mark_received(
    trip_id: int,
    data: MarkReceivedRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Mark that ``debtor`` has paid ``payer`` back."""
    trip = check_trip_owner(trip_id, current_user.id, db)
    try:
        return payment_service.mark_received(
            trip, data.payer, data.debtor, load_snapshot(trip, db), db
        )
    except payment_service.PaymentError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
