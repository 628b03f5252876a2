"""
Trip management routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from tripfund.db.session import get_db
from tripfund.models.user import User
from tripfund.models.trip import Trip
from tripfund.schemas.trip import (
    TripCreate, TripUpdate, TripResponse, TripDetailResponse, ViewedTripResponse
)
from tripfund.api.dependencies import get_current_user
from tripfund.services import trip_service
from tripfund.services.ledger import remaining_fund

router = APIRouter(prefix="/trips", tags=["trips"])


def get_trip_or_404(trip_id: int, db: Session) -> Trip:
    """Any signed-in user may read a trip by id (shared view)."""
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Trip not found"
        )
    return trip


def check_trip_owner(trip_id: int, user_id: int, db: Session) -> Trip:
    """Only the owner may change a trip."""
    trip = get_trip_or_404(trip_id, db)
    if trip.owner_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the trip owner can modify this trip"
        )
    return trip


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a new trip and its pooled fund."""
    try:
        return trip_service.create_trip(
            owner=current_user,
            name=trip_data.name,
            participants=trip_data.participants,
            contributions=trip_data.contributions,
            equal_total=trip_data.equal_total,
            db=db
        )
    except trip_service.TripValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.get("", response_model=List[TripResponse])
async def list_trips(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List trips owned by the current user, newest first."""
    return trip_service.list_owned_trips(current_user.id, db)


@router.get("/viewed", response_model=List[ViewedTripResponse])
async def list_viewed_trips(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List trips the current user has opened as a viewer."""
    return [
        ViewedTripResponse(
            trip_id=v.trip_id,
            viewed_at=v.viewed_at,
            trip=TripResponse.model_validate(v.trip)
        )
        for v in trip_service.list_viewed_trips(current_user.id, db)
    ]


@router.get("/{trip_id}", response_model=TripDetailResponse)
async def get_trip(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get trip details; opening someone else's trip records a view."""
    trip = get_trip_or_404(trip_id, db)
    trip_service.record_viewer(trip, current_user, db)

    snapshot = trip_service.load_snapshot(trip, db)
    base = TripResponse.model_validate(trip)
    return TripDetailResponse(
        **base.model_dump(),
        is_owner=trip.owner_id == current_user.id,
        remaining_fund=remaining_fund(snapshot),
        expense_count=len(snapshot.expenses)
    )


@router.patch("/{trip_id}", response_model=TripResponse)
async def update_trip(
    trip_id: int,
    trip_data: TripUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Rename a trip."""
    trip = check_trip_owner(trip_id, current_user.id, db)
    trip.name = trip_data.name.strip()
    db.commit()
    db.refresh(trip)
    return trip


@router.delete("/{trip_id}")
async def delete_trip(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a trip with all of its expenses and payments."""
    trip = check_trip_owner(trip_id, current_user.id, db)
    trip_service.delete_trip(trip, db)
    return {"message": "Trip deleted successfully"}
