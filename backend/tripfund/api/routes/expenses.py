"""
Expense management routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from tripfund.db.session import get_db
from tripfund.models.user import User
from tripfund.schemas.expense import ExpenseCreate, ExpenseResponse, ExpenseListResponse
from tripfund.api.dependencies import get_current_user
from tripfund.api.routes.trips import get_trip_or_404, check_trip_owner
from tripfund.services import expense_service, trip_service
from tripfund.services.ledger import compute_ledger

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.get("/{trip_id}", response_model=ExpenseListResponse)
async def list_expenses(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List expenses in the order they were posted, with each person's share."""
    trip = get_trip_or_404(trip_id, db)
    expenses = trip_service.get_trip_expenses(trip_id, db)
    ledger = compute_ledger(trip_service.build_snapshot(trip, expenses))

    outcomes = {o.expense_id: o for o in ledger.expenses}
    expense_responses = []
    for expense in expenses:
        outcome = outcomes[expense.id]
        expense_responses.append(ExpenseResponse(
            id=expense.id,
            trip_id=expense.trip_id,
            title=expense.title,
            amount=expense.amount,
            paid_by=expense.paid_by,
            split_type=expense.split_type,
            deduct_from_fund=expense.deduct_from_fund,
            per_person_share=outcome.per_person_share,
            covered_by_fund=outcome.covered_by_fund,
            uncovered_amount=outcome.uncovered_amount,
            created_at=expense.created_at
        ))

    return ExpenseListResponse(
        trip_id=trip_id,
        total_expenses=ledger.total_expenses,
        remaining_fund=ledger.remaining_fund,
        expenses=expense_responses
    )


@router.post("/{trip_id}", status_code=status.HTTP_201_CREATED)
async def create_expense(
    trip_id: int,
    expense_data: ExpenseCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add an expense; the fund state is checked against every earlier expense."""
    trip = check_trip_owner(trip_id, current_user.id, db)
    snapshot = trip_service.load_snapshot(trip, db)

    try:
        expense = expense_service.create_expense(
            trip=trip,
            snapshot=snapshot,
            title=expense_data.title,
            amount=expense_data.amount,
            paid_by=expense_data.paid_by,
            deduct_from_fund=expense_data.deduct_from_fund,
            db=db
        )
    except expense_service.ExpenseValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return {
        "message": "Expense added successfully",
        "id": expense.id,
        "paid_by": expense.paid_by
    }


@router.delete("/{trip_id}/{expense_id}")
async def delete_expense(
    trip_id: int,
    expense_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete an expense. Later expenses are re-walked against the fund on next read."""
    trip = check_trip_owner(trip_id, current_user.id, db)
    try:
        expense_service.delete_expense(trip, expense_id, db)
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    return {"message": "Expense deleted"}
