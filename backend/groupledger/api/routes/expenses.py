"""
Group expense routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from groupledger.db.session import get_db
from groupledger.schemas.expense import ExpenseCreate, ExpenseResponse
from groupledger.services import ledger_store
from groupledger.api.dependencies import check_group_access, get_current_member_id

router = APIRouter(prefix="/groups", tags=["expenses"])


@router.post("/{group_id}/expenses", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    group_id: int,
    expense_data: ExpenseCreate,
    current_member_id: int = Depends(get_current_member_id),
    db: Session = Depends(get_db)
):
    """Create an expense and its splits in one transaction."""
    check_group_access(group_id, current_member_id, db)

    payer = expense_data.paid_by if expense_data.paid_by is not None else current_member_id
    expense = ledger_store.create_expense_with_splits(
        db,
        group_id,
        description=expense_data.description,
        amount=expense_data.amount,
        payer=payer,
        splits=expense_data.splits,
        expense_date=expense_data.date,
        created_by=current_member_id,
    )
    return ExpenseResponse.model_validate(expense)


@router.get("/{group_id}/expenses", response_model=List[ExpenseResponse])
async def list_expenses(
    group_id: int,
    current_member_id: int = Depends(get_current_member_id),
    db: Session = Depends(get_db)
):
    """List all expenses of a group, settlements included, newest first."""
    check_group_access(group_id, current_member_id, db)

    expenses = ledger_store.list_expenses(db, group_id)
    expenses.sort(key=lambda e: (e.date, e.id), reverse=True)
    return [ExpenseResponse.model_validate(e) for e in expenses]


@router.delete("/{group_id}/expenses/{expense_id}")
async def delete_expense(
    group_id: int,
    expense_id: int,
    current_member_id: int = Depends(get_current_member_id),
    db: Session = Depends(get_db)
):
    """Delete an expense and its splits (and payments, for a settlement)."""
    check_group_access(group_id, current_member_id, db)
    ledger_store.delete_expense(db, expense_id, group_id)
    return {"message": "Expense deleted successfully"}
