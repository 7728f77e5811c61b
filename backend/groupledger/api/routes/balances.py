"""
Balance and suggested-debt routes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from groupledger.db.session import get_db
from groupledger.schemas.settlement import GroupBalancesResponse, OutstandingResponse
from groupledger.services.balance_service import calculate_balances, is_group_settled
from groupledger.services.debt_service import calculate_debts
from groupledger.services.ledger_store import load_snapshot
from groupledger.services.settlement_service import outstanding_splits
from groupledger.api.dependencies import check_group_access, get_current_member_id

router = APIRouter(prefix="/groups", tags=["balances"])


@router.get("/{group_id}/balances", response_model=GroupBalancesResponse)
async def get_balances(
    group_id: int,
    current_member_id: int = Depends(get_current_member_id),
    db: Session = Depends(get_db)
):
    """Net balances of every member and a suggested way to settle them."""
    check_group_access(group_id, current_member_id, db)

    snapshot = load_snapshot(db, group_id)
    balances = calculate_balances(snapshot.members, snapshot.expenses, snapshot.splits, snapshot.payments)

    return GroupBalancesResponse(
        group_id=group_id,
        currency=snapshot.group.currency,
        balances=balances,
        debts=calculate_debts(balances),
        is_settled=is_group_settled(balances),
    )


@router.get("/{group_id}/outstanding", response_model=OutstandingResponse)
async def get_outstanding(
    group_id: int,
    to_member: int,
    from_member: Optional[int] = None,
    current_member_id: int = Depends(get_current_member_id),
    db: Session = Depends(get_db)
):
    """What one member still owes another, split by split."""
    check_group_access(group_id, current_member_id, db)
    payer = from_member if from_member is not None else current_member_id
    return outstanding_splits(db, group_id, payer, to_member)
