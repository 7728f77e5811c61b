"""
Settlement routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from groupledger.db.session import get_db
from groupledger.schemas.settlement import SettleRequest, SettlementHistoryItem, SettlementResultResponse
from groupledger.services import settlement_service
from groupledger.services.notifier import Notifier, get_notifier
from groupledger.api.dependencies import check_group_access, get_current_member_id

router = APIRouter(prefix="/groups", tags=["settlements"])


@router.post(
    "/{group_id}/settlements",
    response_model=SettlementResultResponse,
    status_code=status.HTTP_201_CREATED
)
async def settle(
    group_id: int,
    request: SettleRequest,
    current_member_id: int = Depends(get_current_member_id),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """Record a full or partial payment from one member to another."""
    check_group_access(group_id, current_member_id, db)

    from_member = request.from_member if request.from_member is not None else current_member_id
    return settlement_service.settle(
        db,
        group_id,
        from_member,
        request.to_member,
        amount=request.amount,
        created_by=current_member_id,
        notifier=notifier,
    )


@router.get("/{group_id}/settlements", response_model=List[SettlementHistoryItem])
async def settlement_history(
    group_id: int,
    current_member_id: int = Depends(get_current_member_id),
    db: Session = Depends(get_db)
):
    """Past settlements with their payment entries."""
    check_group_access(group_id, current_member_id, db)
    return settlement_service.get_settlement_history(db, group_id)


@router.delete("/{group_id}/settlements/{expense_id}")
async def reverse_settlement(
    group_id: int,
    expense_id: int,
    current_member_id: int = Depends(get_current_member_id),
    db: Session = Depends(get_db)
):
    """Undo a settlement, restoring the balances it had paid down."""
    check_group_access(group_id, current_member_id, db)
    settlement_service.reverse_settlement(db, group_id, expense_id)
    return {"message": "Settlement reversed"}
