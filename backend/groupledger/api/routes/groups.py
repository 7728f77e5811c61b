"""
Group and membership routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from groupledger.db.session import get_db
from groupledger.schemas.group import GroupCreate, GroupMemberResponse, GroupResponse, GroupUpdate, MemberAdd
from groupledger.services import group_service
from groupledger.api.dependencies import check_group_access, check_group_admin, get_current_member_id

router = APIRouter(prefix="/groups", tags=["groups"])


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    group_data: GroupCreate,
    current_member_id: int = Depends(get_current_member_id),
    db: Session = Depends(get_db)
):
    """Create a new group with the caller as admin."""
    group = group_service.create_group(
        db,
        name=group_data.name,
        creator_id=current_member_id,
        display_name=group_data.display_name,
        description=group_data.description,
        currency=group_data.currency,
    )
    return GroupResponse.model_validate(group)


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: int,
    current_member_id: int = Depends(get_current_member_id),
    db: Session = Depends(get_db)
):
    """Get a group with its members."""
    group = check_group_access(group_id, current_member_id, db)
    return GroupResponse.model_validate(group)


@router.patch("/{group_id}", response_model=GroupResponse)
async def update_group(
    group_id: int,
    group_data: GroupUpdate,
    current_member_id: int = Depends(get_current_member_id),
    db: Session = Depends(get_db)
):
    """Update group details (admin only)."""
    check_group_admin(group_id, current_member_id, db)
    group = group_service.update_group(
        db,
        group_id,
        name=group_data.name,
        description=group_data.description,
        currency=group_data.currency,
    )
    return GroupResponse.model_validate(group)


@router.delete("/{group_id}")
async def delete_group(
    group_id: int,
    current_member_id: int = Depends(get_current_member_id),
    db: Session = Depends(get_db)
):
    """Delete the group and its whole ledger (admin only)."""
    check_group_admin(group_id, current_member_id, db)
    group_service.delete_group(db, group_id)
    return {"message": "Group deleted successfully"}


@router.get("/{group_id}/members", response_model=List[GroupMemberResponse])
async def list_members(
    group_id: int,
    current_member_id: int = Depends(get_current_member_id),
    db: Session = Depends(get_db)
):
    """List the members of a group."""
    check_group_access(group_id, current_member_id, db)
    return [GroupMemberResponse.model_validate(m) for m in group_service.list_members(db, group_id)]


@router.post("/{group_id}/members", response_model=GroupMemberResponse, status_code=status.HTTP_201_CREATED)
async def add_member(
    group_id: int,
    member_data: MemberAdd,
    current_member_id: int = Depends(get_current_member_id),
    db: Session = Depends(get_db)
):
    """Add a member to the group."""
    check_group_access(group_id, current_member_id, db)
    member = group_service.add_member(db, group_id, member_data.user_id, member_data.display_name)
    return GroupMemberResponse.model_validate(member)


@router.delete("/{group_id}/members/{user_id}")
async def remove_member(
    group_id: int,
    user_id: int,
    current_member_id: int = Depends(get_current_member_id),
    db: Session = Depends(get_db)
):
    """Remove a member with no unsettled splits."""
    check_group_access(group_id, current_member_id, db)
    group_service.remove_member(db, group_id, user_id)
    return {"message": "Member removed"}
