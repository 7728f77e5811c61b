"""
Shared route dependencies: acting member and group access.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from groupledger.core.security import member_id_from_token
from groupledger.models.group import Group, GroupMember

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_member_id(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> int:
    """Member id of the caller, taken from the bearer token."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    member_id = member_id_from_token(credentials.credentials)
    if member_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return member_id


def check_group_access(group_id: int, member_id: int, db: Session) -> Group:
    """Check if member has access to group."""
    group = db.query(Group).filter(Group.id == group_id).first()
    if not group:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Group not found"
        )

    membership = db.query(GroupMember).filter(
        GroupMember.group_id == group_id,
        GroupMember.user_id == member_id
    ).first()

    if not membership:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied to this group"
        )

    return group


def check_group_admin(group_id: int, member_id: int, db: Session) -> Group:
    """Check that member is the group's admin."""
    group = check_group_access(group_id, member_id, db)
    if group.admin_id != member_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the group admin can do this"
        )
    return group
