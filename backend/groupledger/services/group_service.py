"""
Group service: groups and their member directory.
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from groupledger.core.config import settings
from groupledger.core.exceptions import NotFoundError, ValidationError
from groupledger.core.utils import EPSILON
from groupledger.models.group import Group, GroupMember
from groupledger.services import ledger_store
from groupledger.services.balance_service import group_balances

logger = logging.getLogger(__name__)


def create_group(
    db: Session,
    name: str,
    creator_id: int,
    display_name: str,
    description: Optional[str] = None,
    currency: Optional[str] = None,
) -> Group:
    """Create a group; the creator becomes its admin and first member."""
    group = Group(
        name=name,
        description=description,
        currency=(currency or settings.DEFAULT_CURRENCY).upper(),
        admin_id=creator_id,
        ledger_version=0,
    )
    db.add(group)
    db.flush()

    db.add(GroupMember(group_id=group.id, user_id=creator_id, display_name=display_name))
    db.commit()
    db.refresh(group)

    logger.info(f"Created group {group.id} '{name}' with admin {creator_id}")
    return group


def get_group(db: Session, group_id: int) -> Group:
    return ledger_store.get_group(db, group_id)


def list_members(db: Session, group_id: int) -> List[GroupMember]:
    """Members of a group in joining order."""
    get_group(db, group_id)
    return ledger_store.list_members(db, group_id)


def ensure_member(db: Session, group_id: int, member_id: int) -> None:
    """Raise ValidationError unless `member_id` belongs to the group."""
    if member_id not in ledger_store.member_ids(db, group_id):
        raise ValidationError(f"Member {member_id} is not in the group", member_id=member_id)


def add_member(db: Session, group_id: int, user_id: int, display_name: str) -> GroupMember:
    get_group(db, group_id)
    if user_id in ledger_store.member_ids(db, group_id):
        raise ValidationError(f"User {user_id} is already a member", member_id=user_id)

    member = GroupMember(group_id=group_id, user_id=user_id, display_name=display_name)
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


def remove_member(db: Session, group_id: int, user_id: int) -> None:
    """Remove a member who neither owes nor is owed anything."""
    member = db.query(GroupMember).filter(
        GroupMember.group_id == group_id,
        GroupMember.user_id == user_id
    ).first()
    if not member:
        raise NotFoundError(f"User {user_id} is not a member of group {group_id}", member_id=user_id)

    for balance in group_balances(db, group_id):
        if balance.member_id == user_id and (balance.owes > EPSILON or balance.owed > EPSILON):
            raise ValidationError(
                "Member still has unsettled splits",
                member_id=user_id, owes=balance.owes, owed=balance.owed
            )

    db.delete(member)
    db.commit()
    logger.info(f"Removed member {user_id} from group {group_id}")


def update_group(
    db: Session,
    group_id: int,
    name: Optional[str] = None,
    description: Optional[str] = None,
    currency: Optional[str] = None,
) -> Group:
    """Rename or re-describe a group. The currency can only change while the ledger is empty."""
    group = get_group(db, group_id)

    if currency is not None and currency.upper() != group.currency:
        if ledger_store.list_expenses(db, group_id):
            raise ValidationError(
                "Currency cannot change once the group has expenses",
                currency=group.currency
            )
        group.currency = currency.upper()
    if name is not None:
        group.name = name
    if description is not None:
        group.description = description

    db.commit()
    db.refresh(group)
    logger.info(f"Updated group {group_id}")
    return group


def delete_group(db: Session, group_id: int) -> None:
    """Delete a group with its members, expenses, splits and payments."""
    group = get_group(db, group_id)
    try:
        db.delete(group)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Deleted group {group_id}")
