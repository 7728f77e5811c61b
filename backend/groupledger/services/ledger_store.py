"""
Ledger store: the only writer of expenses, splits and payment entries.

Writes flush but leave the commit to the caller, except for the
`create_expense_with_splits` and `delete_expense` units of work which commit
(or roll back) themselves.
"""
import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Set
from sqlalchemy import func
from sqlalchemy.orm import Session
from groupledger.core.exceptions import NotFoundError, ValidationError
from groupledger.core.utils import EPSILON, ZERO, round2, to_decimal
from groupledger.models.expense import Expense, ExpenseKind, ExpenseSplit
from groupledger.models.group import Group, GroupMember
from groupledger.models.settlement import SplitPayment

logger = logging.getLogger(__name__)


class PaymentInput(NamedTuple):
    """One payment entry to append against a split."""
    split_id: int
    from_member: int
    to_member: int
    amount: Decimal


class LedgerSnapshot(NamedTuple):
    """Everything needed to derive balances for one group, read together."""
    group: Group
    members: List[GroupMember]
    expenses: List[Expense]
    splits: List[ExpenseSplit]
    payments: List[SplitPayment]


def get_group(db: Session, group_id: int) -> Group:
    """Fetch a group or raise NotFoundError."""
    group = db.query(Group).filter(Group.id == group_id).first()
    if not group:
        raise NotFoundError(f"Group {group_id} not found", group_id=group_id)
    return group


def list_members(db: Session, group_id: int) -> List[GroupMember]:
    return db.query(GroupMember).filter(
        GroupMember.group_id == group_id
    ).order_by(GroupMember.id).all()


def member_ids(db: Session, group_id: int) -> Set[int]:
    rows = db.query(GroupMember.user_id).filter(GroupMember.group_id == group_id).all()
    return {row[0] for row in rows}


def member_names(db: Session, group_id: int) -> Dict[int, str]:
    return {m.user_id: m.display_name for m in list_members(db, group_id)}


def get_expense(db: Session, expense_id: int, group_id: Optional[int] = None) -> Expense:
    """Fetch an expense, optionally scoped to a group, or raise NotFoundError."""
    query = db.query(Expense).filter(Expense.id == expense_id)
    if group_id is not None:
        query = query.filter(Expense.group_id == group_id)
    expense = query.first()
    if not expense:
        raise NotFoundError(f"Expense {expense_id} not found", expense_id=expense_id)
    return expense


def create_expense(
    db: Session,
    group_id: int,
    description: str,
    amount,
    payer: int,
    expense_date: Optional[date] = None,
    kind: ExpenseKind = ExpenseKind.REGULAR,
    created_by: Optional[int] = None,
    from_member: Optional[int] = None,
    to_member: Optional[int] = None,
) -> Expense:
    """Add an expense row to the session. Does not commit."""
    group = get_group(db, group_id)
    amount = round2(amount)
    if amount <= 0:
        raise ValidationError("Expense amount must be positive", amount=amount)
    if payer not in member_ids(db, group_id):
        raise ValidationError(f"Payer {payer} is not a member of the group", member_id=payer)

    expense = Expense(
        group_id=group_id,
        description=description,
        amount=amount,
        currency=group.currency,
        paid_by=payer,
        date=expense_date or date.today(),
        kind=kind,
        created_by=created_by,
        from_member=from_member,
        to_member=to_member,
    )
    db.add(expense)
    db.flush()
    return expense


def create_splits(db: Session, expense: Expense, splits: Sequence) -> List[ExpenseSplit]:
    """Add the splits of a freshly created expense. Does not commit.

    Each item needs `member_id` and `amount` attributes. Amounts are taken to
    the cent and must sum to the expense amount within one cent.
    """
    if not splits:
        raise ValidationError("An expense needs at least one split")

    amounts = [(s.member_id, round2(s.amount)) for s in splits]
    seen = set()
    for member_id, amount in amounts:
        if member_id in seen:
            raise ValidationError(f"Member {member_id} appears twice in splits", member_id=member_id)
        seen.add(member_id)
        if amount < 0:
            raise ValidationError("Split amounts must not be negative", member_id=member_id)

    unknown = seen - member_ids(db, expense.group_id)
    if unknown:
        raise ValidationError(
            "One or more members in splits are not members of the group",
            member_ids=sorted(unknown)
        )

    total = sum((amount for _, amount in amounts), ZERO)
    expense_amount = to_decimal(expense.amount)
    if abs(total - expense_amount) > EPSILON:
        raise ValidationError(
            f"Split total ({total}) must equal expense amount ({expense_amount})",
            split_total=total, amount=expense_amount
        )

    rows = [
        ExpenseSplit(expense_id=expense.id, member_id=member_id, amount=amount)
        for member_id, amount in amounts
    ]
    db.add_all(rows)
    db.flush()
    return rows


def create_expense_with_splits(
    db: Session,
    group_id: int,
    description: str,
    amount,
    payer: int,
    splits: Sequence,
    expense_date: Optional[date] = None,
    created_by: Optional[int] = None,
) -> Expense:
    """Create a regular expense and its splits as one transaction."""
    try:
        expense = create_expense(
            db, group_id, description, amount, payer,
            expense_date=expense_date, created_by=created_by
        )
        create_splits(db, expense, splits)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(expense)
    logger.info(f"Created expense {expense.id} in group {group_id}: {expense.amount} paid by {payer}")
    return expense


def delete_expense(db: Session, expense_id: int, group_id: Optional[int] = None) -> None:
    """Hard-delete an expense together with its splits and, for a settlement, its payments.

    A regular expense whose splits have already been (partly) paid cannot be
    deleted; the settlements that paid it must be reversed first.
    """
    expense = get_expense(db, expense_id, group_id)

    if not expense.is_settlement:
        paid_count = db.query(func.count(SplitPayment.id)).join(
            ExpenseSplit, ExpenseSplit.id == SplitPayment.split_id
        ).filter(ExpenseSplit.expense_id == expense.id).scalar()
        if paid_count:
            raise ValidationError(
                "Expense has recorded payments; reverse those settlements first",
                expense_id=expense.id
            )

    kind, owner_group_id = expense.kind, expense.group_id
    try:
        db.query(Group).filter(Group.id == owner_group_id).update(
            {Group.ledger_version: Group.ledger_version + 1}, synchronize_session=False
        )
        db.delete(expense)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Deleted {kind.value} expense {expense_id} from group {owner_group_id}")


def paid_by_split(payments: Iterable[SplitPayment]) -> Dict[int, Decimal]:
    """Total paid so far per split id."""
    totals: Dict[int, Decimal] = defaultdict(lambda: ZERO)
    for p in payments:
        totals[p.split_id] += to_decimal(p.amount)
    return dict(totals)


def paid_so_far(db: Session, split_ids: Iterable[int]) -> Dict[int, Decimal]:
    """Total paid per split, read from the database at call time."""
    split_ids = list(split_ids)
    if not split_ids:
        return {}
    rows = db.query(
        SplitPayment.split_id, func.coalesce(func.sum(SplitPayment.amount), 0)
    ).filter(SplitPayment.split_id.in_(split_ids)).group_by(SplitPayment.split_id).all()
    return {split_id: to_decimal(total) for split_id, total in rows}


def append_payment_entries(
    db: Session,
    settlement_expense: Expense,
    entries: Sequence[PaymentInput],
) -> List[SplitPayment]:
    """Append payment entries produced by a settlement expense. Does not commit.

    Remaining balances are re-read from the database here so that a
    concurrent settlement that already paid a split is detected at write
    time rather than overcommitting it.
    """
    if not settlement_expense.is_settlement:
        raise ValidationError("Payments can only be recorded by a settlement expense")

    split_ids = [e.split_id for e in entries]
    rows = []
    if split_ids:
        rows = db.query(ExpenseSplit, Expense).join(
            Expense, Expense.id == ExpenseSplit.expense_id
        ).filter(ExpenseSplit.id.in_(split_ids)).all()
    splits = {split.id: (split, expense) for split, expense in rows}
    paid = paid_so_far(db, splits.keys())

    payments = []
    for entry in entries:
        amount = to_decimal(entry.amount)
        if amount <= 0:
            raise ValidationError("Payment amount must be positive", split_id=entry.split_id)
        if entry.split_id not in splits:
            raise ValidationError(f"Split {entry.split_id} does not exist", split_id=entry.split_id)

        split, expense = splits[entry.split_id]
        if expense.group_id != settlement_expense.group_id or expense.is_settlement:
            raise ValidationError(
                f"Split {split.id} is not an obligation in this group", split_id=split.id
            )
        if split.member_id != entry.from_member or expense.paid_by != entry.to_member:
            raise ValidationError(
                f"Split {split.id} is not owed by {entry.from_member} to {entry.to_member}",
                split_id=split.id
            )

        already_paid = paid.get(split.id, ZERO)
        left = to_decimal(split.amount) - already_paid
        if left - amount < -EPSILON:
            raise ValidationError(
                f"Payment of {amount} exceeds remaining {left} on split {split.id}",
                split_id=split.id, remaining=left
            )
        paid[split.id] = already_paid + amount

        payments.append(SplitPayment(
            group_id=settlement_expense.group_id,
            split_id=split.id,
            settlement_expense_id=settlement_expense.id,
            from_member=entry.from_member,
            to_member=entry.to_member,
            amount=amount,
            created_by=settlement_expense.created_by,
        ))

    db.add_all(payments)
    db.flush()
    return payments


def list_expenses(db: Session, group_id: int) -> List[Expense]:
    return db.query(Expense).filter(Expense.group_id == group_id).order_by(Expense.id).all()


def list_splits(db: Session, group_id: int) -> List[ExpenseSplit]:
    return db.query(ExpenseSplit).join(
        Expense, Expense.id == ExpenseSplit.expense_id
    ).filter(Expense.group_id == group_id).order_by(ExpenseSplit.id).all()


def list_payments(db: Session, group_id: int) -> List[SplitPayment]:
    return db.query(SplitPayment).filter(
        SplitPayment.group_id == group_id
    ).order_by(SplitPayment.id).all()


def load_snapshot(db: Session, group_id: int) -> LedgerSnapshot:
    """Read the whole ledger of a group inside the session's current transaction."""
    group = get_group(db, group_id)
    snapshot = LedgerSnapshot(
        group=group,
        members=list_members(db, group_id),
        expenses=list_expenses(db, group_id),
        splits=list_splits(db, group_id),
        payments=list_payments(db, group_id),
    )
    logger.debug(
        f"Snapshot of group {group_id}: {len(snapshot.expenses)} expenses, "
        f"{len(snapshot.splits)} splits, {len(snapshot.payments)} payments"
    )
    return snapshot
