"""
Settlement service: record payments between members against the ledger.

A settlement never edits the original splits. It writes one settlement
expense plus payment entries that reduce the remaining balance of the
payer's oldest obligations first. Deleting that settlement expense is the
only way to undo it.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from groupledger.core.exceptions import (
    ConcurrencyConflictError,
    InvalidAmountError,
    NoDebtError,
    OverpaymentError,
    ValidationError,
)
from groupledger.core.utils import EPSILON, ZERO, round2, to_decimal
from groupledger.models.expense import Expense, ExpenseKind, ExpenseSplit
from groupledger.models.group import Group
from groupledger.schemas.settlement import (
    OutstandingResponse,
    OutstandingSplit,
    PaymentEntryResponse,
    SettlementHistoryItem,
    SettlementResultResponse,
)
from groupledger.services import group_service, ledger_store
from groupledger.services.balance_service import remaining, split_state
from groupledger.services.notifier import Notifier, SettlementCompletedEvent, dispatch

logger = logging.getLogger(__name__)


class Allocation:
    """Part of a settlement applied to one split."""
    def __init__(self, split: ExpenseSplit, expense: Expense, remaining_before: Decimal, amount: Decimal):
        self.split = split
        self.expense = expense
        self.remaining_before = remaining_before
        self.amount = amount


class SettlementPlan:
    """A settlement computed from a ledger read, not yet written."""
    def __init__(
        self,
        group: Group,
        from_member: int,
        to_member: int,
        amount: Decimal,
        total_owed: Decimal,
        allocations: List[Allocation],
        ledger_version: int,
    ):
        self.group_id = group.id
        self.group_name = group.name
        self.currency = group.currency
        self.from_member = from_member
        self.to_member = to_member
        self.amount = amount
        self.total_owed = total_owed
        self.allocations = allocations
        self.ledger_version = ledger_version


def _eligible_splits(db: Session, group_id: int, from_member: int, to_member: int):
    """Regular-expense splits owed by from_member to to_member, oldest expense first."""
    rows = db.query(ExpenseSplit, Expense).join(
        Expense, Expense.id == ExpenseSplit.expense_id
    ).filter(
        Expense.group_id == group_id,
        Expense.kind == ExpenseKind.REGULAR,
        Expense.paid_by == to_member,
        ExpenseSplit.member_id == from_member,
    ).order_by(Expense.id, ExpenseSplit.id).all()

    paid = ledger_store.paid_so_far(db, [split.id for split, _ in rows])
    return rows, paid


def _check_pair(db: Session, group_id: int, from_member: int, to_member: int) -> None:
    if from_member == to_member:
        raise ValidationError("A member cannot settle with themselves", member_id=from_member)
    for member_id in (from_member, to_member):
        group_service.ensure_member(db, group_id, member_id)


def plan_settlement(
    db: Session,
    group_id: int,
    from_member: int,
    to_member: int,
    amount=None,
) -> SettlementPlan:
    """
    Work out how a payment from `from_member` to `to_member` would be applied.

    Without an amount the whole outstanding debt is paid. Amounts are taken to
    the cent; one cent above the outstanding total is tolerated and capped.
    """
    group = ledger_store.get_group(db, group_id)
    ledger_version = group.ledger_version
    _check_pair(db, group_id, from_member, to_member)

    rows, paid = _eligible_splits(db, group_id, from_member, to_member)
    eligible = []
    for split, expense in rows:
        left = remaining(split, paid)
        if left > EPSILON:
            eligible.append((split, expense, left))

    total_owed = sum((left for _, _, left in eligible), ZERO)
    if total_owed <= 0:
        raise NoDebtError(
            f"Member {from_member} owes nothing to member {to_member}", total_owed=ZERO
        )

    if amount is None:
        amount = total_owed
    else:
        amount = round2(to_decimal(amount))
    if amount <= 0:
        raise InvalidAmountError("Settlement amount must be positive", total_owed=total_owed)
    if amount > total_owed + EPSILON:
        raise OverpaymentError(
            f"You can only settle up to {group.currency} {total_owed:.2f}", total_owed=total_owed
        )
    amount = min(amount, total_owed)

    allocations = []
    to_allocate = amount
    for split, expense, left in eligible:
        if to_allocate <= 0:
            break
        pay = min(to_allocate, left)
        if pay > 0:
            allocations.append(Allocation(split, expense, left, pay))
            to_allocate -= pay

    return SettlementPlan(group, from_member, to_member, amount, total_owed, allocations, ledger_version)


def _claim_ledger_version(db: Session, group_id: int, seen_version: int) -> None:
    """Compare-and-swap the group's ledger version; fails if another write got there first."""
    updated = db.query(Group).filter(
        Group.id == group_id,
        Group.ledger_version == seen_version,
    ).update({Group.ledger_version: Group.ledger_version + 1}, synchronize_session=False)
    if updated != 1:
        raise ConcurrencyConflictError(
            "The group's ledger changed while this settlement was being prepared; "
            "reload balances and try again",
            group_id=group_id
        )


def commit_settlement(
    db: Session,
    plan: SettlementPlan,
    created_by: Optional[int] = None,
    notifier: Optional[Notifier] = None,
) -> SettlementResultResponse:
    """Write a planned settlement atomically, then notify the payee."""
    names = ledger_store.member_names(db, plan.group_id)
    from_name = names.get(plan.from_member, "Unknown")
    to_name = names.get(plan.to_member, "Unknown")

    try:
        _claim_ledger_version(db, plan.group_id, plan.ledger_version)

        expense = ledger_store.create_expense(
            db,
            plan.group_id,
            f"Settlement: {from_name} paid {to_name}",
            plan.amount,
            plan.from_member,
            expense_date=date.today(),
            kind=ExpenseKind.SETTLEMENT,
            created_by=created_by if created_by is not None else plan.from_member,
            from_member=plan.from_member,
            to_member=plan.to_member,
        )

        entries = [
            ledger_store.PaymentInput(a.split.id, plan.from_member, plan.to_member, a.amount)
            for a in plan.allocations
        ]
        try:
            payments = ledger_store.append_payment_entries(db, expense, entries)
        except ValidationError as e:
            raise ConcurrencyConflictError(
                f"Remaining balances changed before the settlement was written: {e.message}",
                group_id=plan.group_id
            ) from e

        db.commit()
    except ConcurrencyConflictError as e:
        db.rollback()
        logger.warning(f"Settlement {plan.from_member}->{plan.to_member} in group {plan.group_id} aborted: {e}")
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(expense)
    logger.info(
        f"Settlement {expense.id} in group {plan.group_id}: {plan.from_member} paid "
        f"{plan.to_member} {plan.currency} {plan.amount} across {len(payments)} split(s)"
    )

    event = SettlementCompletedEvent(
        group_id=plan.group_id,
        from_member=plan.from_member,
        to_member=plan.to_member,
        amount=plan.amount,
        currency=plan.currency,
        settlement_expense_id=expense.id,
        message=f'{from_name} paid you {plan.currency} {plan.amount:.2f} in "{plan.group_name}"',
    )
    warning = dispatch(notifier, event)

    return SettlementResultResponse(
        settlement_expense_id=expense.id,
        group_id=plan.group_id,
        from_member=plan.from_member,
        to_member=plan.to_member,
        amount=plan.amount,
        total_owed=plan.total_owed,
        remaining_owed=plan.total_owed - plan.amount,
        currency=plan.currency,
        entries=[PaymentEntryResponse.model_validate(p) for p in payments],
        warnings=[warning] if warning else [],
    )


def settle(
    db: Session,
    group_id: int,
    from_member: int,
    to_member: int,
    amount=None,
    created_by: Optional[int] = None,
    notifier: Optional[Notifier] = None,
) -> SettlementResultResponse:
    """
    Record that `from_member` paid `to_member`, in full or in part.

    Raises NoDebtError, OverpaymentError or InvalidAmountError when the
    request does not fit the outstanding debt, and ConcurrencyConflictError
    when another write changed the ledger in between. Nothing is retried here;
    the caller re-reads balances and resubmits.
    """
    plan = plan_settlement(db, group_id, from_member, to_member, amount)
    return commit_settlement(db, plan, created_by=created_by, notifier=notifier)


def reverse_settlement(db: Session, group_id: int, settlement_expense_id: int) -> None:
    """Undo a settlement by deleting its expense and, with it, its payment entries."""
    expense = ledger_store.get_expense(db, settlement_expense_id, group_id)
    if not expense.is_settlement:
        raise ValidationError(
            f"Expense {settlement_expense_id} is not a settlement",
            expense_id=settlement_expense_id
        )
    ledger_store.delete_expense(db, settlement_expense_id, group_id)


def get_settlement_history(db: Session, group_id: int) -> List[SettlementHistoryItem]:
    """Settlements of a group, newest first, with the payments each produced."""
    ledger_store.get_group(db, group_id)
    names = ledger_store.member_names(db, group_id)

    settlements = db.query(Expense).filter(
        Expense.group_id == group_id,
        Expense.kind == ExpenseKind.SETTLEMENT,
    ).order_by(Expense.date.desc(), Expense.id.desc()).all()

    return [
        SettlementHistoryItem(
            id=s.id,
            description=s.description,
            amount=s.amount,
            currency=s.currency,
            date=s.date,
            from_member=s.from_member,
            from_name=names.get(s.from_member),
            to_member=s.to_member,
            to_name=names.get(s.to_member),
            created_by=s.created_by,
            created_at=s.created_at,
            payments=[PaymentEntryResponse.model_validate(p) for p in s.settlement_payments],
        )
        for s in settlements
    ]


def outstanding_splits(db: Session, group_id: int, from_member: int, to_member: int) -> OutstandingResponse:
    """Split-by-split view of what `from_member` owes `to_member`."""
    ledger_store.get_group(db, group_id)
    _check_pair(db, group_id, from_member, to_member)

    rows, paid = _eligible_splits(db, group_id, from_member, to_member)
    splits = []
    total_owed = ZERO
    for split, expense in rows:
        left = remaining(split, paid)
        if left > EPSILON:
            total_owed += left
        splits.append(OutstandingSplit(
            split_id=split.id,
            expense_id=expense.id,
            description=expense.description,
            date=expense.date,
            original_amount=split.amount,
            paid=paid.get(split.id, ZERO),
            remaining=left,
            state=split_state(split, paid),
        ))

    return OutstandingResponse(
        from_member=from_member,
        to_member=to_member,
        total_owed=total_owed,
        splits=splits,
    )
