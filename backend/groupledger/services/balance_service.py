"""
Balance calculation from the payment ledger.

Balances are recomputed from the full ledger on every read rather than kept as
running totals, so they always agree with the ledger after deletions and
reversals. Group volumes are small (hundreds of expenses), which keeps the
O(expenses x splits) pass cheap.
"""
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List, Sequence
from sqlalchemy.orm import Session
from groupledger.core.utils import EPSILON, ZERO, is_settled, round2, to_decimal
from groupledger.models.expense import Expense, ExpenseKind, ExpenseSplit
from groupledger.models.group import GroupMember
from groupledger.models.settlement import SplitPayment
from groupledger.schemas.settlement import Balance, SplitState
from groupledger.services.ledger_store import load_snapshot, paid_by_split


def remaining(split: ExpenseSplit, paid: Dict[int, Decimal]) -> Decimal:
    """Original split amount minus everything paid against it."""
    return to_decimal(split.amount) - paid.get(split.id, ZERO)


def split_state(split: ExpenseSplit, paid: Dict[int, Decimal]) -> SplitState:
    left = remaining(split, paid)
    if left <= EPSILON:
        return SplitState.SETTLED
    if paid.get(split.id, ZERO) > 0:
        return SplitState.PARTIALLY_PAID
    return SplitState.OPEN


def calculate_balances(
    members: Sequence[GroupMember],
    expenses: Iterable[Expense],
    splits: Iterable[ExpenseSplit],
    payments: Iterable[SplitPayment],
) -> List[Balance]:
    """
    Derive every member's net position from the ledger contents.

    Settlement expenses are skipped (their effect is carried by payments), and
    a payer's own split never counts as a debt. Members with no activity come
    back with zero balances. Output follows `members` order; anyone who appears
    in the ledger without a membership row is appended in first-seen order.
    """
    totals: Dict[int, Dict[str, Decimal]] = {}
    names: Dict[int, str] = {}
    for m in members:
        totals[m.user_id] = {"owes": ZERO, "owed": ZERO}
        names[m.user_id] = m.display_name or "Unknown"

    def entry(member_id: int) -> Dict[str, Decimal]:
        if member_id not in totals:
            totals[member_id] = {"owes": ZERO, "owed": ZERO}
        return totals[member_id]

    paid = paid_by_split(payments)
    splits_by_expense: Dict[int, List[ExpenseSplit]] = defaultdict(list)
    for split in splits:
        splits_by_expense[split.expense_id].append(split)

    for expense in expenses:
        if expense.kind == ExpenseKind.SETTLEMENT:
            continue
        for split in splits_by_expense.get(expense.id, []):
            if split.member_id == expense.paid_by:
                continue
            left = remaining(split, paid)
            if left > EPSILON:
                entry(split.member_id)["owes"] += left
                entry(expense.paid_by)["owed"] += left

    balances = []
    for member_id, data in totals.items():
        owes = round2(data["owes"])
        owed = round2(data["owed"])
        balances.append(Balance(
            member_id=member_id,
            display_name=names.get(member_id, "Unknown"),
            owes=owes,
            owed=owed,
            net=owed - owes,
        ))
    return balances


def is_group_settled(balances: Iterable[Balance]) -> bool:
    """A group is settled when every member's net is within one cent of zero."""
    return all(is_settled(b.net) for b in balances)


def group_balances(db: Session, group_id: int) -> List[Balance]:
    """Balances for a group, computed from one ledger snapshot."""
    snapshot = load_snapshot(db, group_id)
    return calculate_balances(snapshot.members, snapshot.expenses, snapshot.splits, snapshot.payments)
