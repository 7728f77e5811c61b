"""Models package - Import all models for SQLAlchemy registration."""
from groupledger.models.group import Group, GroupMember
from groupledger.models.expense import Expense, ExpenseSplit, ExpenseKind
from groupledger.models.settlement import SplitPayment

__all__ = [
    "Group",
    "GroupMember",
    "Expense",
    "ExpenseSplit",
    "ExpenseKind",
    "SplitPayment",
]
