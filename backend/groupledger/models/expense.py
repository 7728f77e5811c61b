"""
Expense model for tracking shared spending.
"""
from sqlalchemy import Column, String, Numeric, Date, ForeignKey, Integer, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
from groupledger.db.base import BaseModel
import enum


class ExpenseKind(str, enum.Enum):
    """Expense kind enumeration."""
    REGULAR = "regular"
    SETTLEMENT = "settlement"


class Expense(BaseModel):
    """A shared cost, or the record of a settlement payment."""
    __tablename__ = "expenses"

    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    paid_by = Column(Integer, nullable=False, index=True)  # payer member id
    date = Column(Date, nullable=False, index=True)
    kind = Column(SQLEnum(ExpenseKind), default=ExpenseKind.REGULAR, nullable=False)
    created_by = Column(Integer, nullable=True)
    # Settlement participants, stored as columns rather than parsed from the description
    from_member = Column(Integer, nullable=True)
    to_member = Column(Integer, nullable=True)

    # Relationships
    group = relationship("Group", back_populates="expenses")
    splits = relationship(
        "ExpenseSplit", back_populates="expense", cascade="all, delete-orphan",
        order_by="ExpenseSplit.id"
    )
    settlement_payments = relationship(
        "SplitPayment", back_populates="settlement_expense", cascade="all, delete-orphan",
        order_by="SplitPayment.id"
    )

    @property
    def is_settlement(self) -> bool:
        return self.kind == ExpenseKind.SETTLEMENT


class ExpenseSplit(BaseModel):
    """One member's original share of an expense. Never mutated after insert."""
    __tablename__ = "expense_splits"

    expense_id = Column(Integer, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(Integer, nullable=False, index=True)  # the ower
    amount = Column(Numeric(15, 2), nullable=False)

    # Relationships
    expense = relationship("Expense", back_populates="splits")
    payments = relationship(
        "SplitPayment", back_populates="split", cascade="all, delete-orphan"
    )
