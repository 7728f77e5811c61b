"""
Payment ledger model for partial and full settlement of splits.
"""
from sqlalchemy import Column, Numeric, ForeignKey, Integer
from sqlalchemy.orm import relationship
from groupledger.db.base import BaseModel


class SplitPayment(BaseModel):
    """Append-only record that part of a split has been paid.

    Rows are removed only by deleting the settlement expense that produced
    them, which restores the split's remaining balance exactly.
    """
    __tablename__ = "split_payments"

    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    split_id = Column(Integer, ForeignKey("expense_splits.id", ondelete="CASCADE"), nullable=False, index=True)
    settlement_expense_id = Column(
        Integer, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    from_member = Column(Integer, nullable=False)  # the ower
    to_member = Column(Integer, nullable=False)  # payer of the original expense
    amount = Column(Numeric(15, 2), nullable=False)
    created_by = Column(Integer, nullable=True)

    # Relationships
    split = relationship("ExpenseSplit", back_populates="payments")
    settlement_expense = relationship("Expense", back_populates="settlement_payments")
