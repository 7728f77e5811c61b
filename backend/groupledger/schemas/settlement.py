"""
Pydantic schemas for balances, suggested debts and settlements.
"""
from pydantic import BaseModel
from typing import List, Optional
from datetime import date as dt_date, datetime
from decimal import Decimal
from enum import Enum


class SplitState(str, Enum):
    """Lifecycle of a split, derived from its payments."""
    OPEN = "open"
    PARTIALLY_PAID = "partially_paid"
    SETTLED = "settled"


class Balance(BaseModel):
    """A member's net position in the group."""
    member_id: int
    display_name: str = "Unknown"
    owes: Decimal = Decimal("0")  # Remaining amounts this member still owes others
    owed: Decimal = Decimal("0")  # Remaining amounts others still owe this member
    net: Decimal = Decimal("0")  # owed - owes; positive = should receive


class SuggestedDebt(BaseModel):
    """One advisory transfer produced by debt simplification. Never persisted."""
    from_member: int
    from_name: str = "Unknown"
    to_member: int
    to_name: str = "Unknown"
    amount: Decimal


class GroupBalancesResponse(BaseModel):
    """Schema for the balances view of a group."""
    group_id: int
    currency: str
    balances: List[Balance]
    debts: List[SuggestedDebt]
    is_settled: bool


class SettleRequest(BaseModel):
    """Schema for settling what one member owes another."""
    from_member: Optional[int] = None  # Defaults to the acting member
    to_member: int
    amount: Optional[Decimal] = None  # Omitted -> pay everything outstanding


class PaymentEntryResponse(BaseModel):
    """Schema for one payment ledger entry."""
    id: int
    split_id: int
    settlement_expense_id: int
    from_member: int
    to_member: int
    amount: Decimal
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SettlementResultResponse(BaseModel):
    """Schema for the outcome of a settlement."""
    settlement_expense_id: int
    group_id: int
    from_member: int
    to_member: int
    amount: Decimal
    total_owed: Decimal  # Outstanding before this settlement
    remaining_owed: Decimal  # Outstanding after this settlement
    currency: str
    entries: List[PaymentEntryResponse]
    warnings: List[str] = []


class SettlementHistoryItem(BaseModel):
    """Schema for one past settlement with its ledger entries."""
    id: int
    description: str
    amount: Decimal
    currency: str
    date: dt_date
    from_member: Optional[int] = None
    from_name: Optional[str] = None
    to_member: Optional[int] = None
    to_name: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    payments: List[PaymentEntryResponse] = []


class OutstandingSplit(BaseModel):
    """Per-split view of what one member still owes another."""
    split_id: int
    expense_id: int
    description: str
    date: dt_date
    original_amount: Decimal
    paid: Decimal
    remaining: Decimal
    state: SplitState


class OutstandingResponse(BaseModel):
    """Schema for the outstanding obligations between two members."""
    from_member: int
    to_member: int
    total_owed: Decimal
    splits: List[OutstandingSplit]
