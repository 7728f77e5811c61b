"""
Pydantic schemas for Expense entity.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date as dt_date, datetime
from decimal import Decimal
from groupledger.models.expense import ExpenseKind


class SplitInput(BaseModel):
    """One member's share when creating an expense."""
    member_id: int
    amount: Decimal


class ExpenseCreate(BaseModel):
    """Schema for expense creation."""
    description: str = Field(min_length=1)
    amount: Decimal
    paid_by: Optional[int] = None  # Defaults to the acting member
    date: Optional[dt_date] = None  # Defaults to today
    splits: List[SplitInput]


class SplitResponse(BaseModel):
    """Schema for expense split response."""
    id: int
    member_id: int
    amount: Decimal

    class Config:
        from_attributes = True


class ExpenseResponse(BaseModel):
    """Schema for expense response."""
    id: int
    group_id: int
    description: str
    amount: Decimal
    currency: str
    paid_by: int
    date: dt_date
    kind: ExpenseKind
    from_member: Optional[int] = None
    to_member: Optional[int] = None
    splits: List[SplitResponse] = []
    created_at: datetime

    class Config:
        from_attributes = True
