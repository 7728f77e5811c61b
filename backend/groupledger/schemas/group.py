"""
Pydantic schemas for Group and GroupMember entities.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class GroupCreate(BaseModel):
    """Schema for group creation."""
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    display_name: str = Field(min_length=1, max_length=100)  # Creator's name within the group


class MemberAdd(BaseModel):
    """Schema for adding a member supplied by the member directory."""
    user_id: int
    display_name: str = Field(min_length=1, max_length=100)


class GroupMemberResponse(BaseModel):
    """Schema for group member response."""
    user_id: int
    display_name: str
    joined_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupResponse(BaseModel):
    """Schema for group response."""
    id: int
    name: str
    description: Optional[str] = None
    currency: str
    admin_id: int
    created_at: datetime
    members: List[GroupMemberResponse] = []

    class Config:
        from_attributes = True


class GroupUpdate(BaseModel):
    """Schema for group update."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
