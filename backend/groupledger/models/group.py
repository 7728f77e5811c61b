"""
Group and membership models.
"""
from sqlalchemy import Column, String, Text, ForeignKey, Integer, UniqueConstraint, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from groupledger.db.base import BaseModel


class Group(BaseModel):
    """A set of members sharing one ledger in a single currency."""
    __tablename__ = "groups"

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    admin_id = Column(Integer, nullable=False, index=True)  # user id of the creator
    ledger_version = Column(Integer, nullable=False, default=0)  # bumped by every settlement write

    # Relationships
    members = relationship(
        "GroupMember", back_populates="group", cascade="all, delete-orphan",
        order_by="GroupMember.id"
    )
    expenses = relationship("Expense", back_populates="group", cascade="all, delete-orphan")


class GroupMember(BaseModel):
    """Membership row. `user_id` is the member id used throughout the ledger."""
    __tablename__ = "group_members"

    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    display_name = Column(String(100), nullable=False)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    group = relationship("Group", back_populates="members")

    __table_args__ = (
        UniqueConstraint('group_id', 'user_id', name='uq_group_member'),
    )
