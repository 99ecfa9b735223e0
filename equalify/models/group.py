from datetime import datetime
from typing import Optional
from sqlmodel import Field, SQLModel, UniqueConstraint

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"

class Group(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: str = ""
    # cache of the amounts of all live expenses tagged with this group
    total_expenses_cents: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)

class GroupMember(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("group_id", "user_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="group.id", index=True)
    user_id: int = Field(foreign_key="user.id")
    role: str = ROLE_MEMBER
