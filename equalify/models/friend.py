from datetime import datetime
from typing import Optional
from sqlmodel import Field, SQLModel, UniqueConstraint

class Friendship(SQLModel, table=True):
    """One row per unordered pair of users, ``low_id < high_id``.

    The two counters are independent: ``low_owes_high_cents`` is what the
    user with the smaller id owes the other one, ``high_owes_low_cents`` the
    reverse.
    """
    __table_args__ = (UniqueConstraint("low_id", "high_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    low_id: int = Field(foreign_key="user.id", index=True)
    high_id: int = Field(foreign_key="user.id", index=True)
    low_owes_high_cents: int = 0
    high_owes_low_cents: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)
