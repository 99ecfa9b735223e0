from datetime import datetime
from typing import Optional
from sqlmodel import Field, SQLModel

class Expense(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    description: str
    amount_cents: int
    group_id: Optional[int] = Field(default=None, foreign_key="group.id", index=True)
    payer_id: int = Field(foreign_key="user.id")
    created_by_id: int = Field(foreign_key="user.id")
    category: str = "other"
    notes: str = ""
    date: datetime = Field(default_factory=datetime.utcnow)
    settled: bool = False
    settled_at: Optional[datetime] = None

class ExpenseShare(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    expense_id: int = Field(foreign_key="expense.id", index=True)
    user_id: int = Field(foreign_key="user.id")
    # listed order of the participant on the expense
    position: int = 0
    share_cents: int
