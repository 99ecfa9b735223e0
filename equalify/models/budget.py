from datetime import datetime
from typing import Optional
from sqlmodel import Field, SQLModel

class BudgetCategory(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    name: str
    allocated_cents: int
    # only ever moved by a single UPDATE, see budget_service.add_spent
    spent_cents: int = 0
    icon: Optional[str] = None
    color: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

class BudgetEntry(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    category_id: int = Field(foreign_key="budgetcategory.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    amount_cents: int
    description: str = "Expense"
    date: datetime = Field(default_factory=datetime.utcnow)
