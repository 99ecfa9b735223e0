# equalify/schemas.py
# request and response bodies; table models live in equalify.models
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from sqlmodel import Field, SQLModel

SplitMode = Literal["equal", "explicit"]
Direction = Literal["theyPaidMe", "iPaidThem"]
Role = Literal["admin", "member"]


class UserRead(SQLModel):
    id: int
    name: str
    email: Optional[str] = None


class ParticipantIn(SQLModel):
    user_id: int
    # required in explicit mode, ignored in equal mode
    share: Optional[Decimal] = None


class ExpenseCreate(SQLModel):
    description: str = "Untitled Expense"
    amount: Decimal
    payer_id: int
    participants: List[ParticipantIn]
    split: SplitMode = "equal"
    group_id: Optional[int] = None
    category: str = "other"
    notes: str = ""
    date: Optional[datetime] = None


class ShareRead(SQLModel):
    user_id: int
    share: Decimal


class ExpenseRead(SQLModel):
    id: int
    description: str
    amount: Decimal
    payer_id: int
    created_by_id: int
    group_id: Optional[int] = None
    category: str
    notes: str
    date: datetime
    settled: bool
    settled_at: Optional[datetime] = None
    participants: List[ShareRead]


class ExpenseSummary(SQLModel):
    total_paid: Decimal
    total_owed: Decimal
    net: Decimal


class SettlementCreate(SQLModel):
    amount: Decimal
    direction: Direction


class FriendAdd(SQLModel):
    email: str


class FriendBalance(SQLModel):
    """One user's view of a friendship."""
    owner_id: int
    counterparty_id: int
    name: Optional[str] = None
    email: Optional[str] = None
    # what the owner owes the counterparty
    owes: Decimal
    # what the counterparty owes the owner
    is_owed: Decimal


class BalanceSummary(SQLModel):
    total_owes: Decimal
    total_is_owed: Decimal
    net_balance: Decimal


class MemberAdd(SQLModel):
    user_id: int
    role: Role = "member"


class MemberRoleUpdate(SQLModel):
    role: Role


class MemberRead(SQLModel):
    user_id: int
    name: str
    role: Role


class GroupCreate(SQLModel):
    name: str = Field(min_length=1)
    description: str = ""
    members: List[MemberAdd] = []


class GroupUpdate(SQLModel):
    name: Optional[str] = None
    description: Optional[str] = None


class GroupRead(SQLModel):
    id: int
    name: str
    description: str
    total_expenses: Decimal
    created_at: datetime
    members: List[MemberRead]


class MemberBalance(SQLModel):
    user_id: int
    name: str
    net: Decimal


class BudgetCategoryCreate(SQLModel):
    name: str = Field(min_length=1)
    allocated: Decimal
    icon: Optional[str] = None
    color: Optional[str] = None


class BudgetCategoryUpdate(SQLModel):
    name: Optional[str] = None
    allocated: Optional[Decimal] = None
    icon: Optional[str] = None
    color: Optional[str] = None


class BudgetCategoryRead(SQLModel):
    id: int
    name: str
    allocated: Decimal
    spent: Decimal
    # negative once the category is overspent
    remaining: Decimal
    icon: Optional[str] = None
    color: Optional[str] = None


class BudgetSpendCreate(SQLModel):
    category_id: int
    amount: Decimal
    description: str = "Expense"
    date: Optional[datetime] = None


class BudgetEntryRead(SQLModel):
    id: int
    category_id: int
    amount: Decimal
    description: str
    date: datetime


class BudgetSpendRead(SQLModel):
    entry: BudgetEntryRead
    category: BudgetCategoryRead


class MonthlyAmount(SQLModel):
    month: str
    amount: Decimal
