# equalify/services/budget_service.py
import calendar
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from sqlalchemy import update
from sqlmodel import Session, select
from equalify.errors import Forbidden, LedgerError, NotFound, ValidationError
from equalify.models.budget import BudgetCategory, BudgetEntry
from equalify.money import from_cents, require_amount, to_cents
from equalify.schemas import (
    BudgetCategoryCreate, BudgetCategoryRead, BudgetCategoryUpdate, BudgetEntryRead, BudgetSpendCreate, MonthlyAmount,
)

logger = logging.getLogger(__name__)


def get_category(session: Session, user_id: int, category_id: int) -> BudgetCategory:
    category = session.get(BudgetCategory, category_id, populate_existing=True)
    if not category:
        raise NotFound("Category not found", category_id=category_id)
    if category.user_id != user_id:
        raise Forbidden("Not authorized to use this category", category_id=category_id)
    return category


def category_read(category: BudgetCategory) -> BudgetCategoryRead:
    return BudgetCategoryRead(
        id=category.id,
        name=category.name,
        allocated=from_cents(category.allocated_cents),
        spent=from_cents(category.spent_cents),
        remaining=from_cents(category.allocated_cents - category.spent_cents),
        icon=category.icon,
        color=category.color,
    )


def entry_read(entry: BudgetEntry) -> BudgetEntryRead:
    return BudgetEntryRead(
        id=entry.id, category_id=entry.category_id, amount=from_cents(entry.amount_cents),
        description=entry.description, date=entry.date,
    )


def list_categories(session: Session, user_id: int) -> List[BudgetCategory]:
    return session.exec(
        select(BudgetCategory).where(BudgetCategory.user_id == user_id).order_by(BudgetCategory.id)
    ).all()


def create_category(session: Session, user_id: int, data: BudgetCategoryCreate) -> BudgetCategory:
    name = data.name.strip()
    if not name:
        raise ValidationError("Category name is required")
    allocated = require_amount(data.allocated, "Allocated amount")
    category = BudgetCategory(
        user_id=user_id, name=name, allocated_cents=to_cents(allocated), icon=data.icon, color=data.color,
    )
    session.add(category)
    session.commit()
    session.refresh(category)
    logger.info("user %s created budget category %s", user_id, category.id)
    return category


def update_category(session: Session, user_id: int, category_id: int, data: BudgetCategoryUpdate) -> BudgetCategory:
    category = get_category(session, user_id, category_id)
    if data.name is not None:
        if not data.name.strip():
            raise ValidationError("Category name is required")
        category.name = data.name.strip()
    if data.allocated is not None:
        category.allocated_cents = to_cents(require_amount(data.allocated, "Allocated amount"))
    if data.icon is not None:
        category.icon = data.icon
    if data.color is not None:
        category.color = data.color
    session.add(category)
    session.commit()
    return get_category(session, user_id, category_id)


def delete_category(session: Session, user_id: int, category_id: int) -> None:
    category = get_category(session, user_id, category_id)
    for entry in session.exec(select(BudgetEntry).where(BudgetEntry.category_id == category_id)).all():
        session.delete(entry)
    session.flush()
    session.delete(category)
    session.commit()
    logger.info("user %s deleted budget category %s", user_id, category_id)


def add_spent(session: Session, category_id: int, delta_cents: int) -> bool:
    """Atomically add ``delta_cents`` to a category's spent total."""
    stmt = (
        update(BudgetCategory)
        .where(BudgetCategory.id == category_id)
        .values(spent_cents=BudgetCategory.spent_cents + delta_cents)
    )
    return session.connection().execute(stmt).rowcount == 1


def record_spend(session: Session, user_id: int, data: BudgetSpendCreate) -> Tuple[BudgetEntry, BudgetCategory]:
    """Store a spend entry and count it against its category."""
    get_category(session, user_id, data.category_id)
    amount = require_amount(data.amount)
    entry = BudgetEntry(
        category_id=data.category_id,
        user_id=user_id,
        amount_cents=to_cents(amount),
        description=data.description.strip() or "Expense",
        date=data.date or datetime.utcnow(),
    )
    try:
        session.add(entry)
        session.flush()
        if not add_spent(session, data.category_id, entry.amount_cents):
            raise NotFound("Category not found", category_id=data.category_id)
        session.commit()
    except LedgerError:
        session.rollback()
        raise
    session.refresh(entry)
    logger.info("user %s recorded %s cents against budget category %s", user_id, entry.amount_cents, entry.category_id)
    return entry, get_category(session, user_id, data.category_id)


def monthly_summary(session: Session, user_id: int, year: Optional[int] = None) -> List[MonthlyAmount]:
    """Spend per month of ``year`` (default: this year), months without spend left out."""
    year = year or datetime.utcnow().year
    entries = session.exec(
        select(BudgetEntry).where(
            BudgetEntry.user_id == user_id,
            BudgetEntry.date >= datetime(year, 1, 1),
            BudgetEntry.date < datetime(year + 1, 1, 1),
        )
    ).all()
    totals: Dict[int, int] = {}
    for e in entries:
        totals[e.date.month] = totals.get(e.date.month, 0) + e.amount_cents
    return [
        MonthlyAmount(month=calendar.month_abbr[month], amount=from_cents(cents))
        for month, cents in sorted(totals.items())
    ]
