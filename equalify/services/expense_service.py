# equalify/services/expense_service.py
import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List
from sqlmodel import Session, select
from equalify.errors import Forbidden, LedgerError, NotFound
from equalify.models.expense import Expense, ExpenseShare
from equalify.models.group import Group
from equalify.models.user import User
from equalify.money import ZERO, from_cents, to_cents
from equalify.schemas import ExpenseCreate, ExpenseRead, ExpenseSummary, ShareRead
from equalify.services.balance_service import apply_expense, reverse_expense
from equalify.services.group_service import get_membership, is_admin, require_member
from equalify.services.split_service import compute_split

logger = logging.getLogger(__name__)

RECENT_LIMIT = 10


def get_expense(session: Session, expense_id: int) -> Expense:
    expense = session.get(Expense, expense_id)
    if not expense:
        raise NotFound("Expense not found", expense_id=expense_id)
    return expense


def get_shares(session: Session, expense_id: int) -> List[ExpenseShare]:
    return session.exec(
        select(ExpenseShare).where(ExpenseShare.expense_id == expense_id).order_by(ExpenseShare.position)
    ).all()


def expense_read(session: Session, expense: Expense) -> ExpenseRead:
    shares = get_shares(session, expense.id)
    return ExpenseRead(
        id=expense.id,
        description=expense.description,
        amount=from_cents(expense.amount_cents),
        payer_id=expense.payer_id,
        created_by_id=expense.created_by_id,
        group_id=expense.group_id,
        category=expense.category,
        notes=expense.notes,
        date=expense.date,
        settled=expense.settled,
        settled_at=expense.settled_at,
        participants=[ShareRead(user_id=sh.user_id, share=from_cents(sh.share_cents)) for sh in shares],
    )


def _is_involved(session: Session, expense: Expense, user_id: int) -> bool:
    if expense.payer_id == user_id:
        return True
    return any(sh.user_id == user_id for sh in get_shares(session, expense.id))


def read_expense(session: Session, user_id: int, expense_id: int) -> Expense:
    """An expense, visible to its payer, its participants and members of its group."""
    expense = get_expense(session, expense_id)
    if _is_involved(session, expense, user_id):
        return expense
    if expense.group_id is not None and get_membership(session, expense.group_id, user_id):
        return expense
    raise Forbidden("Not authorized to view this expense", expense_id=expense_id)


def create_expense(session: Session, user_id: int, data: ExpenseCreate) -> Expense:
    """Validate and split a new expense, store it and fold it into the ledger.

    Everything is checked before the first write, and the ledger update
    commits together with the expense rows.
    """
    if data.group_id is not None:
        if not session.get(Group, data.group_id):
            raise NotFound("Group not found", group_id=data.group_id)
        require_member(session, data.group_id, user_id)

    split = compute_split(data.amount, [(p.user_id, p.share) for p in data.participants], data.split)

    for uid in {data.payer_id, *(uid for uid, _ in split)}:
        if not session.get(User, uid):
            raise NotFound("User not found", user_id=uid)

    expense = Expense(
        description=data.description.strip() or "Untitled Expense",
        amount_cents=to_cents(data.amount),
        group_id=data.group_id,
        payer_id=data.payer_id,
        created_by_id=user_id,
        category=data.category or "other",
        notes=data.notes,
        date=data.date or datetime.utcnow(),
    )
    try:
        session.add(expense)
        session.flush()
        shares = [
            ExpenseShare(expense_id=expense.id, user_id=uid, position=i, share_cents=to_cents(share))
            for i, (uid, share) in enumerate(split)
        ]
        session.add_all(shares)
        session.flush()
        apply_expense(session, expense, shares)
        session.commit()
    except LedgerError:
        session.rollback()
        raise
    session.refresh(expense)
    logger.info("user %s created expense %s", user_id, expense.id)
    return expense


def delete_expense(session: Session, user_id: int, expense_id: int) -> None:
    """Delete an expense and reverse its effect on balances.

    The creator may always delete; for a group expense a group admin may too.
    """
    expense = get_expense(session, expense_id)
    allowed = expense.created_by_id == user_id
    if not allowed and expense.group_id is not None:
        allowed = is_admin(session, expense.group_id, user_id)
    if not allowed:
        raise Forbidden("Not authorized to delete this expense", expense_id=expense_id)

    try:
        shares = get_shares(session, expense_id)
        reverse_expense(session, expense, shares)
        for sh in shares:
            session.delete(sh)
        session.flush()
        session.delete(expense)
        session.commit()
    except LedgerError:
        session.rollback()
        raise
    logger.info("user %s deleted expense %s", user_id, expense_id)


def settle_expense(session: Session, user_id: int, expense_id: int) -> Expense:
    """Flag one expense as settled. Balances are not touched."""
    expense = get_expense(session, expense_id)
    if not _is_involved(session, expense, user_id):
        raise Forbidden("Not authorized to mark this expense as settled", expense_id=expense_id)
    if not expense.settled:
        expense.settled = True
        expense.settled_at = datetime.utcnow()
        session.add(expense)
        session.commit()
        session.refresh(expense)
    return expense


def _user_expenses(user_id: int):
    participating = select(ExpenseShare.expense_id).where(ExpenseShare.user_id == user_id)
    return select(Expense).where((Expense.payer_id == user_id) | (Expense.id.in_(participating)))


def group_expenses(session: Session, user_id: int, group_id: int) -> List[Expense]:
    if not session.get(Group, group_id):
        raise NotFound("Group not found", group_id=group_id)
    require_member(session, group_id, user_id)
    return session.exec(select(Expense).where(Expense.group_id == group_id).order_by(Expense.date.desc())).all()


def recent_expenses(session: Session, user_id: int, limit: int = RECENT_LIMIT) -> List[Expense]:
    return session.exec(_user_expenses(user_id).order_by(Expense.date.desc()).limit(limit)).all()


def expense_summary(session: Session, user_id: int) -> ExpenseSummary:
    total_paid = 0
    total_owed = 0
    for e in session.exec(_user_expenses(user_id)).all():
        if e.payer_id == user_id:
            total_paid += e.amount_cents
        for sh in get_shares(session, e.id):
            if sh.user_id == user_id:
                total_owed += sh.share_cents
    return ExpenseSummary(
        total_paid=from_cents(total_paid),
        total_owed=from_cents(total_owed),
        net=from_cents(total_paid - total_owed),
    )


def monthly_spending(session: Session, user_id: int) -> Dict[str, Decimal]:
    """Amount paid by the user per ``YYYY-MM``."""
    months: Dict[str, Decimal] = {}
    expenses = session.exec(
        select(Expense).where(Expense.payer_id == user_id).order_by(Expense.date)
    ).all()
    for e in expenses:
        month = e.date.strftime("%Y-%m")
        months[month] = months.get(month, ZERO) + from_cents(e.amount_cents)
    return months
