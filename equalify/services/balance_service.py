# equalify/services/balance_service.py
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple
from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
from equalify.errors import InvalidStateTransition, NotFound, SettlementExceedsDebt, ValidationError
from equalify.models.expense import Expense, ExpenseShare
from equalify.models.friend import Friendship
from equalify.models.group import Group, GroupMember
from equalify.models.user import User
from equalify.money import ZERO, from_cents
from equalify.schemas import BalanceSummary, FriendBalance

logger = logging.getLogger(__name__)

THEY_PAID_ME = "theyPaidMe"
I_PAID_THEM = "iPaidThem"
DIRECTIONS = (THEY_PAID_ME, I_PAID_THEM)


def _ordered(a: int, b: int) -> Tuple[int, int]:
    return (a, b) if a < b else (b, a)


def _debt_column(debtor_id: int, creditor_id: int):
    return Friendship.low_owes_high_cents if debtor_id < creditor_id else Friendship.high_owes_low_cents


def get_friendship(session: Session, a: int, b: int) -> Optional[Friendship]:
    low, high = _ordered(a, b)
    # counters change underneath the identity map, always reload them
    return session.exec(
        select(Friendship).where(Friendship.low_id == low, Friendship.high_id == high)
        .execution_options(populate_existing=True)
    ).first()


def ensure_friendship(session: Session, a: int, b: int) -> Friendship:
    if a == b:
        raise ValidationError("A user cannot be their own friend", user_id=a)
    existing = get_friendship(session, a, b)
    if existing:
        return existing
    low, high = _ordered(a, b)
    try:
        # savepoint so a concurrent insert of the same pair only undoes this row
        with session.begin_nested():
            friendship = Friendship(low_id=low, high_id=high)
            session.add(friendship)
    except IntegrityError:
        friendship = get_friendship(session, a, b)
    return friendship


def debt_cents(friendship: Friendship, debtor_id: int) -> int:
    """What ``debtor_id`` owes the other side of ``friendship``."""
    if debtor_id == friendship.low_id:
        return friendship.low_owes_high_cents
    return friendship.high_owes_low_cents


def friend_balance(friendship: Friendship, owner_id: int, friend: Optional[User] = None) -> FriendBalance:
    counterparty_id = friendship.high_id if owner_id == friendship.low_id else friendship.low_id
    return FriendBalance(
        owner_id=owner_id,
        counterparty_id=counterparty_id,
        name=friend.name if friend else None,
        email=friend.email if friend else None,
        owes=from_cents(debt_cents(friendship, owner_id)),
        is_owed=from_cents(debt_cents(friendship, counterparty_id)),
    )


def shift_debt(session: Session, debtor_id: int, creditor_id: int, delta_cents: int) -> bool:
    """Atomically add ``delta_cents`` to what ``debtor_id`` owes ``creditor_id``.

    Runs as one conditional UPDATE against the stored value; returns False
    (and changes nothing) when the pair has no row or the result would be
    negative.
    """
    low, high = _ordered(debtor_id, creditor_id)
    column = _debt_column(debtor_id, creditor_id)
    stmt = (
        update(Friendship)
        .where(Friendship.low_id == low, Friendship.high_id == high, column + delta_cents >= 0)
        .values({column: column + delta_cents})
    )
    return session.connection().execute(stmt).rowcount == 1


def shift_group_total(session: Session, group_id: int, delta_cents: int) -> None:
    if delta_cents >= 0:
        new_total = Group.total_expenses_cents + delta_cents
    else:
        # the total is a cache; never let drift push it below zero
        new_total = case(
            (Group.total_expenses_cents + delta_cents >= 0, Group.total_expenses_cents + delta_cents),
            else_=0,
        )
    stmt = (
        update(Group)
        .where(Group.id == group_id)
        .values(total_expenses_cents=new_total)
    )
    session.connection().execute(stmt)


def apply_expense(session: Session, expense: Expense, shares: Sequence[ExpenseShare]) -> None:
    """Fold an expense into the pair balances and its group's total."""
    for share in shares:
        if share.user_id == expense.payer_id or share.share_cents == 0:
            continue
        ensure_friendship(session, share.user_id, expense.payer_id)
        shift_debt(session, share.user_id, expense.payer_id, share.share_cents)
    if expense.group_id is not None:
        shift_group_total(session, expense.group_id, expense.amount_cents)
    logger.info("applied expense %s (%s cents) paid by user %s", expense.id, expense.amount_cents, expense.payer_id)


def reverse_expense(session: Session, expense: Expense, shares: Sequence[ExpenseShare]) -> None:
    """Undo ``apply_expense`` using the shares stored with the expense.

    Raises InvalidStateTransition when a balance has since been settled
    below the amount that would be taken back. Nothing is rolled back here;
    the caller discards the transaction.
    """
    for share in shares:
        if share.user_id == expense.payer_id or share.share_cents == 0:
            continue
        if not shift_debt(session, share.user_id, expense.payer_id, -share.share_cents):
            raise InvalidStateTransition(
                f"Reversing expense {expense.id} would make the balance between "
                f"users {share.user_id} and {expense.payer_id} negative",
                expense_id=expense.id,
            )
    if expense.group_id is not None:
        shift_group_total(session, expense.group_id, -expense.amount_cents)
    logger.info("reversed expense %s (%s cents)", expense.id, expense.amount_cents)


def apply_settlement(session: Session, owner_id: int, counterparty_id: int, amount_cents: int, direction: str) -> Friendship:
    """Pay down one side of a friendship.

    ``theyPaidMe`` reduces what the owner owes the counterparty,
    ``iPaidThem`` reduces what the counterparty owes the owner.
    """
    if direction not in DIRECTIONS:
        raise ValidationError(f"Invalid settlement direction {direction!r}")
    friendship = get_friendship(session, owner_id, counterparty_id)
    if friendship is None:
        raise NotFound("Friend not found", friend_id=counterparty_id)
    if direction == THEY_PAID_ME:
        debtor_id, creditor_id = owner_id, counterparty_id
    else:
        debtor_id, creditor_id = counterparty_id, owner_id
    if not shift_debt(session, debtor_id, creditor_id, -amount_cents):
        session.refresh(friendship)
        raise SettlementExceedsDebt(
            requested=from_cents(amount_cents),
            outstanding=from_cents(debt_cents(friendship, debtor_id)),
        )
    session.refresh(friendship)
    logger.info("user %s settled %s cents with user %s (%s)", owner_id, amount_cents, counterparty_id, direction)
    return friendship


def list_friend_balances(session: Session, user_id: int) -> List[FriendBalance]:
    friendships = session.exec(
        select(Friendship).where((Friendship.low_id == user_id) | (Friendship.high_id == user_id))
        .order_by(Friendship.created_at)
        .execution_options(populate_existing=True)
    ).all()
    balances = []
    for f in friendships:
        friend = session.get(User, f.high_id if f.low_id == user_id else f.low_id)
        balances.append(friend_balance(f, user_id, friend))
    return balances


def total_balance(session: Session, user_id: int) -> BalanceSummary:
    total_owes = ZERO
    total_is_owed = ZERO
    for b in list_friend_balances(session, user_id):
        total_owes += b.owes
        total_is_owed += b.is_owed
    return BalanceSummary(total_owes=total_owes, total_is_owed=total_is_owed, net_balance=total_is_owed - total_owes)


def compute_group_balances(session: Session, group_id: int) -> Dict[int, Decimal]:
    """Net position of every group member, recomputed from the stored shares.

    Positive means the member is owed money by the group.
    """
    member_ids = session.exec(select(GroupMember.user_id).where(GroupMember.group_id == group_id)).all()
    nets = {uid: 0 for uid in member_ids}

    expenses = session.exec(select(Expense).where(Expense.group_id == group_id).order_by(Expense.date)).all()
    for e in expenses:
        shares = session.exec(select(ExpenseShare).where(ExpenseShare.expense_id == e.id)).all()
        for sh in shares:
            nets.setdefault(sh.user_id, 0)
            nets[sh.user_id] -= sh.share_cents
            # payer is credited with exactly what the participants took on
            nets.setdefault(e.payer_id, 0)
            nets[e.payer_id] += sh.share_cents

    return {uid: from_cents(cents) for uid, cents in nets.items()}
