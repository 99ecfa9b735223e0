# equalify/services/group_service.py
import logging
from typing import List, Optional
from sqlalchemy import delete, func, update
from sqlalchemy.orm import aliased
from sqlmodel import Session, select
from equalify.errors import Forbidden, InvalidStateTransition, LedgerError, NotFound, ValidationError
from equalify.models.expense import Expense, ExpenseShare
from equalify.models.group import Group, GroupMember, ROLE_ADMIN, ROLE_MEMBER
from equalify.models.user import User
from equalify.money import from_cents
from equalify.schemas import GroupCreate, GroupRead, GroupUpdate, MemberBalance, MemberRead
from equalify.services.balance_service import compute_group_balances, reverse_expense

logger = logging.getLogger(__name__)


def get_group(session: Session, group_id: int) -> Group:
    group = session.get(Group, group_id, populate_existing=True)
    if not group:
        raise NotFound("Group not found", group_id=group_id)
    return group


def get_membership(session: Session, group_id: int, user_id: int) -> Optional[GroupMember]:
    return session.exec(
        select(GroupMember).where(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
    ).first()


def require_member(session: Session, group_id: int, user_id: int) -> GroupMember:
    membership = get_membership(session, group_id, user_id)
    if not membership:
        raise Forbidden("Not a member of this group", group_id=group_id)
    return membership


def require_admin(session: Session, group_id: int, user_id: int) -> GroupMember:
    membership = get_membership(session, group_id, user_id)
    if not membership or membership.role != ROLE_ADMIN:
        raise Forbidden("Only a group admin can do this", group_id=group_id)
    return membership


def is_admin(session: Session, group_id: int, user_id: int) -> bool:
    membership = get_membership(session, group_id, user_id)
    return membership is not None and membership.role == ROLE_ADMIN


def _other_admins(group_id: int, user_id: int):
    # aliased so the count is not correlated with the row being changed
    other = aliased(GroupMember)
    return (
        select(func.count(other.id))
        .where(other.group_id == group_id, other.role == ROLE_ADMIN, other.user_id != user_id)
        .scalar_subquery()
    )


def _require_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFound("User not found", user_id=user_id)
    return user


def group_read(session: Session, group: Group) -> GroupRead:
    rows = session.exec(
        select(GroupMember, User).join(User, User.id == GroupMember.user_id)
        .where(GroupMember.group_id == group.id).order_by(GroupMember.id)
    ).all()
    members = [MemberRead(user_id=u.id, name=u.name, role=m.role) for m, u in rows]
    return GroupRead(
        id=group.id, name=group.name, description=group.description,
        total_expenses=from_cents(group.total_expenses_cents),
        created_at=group.created_at, members=members,
    )


def create_group(session: Session, user_id: int, data: GroupCreate) -> Group:
    group = Group(name=data.name.strip(), description=data.description.strip())
    if not group.name:
        raise ValidationError("Group name is required")
    for m in data.members:
        _require_user(session, m.user_id)
    session.add(group)
    session.flush()
    # the creator is always an admin, so a group never starts without one
    session.add(GroupMember(group_id=group.id, user_id=user_id, role=ROLE_ADMIN))
    added = {user_id}
    for m in data.members:
        if m.user_id in added:
            continue
        session.add(GroupMember(group_id=group.id, user_id=m.user_id, role=m.role))
        added.add(m.user_id)
    session.commit()
    session.refresh(group)
    logger.info("user %s created group %s", user_id, group.id)
    return group


def list_groups(session: Session, user_id: int) -> List[Group]:
    return session.exec(
        select(Group).join(GroupMember, Group.id == GroupMember.group_id)
        .where(GroupMember.user_id == user_id).order_by(Group.created_at.desc())
    ).all()


def update_group(session: Session, user_id: int, group_id: int, data: GroupUpdate) -> Group:
    group = get_group(session, group_id)
    require_admin(session, group_id, user_id)
    if data.name:
        group.name = data.name.strip() or group.name
    if data.description is not None:
        group.description = data.description.strip()
    session.add(group)
    session.commit()
    session.refresh(group)
    return group


def delete_group(session: Session, user_id: int, group_id: int) -> None:
    """Delete a group together with its expenses, undoing their balances."""
    get_group(session, group_id)
    require_admin(session, group_id, user_id)
    try:
        expenses = session.exec(select(Expense).where(Expense.group_id == group_id)).all()
        for e in expenses:
            shares = session.exec(select(ExpenseShare).where(ExpenseShare.expense_id == e.id)).all()
            reverse_expense(session, e, shares)
            for sh in shares:
                session.delete(sh)
            session.flush()
            session.delete(e)
        for m in session.exec(select(GroupMember).where(GroupMember.group_id == group_id)).all():
            session.delete(m)
        session.flush()
        session.delete(session.get(Group, group_id))
        session.commit()
    except LedgerError:
        session.rollback()
        raise
    logger.info("user %s deleted group %s", user_id, group_id)


def add_member(session: Session, actor_id: int, group_id: int, user_id: int, role: str = ROLE_MEMBER) -> Group:
    group = get_group(session, group_id)
    _require_user(session, user_id)
    require_admin(session, group_id, actor_id)
    if get_membership(session, group_id, user_id):
        raise ValidationError("User is already a member", user_id=user_id)
    session.add(GroupMember(group_id=group_id, user_id=user_id, role=role))
    session.commit()
    logger.info("user %s added user %s to group %s as %s", actor_id, user_id, group_id, role)
    return get_group(session, group.id)


def set_member_role(session: Session, actor_id: int, group_id: int, user_id: int, role: str) -> Group:
    get_group(session, group_id)
    require_admin(session, group_id, actor_id)
    membership = get_membership(session, group_id, user_id)
    if not membership:
        raise NotFound("User is not a member of this group", user_id=user_id)
    if membership.role == ROLE_ADMIN and role != ROLE_ADMIN:
        # the admin count and the demotion are one statement
        stmt = (
            update(GroupMember)
            .where(GroupMember.id == membership.id, _other_admins(group_id, user_id) > 0)
            .values(role=role)
        )
        if session.connection().execute(stmt).rowcount != 1:
            session.rollback()
            raise InvalidStateTransition("A group needs at least one admin", group_id=group_id)
    else:
        membership.role = role
        session.add(membership)
    session.commit()
    return get_group(session, group_id)


def remove_member(session: Session, actor_id: int, group_id: int, user_id: int) -> None:
    """Remove a member; admins may remove anyone, members only themselves."""
    get_group(session, group_id)
    if actor_id != user_id and not is_admin(session, group_id, actor_id):
        raise Forbidden("Only a group admin can remove other members", group_id=group_id)
    membership = get_membership(session, group_id, user_id)
    if not membership:
        raise NotFound("User is not a member of this group", user_id=user_id)
    if membership.role == ROLE_ADMIN:
        stmt = delete(GroupMember).where(GroupMember.id == membership.id, _other_admins(group_id, user_id) > 0)
        if session.connection().execute(stmt).rowcount != 1:
            session.rollback()
            raise InvalidStateTransition("Cannot remove the only admin of a group", group_id=group_id)
        session.expunge(membership)
    else:
        session.delete(membership)
    session.commit()
    logger.info("user %s removed user %s from group %s", actor_id, user_id, group_id)


def group_balances(session: Session, user_id: int, group_id: int) -> List[MemberBalance]:
    get_group(session, group_id)
    require_member(session, group_id, user_id)
    nets = compute_group_balances(session, group_id)
    balances = []
    for uid, net in nets.items():
        user = session.get(User, uid)
        balances.append(MemberBalance(user_id=uid, name=user.name if user else "", net=net))
    return balances
