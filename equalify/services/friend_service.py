# equalify/services/friend_service.py
import logging
from typing import List
from sqlmodel import Session, select
from equalify.errors import InvalidStateTransition, NotFound, ValidationError
from equalify.models.user import User
from equalify.schemas import FriendBalance
from equalify.services.balance_service import ensure_friendship, friend_balance, get_friendship, list_friend_balances

logger = logging.getLogger(__name__)


def add_friend(session: Session, user_id: int, email: str) -> FriendBalance:
    email = (email or "").strip().lower()
    if not email:
        raise ValidationError("Please provide an email address")
    friend = session.exec(select(User).where(User.email == email)).first()
    if not friend:
        raise NotFound("No user with that email", email=email)
    if friend.id == user_id:
        raise ValidationError("You cannot add yourself as a friend")
    if get_friendship(session, user_id, friend.id):
        raise ValidationError("Friend already added", friend_id=friend.id)
    friendship = ensure_friendship(session, user_id, friend.id)
    session.commit()
    session.refresh(friendship)
    logger.info("user %s added friend %s", user_id, friend.id)
    return friend_balance(friendship, user_id, friend)


def get_friend(session: Session, user_id: int, friend_id: int) -> FriendBalance:
    friendship = get_friendship(session, user_id, friend_id)
    if not friendship:
        raise NotFound("Friend not found", friend_id=friend_id)
    return friend_balance(friendship, user_id, session.get(User, friend_id))


def friends_owing_me(session: Session, user_id: int) -> List[FriendBalance]:
    return [b for b in list_friend_balances(session, user_id) if b.is_owed > 0]


def friends_i_owe(session: Session, user_id: int) -> List[FriendBalance]:
    return [b for b in list_friend_balances(session, user_id) if b.owes > 0]


def remove_friend(session: Session, user_id: int, friend_id: int) -> None:
    """Drop a friendship. Only allowed once nothing is owed either way."""
    friendship = get_friendship(session, user_id, friend_id)
    if not friendship:
        raise NotFound("Friend not found", friend_id=friend_id)
    if friendship.low_owes_high_cents or friendship.high_owes_low_cents:
        raise InvalidStateTransition("Settle up before removing this friend", friend_id=friend_id)
    session.delete(friendship)
    session.commit()
    logger.info("user %s removed friend %s", user_id, friend_id)
