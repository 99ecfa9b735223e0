# equalify/services/settlement_service.py
from decimal import Decimal
from sqlmodel import Session
from equalify.errors import LedgerError
from equalify.models.user import User
from equalify.money import require_amount, to_cents
from equalify.schemas import FriendBalance
from equalify.services.balance_service import apply_settlement, friend_balance


def settle(session: Session, owner_id: int, counterparty_id: int, amount: Decimal, direction: str) -> FriendBalance:
    """Record a repayment between two friends and return the owner's view.

    The whole settlement is rejected if it would pay down more than is
    recorded; nothing is clamped.
    """
    amount = require_amount(amount, "Settlement amount")
    try:
        friendship = apply_settlement(session, owner_id, counterparty_id, to_cents(amount), direction)
        session.commit()
    except LedgerError:
        session.rollback()
        raise
    session.refresh(friendship)
    return friend_balance(friendship, owner_id, session.get(User, counterparty_id))
