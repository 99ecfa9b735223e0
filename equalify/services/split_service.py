# equalify/services/split_service.py
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple
from equalify.errors import (
    DuplicateParticipant, EmptyParticipants, InvalidAmount, SplitMismatch, ValidationError,
)
from equalify.money import MAX_AMOUNT, ZERO, amounts_close, from_cents, require_amount, to_cents, to_money

EQUAL = "equal"
EXPLICIT = "explicit"
SPLIT_MODES = (EQUAL, EXPLICIT)


def compute_split(
    amount: Decimal,
    participants: Sequence[Tuple[int, Optional[Decimal]]],
    mode: str,
) -> List[Tuple[int, Decimal]]:
    """Turn an expense amount and its participants into per-user shares.

    ``participants`` is a sequence of ``(user_id, share)`` pairs in listed
    order. In ``equal`` mode the given shares are ignored; in ``explicit``
    mode every participant needs one and the shares must add up to the
    amount within one cent.
    """
    if mode not in SPLIT_MODES:
        raise ValidationError(f"Unknown split mode {mode!r}")
    amount = require_amount(amount, "Expense amount")
    if not participants:
        raise EmptyParticipants("At least one participant is required")

    seen = set()
    for user_id, _ in participants:
        if user_id in seen:
            raise DuplicateParticipant(f"User {user_id} is listed more than once", user_id=user_id)
        seen.add(user_id)

    if mode == EQUAL:
        return _equal_shares(amount, [user_id for user_id, _ in participants])
    return _explicit_shares(amount, participants)


def _equal_shares(amount: Decimal, user_ids: List[int]) -> List[Tuple[int, Decimal]]:
    # leftover cents go one each to the first participants in listed order
    base, remainder = divmod(to_cents(amount), len(user_ids))
    return [
        (user_id, from_cents(base + 1 if i < remainder else base))
        for i, user_id in enumerate(user_ids)
    ]


def _explicit_shares(
    amount: Decimal, participants: Sequence[Tuple[int, Optional[Decimal]]]
) -> List[Tuple[int, Decimal]]:
    shares: List[Tuple[int, Decimal]] = []
    for user_id, share in participants:
        if share is None:
            raise ValidationError(f"Participant {user_id} has no share", user_id=user_id)
        share = to_money(share)
        if share < ZERO:
            raise InvalidAmount(f"Share of participant {user_id} is negative", user_id=user_id)
        if share > MAX_AMOUNT:
            raise InvalidAmount(f"Share of participant {user_id} exceeds the maximum of {MAX_AMOUNT}", user_id=user_id)
        shares.append((user_id, share))

    total = sum((share for _, share in shares), ZERO)
    if not amounts_close(total, amount):
        raise SplitMismatch(expected=amount, actual=total)
    return shares
