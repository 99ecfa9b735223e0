from decimal import Decimal

import pytest

from equalify.errors import (
    DuplicateParticipant, EmptyParticipants, InvalidAmount, SplitMismatch, ValidationError,
)
from equalify.services.split_service import compute_split


def test_equal_split_even():
    shares = compute_split(Decimal("100"), [(1, None), (2, None)], "equal")
    assert shares == [(1, Decimal("50.00")), (2, Decimal("50.00"))]


def test_equal_split_remainder_goes_to_first_participants():
    shares = compute_split(Decimal("100"), [(1, None), (2, None), (3, None)], "equal")
    assert [s for _, s in shares] == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]
    assert sum(s for _, s in shares) == Decimal("100")


@pytest.mark.parametrize("amount,count", [
    ("0.01", 3), ("0.05", 4), ("10", 7), ("99.99", 6), ("1000.01", 9), ("123.45", 1),
])
def test_equal_split_sums_exactly(amount, count):
    shares = compute_split(Decimal(amount), [(i, None) for i in range(count)], "equal")
    assert sum(s for _, s in shares) == Decimal(amount)
    values = [s for _, s in shares]
    assert max(values) - min(values) <= Decimal("0.01")


def test_equal_split_ignores_given_shares():
    shares = compute_split(Decimal("10"), [(1, Decimal("9")), (2, Decimal("1"))], "equal")
    assert shares == [(1, Decimal("5.00")), (2, Decimal("5.00"))]


def test_explicit_split_keeps_shares():
    shares = compute_split(Decimal("100"), [(1, Decimal("70")), (2, Decimal("30"))], "explicit")
    assert shares == [(1, Decimal("70.00")), (2, Decimal("30.00"))]


def test_explicit_split_within_tolerance():
    shares = compute_split(
        Decimal("100"), [(1, Decimal("33.33")), (2, Decimal("33.33")), (3, Decimal("33.33"))], "explicit"
    )
    assert len(shares) == 3


def test_explicit_split_mismatch():
    with pytest.raises(SplitMismatch) as exc:
        compute_split(Decimal("100"), [(1, Decimal("50")), (2, Decimal("49.98"))], "explicit")
    assert exc.value.expected == Decimal("100.00")
    assert exc.value.actual == Decimal("99.98")


def test_explicit_split_requires_every_share():
    with pytest.raises(ValidationError):
        compute_split(Decimal("100"), [(1, Decimal("100")), (2, None)], "explicit")


def test_explicit_split_rejects_negative_share():
    with pytest.raises(InvalidAmount):
        compute_split(Decimal("100"), [(1, Decimal("110")), (2, Decimal("-10"))], "explicit")


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), Decimal("0.001")])
def test_rejects_non_positive_amount(amount):
    with pytest.raises(InvalidAmount):
        compute_split(amount, [(1, None)], "equal")


@pytest.mark.parametrize("amount", ["1000000000.01", "1e17", "1e40", "NaN", "Infinity"])
def test_rejects_unusable_amount(amount):
    with pytest.raises(InvalidAmount):
        compute_split(Decimal(amount), [(1, None)], "equal")


def test_largest_amount_is_accepted():
    shares = compute_split(Decimal("1000000000"), [(1, None), (2, None)], "equal")
    assert [s for _, s in shares] == [Decimal("500000000.00"), Decimal("500000000.00")]


@pytest.mark.parametrize("share", [Decimal("1000000000.01"), Decimal("1e40")])
def test_explicit_split_rejects_oversized_share(share):
    with pytest.raises(InvalidAmount):
        compute_split(Decimal("100"), [(1, share), (2, Decimal("100") - share)], "explicit")


def test_rejects_empty_participants():
    with pytest.raises(EmptyParticipants):
        compute_split(Decimal("10"), [], "equal")


def test_rejects_duplicate_participant():
    with pytest.raises(DuplicateParticipant):
        compute_split(Decimal("10"), [(1, None), (2, None), (1, None)], "equal")


def test_rejects_unknown_mode():
    with pytest.raises(ValidationError):
        compute_split(Decimal("10"), [(1, None)], "percentage")


def test_error_kinds():
    assert issubclass(DuplicateParticipant, ValidationError)
    assert SplitMismatch(Decimal("1"), Decimal("2")).kind == "SplitMismatch"
    assert InvalidAmount("x").kind == "ValidationError"
