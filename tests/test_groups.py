from decimal import Decimal

import pytest

from equalify.errors import Forbidden, InvalidStateTransition, NotFound, ValidationError
from equalify.schemas import ExpenseCreate, GroupCreate, GroupUpdate, MemberAdd, ParticipantIn
from equalify.services import balance_service, expense_service, group_service


def roles(session, group_id):
    group = group_service.get_group(session, group_id)
    return {m.user_id: m.role for m in group_service.group_read(session, group).members}


@pytest.fixture
def group(session, alice, bob):
    return group_service.create_group(session, alice.id, GroupCreate(
        name="  Flatmates ", members=[MemberAdd(user_id=bob.id)]
    ))


def test_creator_is_admin(session, group, alice, bob):
    assert group.name == "Flatmates"
    assert roles(session, group.id) == {alice.id: "admin", bob.id: "member"}


def test_creator_listed_as_member_stays_admin(session, alice):
    g = group_service.create_group(session, alice.id, GroupCreate(
        name="Solo", members=[MemberAdd(user_id=alice.id, role="member")]
    ))
    assert roles(session, g.id) == {alice.id: "admin"}


def test_create_with_unknown_member(session, alice):
    with pytest.raises(NotFound):
        group_service.create_group(session, alice.id, GroupCreate(name="x", members=[MemberAdd(user_id=404)]))


def test_sole_admin_cannot_leave(session, group, alice, bob):
    with pytest.raises(InvalidStateTransition):
        group_service.remove_member(session, alice.id, group.id, alice.id)
    assert roles(session, group.id) == {alice.id: "admin", bob.id: "member"}


def test_sole_admin_cannot_be_demoted(session, group, alice):
    with pytest.raises(InvalidStateTransition):
        group_service.set_member_role(session, alice.id, group.id, alice.id, "member")


def test_admin_can_leave_once_another_admin_exists(session, group, alice, bob):
    group_service.set_member_role(session, alice.id, group.id, bob.id, "admin")
    group_service.remove_member(session, alice.id, group.id, alice.id)
    assert roles(session, group.id) == {bob.id: "admin"}


def test_member_can_leave(session, group, alice, bob):
    group_service.remove_member(session, bob.id, group.id, bob.id)
    assert roles(session, group.id) == {alice.id: "admin"}


def test_member_cannot_remove_others(session, group, alice, bob, carol):
    group_service.add_member(session, alice.id, group.id, carol.id)
    with pytest.raises(Forbidden):
        group_service.remove_member(session, bob.id, group.id, carol.id)


def test_only_admin_adds_members(session, group, bob, carol):
    with pytest.raises(Forbidden):
        group_service.add_member(session, bob.id, group.id, carol.id)


def test_duplicate_member(session, group, alice, bob):
    with pytest.raises(ValidationError):
        group_service.add_member(session, alice.id, group.id, bob.id)


def test_update_group(session, group, alice, bob):
    with pytest.raises(Forbidden):
        group_service.update_group(session, bob.id, group.id, GroupUpdate(name="Mine"))
    g = group_service.update_group(session, alice.id, group.id, GroupUpdate(description="rent and bills"))
    assert g.name == "Flatmates"
    assert g.description == "rent and bills"


def test_expense_requires_membership(session, group, carol):
    data = ExpenseCreate(amount=Decimal("10"), payer_id=carol.id, group_id=group.id,
                         participants=[ParticipantIn(user_id=carol.id)])
    with pytest.raises(Forbidden):
        expense_service.create_expense(session, carol.id, data)


def test_admin_deletes_members_expense(session, group, alice, bob, carol):
    group_service.add_member(session, alice.id, group.id, carol.id)
    data = ExpenseCreate(amount=Decimal("20"), payer_id=bob.id, group_id=group.id,
                         participants=[ParticipantIn(user_id=bob.id), ParticipantIn(user_id=carol.id)])
    expense_id = expense_service.create_expense(session, bob.id, data).id

    with pytest.raises(Forbidden):
        expense_service.delete_expense(session, carol.id, expense_id)
    expense_service.delete_expense(session, alice.id, expense_id)
    with pytest.raises(NotFound):
        expense_service.get_expense(session, expense_id)


def test_delete_group_reverses_expenses(session, group, alice, bob):
    data = ExpenseCreate(amount=Decimal("20"), payer_id=alice.id, group_id=group.id,
                         participants=[ParticipantIn(user_id=alice.id), ParticipantIn(user_id=bob.id)])
    expense_service.create_expense(session, bob.id, data)
    group_id = group.id
    with pytest.raises(Forbidden):
        group_service.delete_group(session, bob.id, group_id)

    group_service.delete_group(session, alice.id, group_id)
    with pytest.raises(NotFound):
        group_service.get_group(session, group_id)
    friendship = balance_service.get_friendship(session, alice.id, bob.id)
    assert balance_service.friend_balance(friendship, bob.id).owes == Decimal("0.00")
    assert group_service.list_groups(session, bob.id) == []
