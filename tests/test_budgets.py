from datetime import datetime
from decimal import Decimal

import pytest
from sqlmodel import select

from equalify.errors import Forbidden, InvalidAmount, NotFound
from equalify.models.budget import BudgetEntry
from equalify.schemas import BudgetCategoryCreate, BudgetCategoryUpdate, BudgetSpendCreate
from equalify.services import budget_service


def new_category(session, user, allocated="200", name="Groceries"):
    return budget_service.create_category(session, user.id, BudgetCategoryCreate(name=name, allocated=Decimal(allocated)))


def spend(session, user, category_id, amount, date=None):
    data = BudgetSpendCreate(category_id=category_id, amount=Decimal(amount), date=date)
    return budget_service.record_spend(session, user.id, data)


def test_new_category_has_nothing_spent(session, alice):
    read = budget_service.category_read(new_category(session, alice))
    assert read.allocated == Decimal("200.00")
    assert read.spent == Decimal("0.00")
    assert read.remaining == Decimal("200.00")


def test_spend_moves_spent_and_remaining(session, alice):
    category_id = new_category(session, alice).id
    spend(session, alice, category_id, "50.25")
    entry, category = spend(session, alice, category_id, "170")

    assert entry.amount_cents == 17000
    read = budget_service.category_read(category)
    assert read.spent == Decimal("220.25")
    assert read.remaining == Decimal("-20.25")


def test_update_keeps_spent(session, alice):
    category_id = new_category(session, alice).id
    spend(session, alice, category_id, "80")
    category = budget_service.update_category(
        session, alice.id, category_id, BudgetCategoryUpdate(name="Food", allocated=Decimal("100"))
    )
    read = budget_service.category_read(category)
    assert read.name == "Food"
    assert read.remaining == Decimal("20.00")


def test_categories_are_private(session, alice, bob):
    category_id = new_category(session, alice).id
    with pytest.raises(Forbidden):
        spend(session, bob, category_id, "10")
    with pytest.raises(Forbidden):
        budget_service.delete_category(session, bob.id, category_id)
    assert budget_service.list_categories(session, bob.id) == []
    with pytest.raises(NotFound):
        spend(session, alice, 999, "10")


@pytest.mark.parametrize("amount", ["0", "-5", "1000000000.01", "1e40"])
def test_bad_amounts_are_rejected(session, alice, amount):
    with pytest.raises(InvalidAmount):
        new_category(session, alice, allocated=amount)
    category_id = new_category(session, alice).id
    with pytest.raises(InvalidAmount):
        spend(session, alice, category_id, amount)
    assert session.exec(select(BudgetEntry)).all() == []


def test_delete_removes_entries(session, alice):
    category_id = new_category(session, alice).id
    spend(session, alice, category_id, "10")
    budget_service.delete_category(session, alice.id, category_id)
    assert session.exec(select(BudgetEntry)).all() == []
    assert budget_service.list_categories(session, alice.id) == []


def test_monthly_summary(session, alice, bob):
    category_id = new_category(session, alice).id
    spend(session, alice, category_id, "10", date=datetime(2024, 3, 5))
    spend(session, alice, category_id, "5.50", date=datetime(2024, 3, 28))
    spend(session, alice, category_id, "20", date=datetime(2024, 1, 2))
    spend(session, alice, category_id, "99", date=datetime(2023, 12, 31))

    summary = budget_service.monthly_summary(session, alice.id, 2024)
    assert [(m.month, m.amount) for m in summary] == [("Jan", Decimal("20.00")), ("Mar", Decimal("15.50"))]
    assert budget_service.monthly_summary(session, bob.id, 2024) == []


def test_budgets_over_http(client, auth, alice, bob):
    resp = client.post("/budgets", json={"name": "Travel", "allocated": "300", "color": "#0af"}, headers=auth(alice))
    assert resp.status_code == 201
    category_id = resp.json()["id"]

    resp = client.post("/budgets/expense", json={"category_id": category_id, "amount": "120", "date": "2024-05-02T10:00:00"},
                       headers=auth(alice))
    assert resp.status_code == 201
    body = resp.json()
    assert Decimal(str(body["entry"]["amount"])) == Decimal("120")
    assert Decimal(str(body["category"]["remaining"])) == Decimal("180")

    resp = client.get("/budgets/monthly-summary", params={"year": 2024}, headers=auth(alice))
    assert [(m["month"], Decimal(str(m["amount"]))) for m in resp.json()] == [("May", Decimal("120"))]

    resp = client.put(f"/budgets/{category_id}", json={"allocated": "100"}, headers=auth(alice))
    assert resp.status_code == 200
    assert Decimal(str(resp.json()["remaining"])) == Decimal("-20")

    assert client.put(f"/budgets/{category_id}", json={"name": "Mine"}, headers=auth(bob)).status_code == 403
    resp = client.post("/budgets/expense", json={"category_id": category_id, "amount": "1e40"}, headers=auth(alice))
    assert resp.status_code == 400
    assert resp.json()["error"] == "ValidationError"

    assert client.delete(f"/budgets/{category_id}", headers=auth(alice)).status_code == 200
    assert client.get("/budgets", headers=auth(alice)).json() == []
