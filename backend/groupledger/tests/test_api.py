"""
Tests for the HTTP API.
"""
from decimal import Decimal
from groupledger.tests.conftest import ALICE, BOB, CAROL, auth_headers


def create_group(client):
    response = client.post(
        "/api/groups",
        json={"name": "Trip", "currency": "eur", "display_name": "Alice"},
        headers=auth_headers(ALICE)
    )
    assert response.status_code == 201
    group_id = response.json()["id"]
    for user_id, name in ((BOB, "Bob"), (CAROL, "Carol")):
        response = client.post(
            f"/api/groups/{group_id}/members",
            json={"user_id": user_id, "display_name": name},
            headers=auth_headers(ALICE)
        )
        assert response.status_code == 201
    return group_id


def add_dinner(client, group_id):
    response = client.post(
        f"/api/groups/{group_id}/expenses",
        json={
            "description": "Dinner",
            "amount": "30.00",
            "splits": [
                {"member_id": ALICE, "amount": "15.00"},
                {"member_id": BOB, "amount": "15.00"},
            ]
        },
        headers=auth_headers(ALICE)
    )
    assert response.status_code == 201
    return response.json()


def balances(client, group_id, member_id=ALICE):
    response = client.get(f"/api/groups/{group_id}/balances", headers=auth_headers(member_id))
    assert response.status_code == 200
    return response.json()


def test_health(client):
    """Test health check."""
    assert client.get("/health").json() == {"status": "healthy"}


def test_group_setup(client):
    """Test group creation and member directory."""
    group_id = create_group(client)
    response = client.get(f"/api/groups/{group_id}", headers=auth_headers(BOB))
    assert response.status_code == 200
    data = response.json()
    assert data["currency"] == "EUR"
    assert data["admin_id"] == ALICE
    assert [m["display_name"] for m in data["members"]] == ["Alice", "Bob", "Carol"]

    response = client.get(f"/api/groups/{group_id}/members", headers=auth_headers(CAROL))
    assert [m["user_id"] for m in response.json()] == [ALICE, BOB, CAROL]


def test_duplicate_member_rejected(client):
    """Test adding the same member twice."""
    group_id = create_group(client)
    response = client.post(
        f"/api/groups/{group_id}/members",
        json={"user_id": BOB, "display_name": "Bob"},
        headers=auth_headers(ALICE)
    )
    assert response.status_code == 422
    assert response.json()["details"]["code"] == "validation_error"


def test_expense_and_balances(client):
    """Test an expense shows up in balances and suggested debts."""
    group_id = create_group(client)
    expense = add_dinner(client, group_id)
    assert expense["paid_by"] == ALICE
    assert expense["kind"] == "regular"
    assert expense["currency"] == "EUR"
    assert len(expense["splits"]) == 2

    data = balances(client, group_id)
    nets = {b["member_id"]: Decimal(b["net"]) for b in data["balances"]}
    assert nets == {ALICE: Decimal("15.00"), BOB: Decimal("-15.00"), CAROL: Decimal("0")}
    assert data["is_settled"] is False
    assert len(data["debts"]) == 1
    debt = data["debts"][0]
    assert (debt["from_member"], debt["to_member"]) == (BOB, ALICE)
    assert Decimal(debt["amount"]) == Decimal("15.00")


def test_unbalanced_expense_rejected(client):
    """Test splits that do not add up."""
    group_id = create_group(client)
    response = client.post(
        f"/api/groups/{group_id}/expenses",
        json={"description": "Dinner", "amount": "30.00", "splits": [{"member_id": BOB, "amount": "10.00"}]},
        headers=auth_headers(ALICE)
    )
    assert response.status_code == 422
    assert response.json()["details"]["code"] == "validation_error"
    assert client.get(f"/api/groups/{group_id}/expenses", headers=auth_headers(ALICE)).json() == []


def test_settlement_flow(client, notifier):
    """Test partial settlement, history, outstanding view and reversal."""
    group_id = create_group(client)
    dinner = add_dinner(client, group_id)

    response = client.post(
        f"/api/groups/{group_id}/settlements",
        json={"to_member": ALICE, "amount": "10.00"},
        headers=auth_headers(BOB)
    )
    assert response.status_code == 201
    result = response.json()
    assert result["from_member"] == BOB
    assert Decimal(result["amount"]) == Decimal("10.00")
    assert Decimal(result["remaining_owed"]) == Decimal("5.00")
    assert result["warnings"] == []
    assert notifier.events[0].to_member == ALICE

    nets = {b["member_id"]: Decimal(b["net"]) for b in balances(client, group_id)["balances"]}
    assert nets[BOB] == Decimal("-5.00")

    response = client.get(
        f"/api/groups/{group_id}/outstanding",
        params={"to_member": ALICE},
        headers=auth_headers(BOB)
    )
    assert response.status_code == 200
    outstanding = response.json()
    assert Decimal(outstanding["total_owed"]) == Decimal("5.00")
    assert outstanding["splits"][0]["expense_id"] == dinner["id"]
    assert outstanding["splits"][0]["state"] == "partially_paid"

    history = client.get(f"/api/groups/{group_id}/settlements", headers=auth_headers(ALICE)).json()
    assert len(history) == 1
    assert history[0]["id"] == result["settlement_expense_id"]
    assert history[0]["from_name"] == "Bob"

    expenses = client.get(f"/api/groups/{group_id}/expenses", headers=auth_headers(ALICE)).json()
    assert {e["kind"] for e in expenses} == {"regular", "settlement"}

    response = client.delete(
        f"/api/groups/{group_id}/settlements/{result['settlement_expense_id']}",
        headers=auth_headers(BOB)
    )
    assert response.status_code == 200
    nets = {b["member_id"]: Decimal(b["net"]) for b in balances(client, group_id)["balances"]}
    assert nets[BOB] == Decimal("-15.00")
    assert client.get(f"/api/groups/{group_id}/settlements", headers=auth_headers(ALICE)).json() == []


def test_settle_everything(client):
    """Test settling without an amount clears the debt."""
    group_id = create_group(client)
    add_dinner(client, group_id)

    response = client.post(
        f"/api/groups/{group_id}/settlements",
        json={"from_member": BOB, "to_member": ALICE},
        headers=auth_headers(ALICE)
    )
    assert response.status_code == 201
    assert Decimal(response.json()["amount"]) == Decimal("15.00")

    data = balances(client, group_id)
    assert data["is_settled"] is True
    assert data["debts"] == []


def test_overpayment_rejected(client):
    """Test overpaying reports the outstanding total."""
    group_id = create_group(client)
    add_dinner(client, group_id)
    client.post(
        f"/api/groups/{group_id}/settlements",
        json={"to_member": ALICE, "amount": "10.00"},
        headers=auth_headers(BOB)
    )

    response = client.post(
        f"/api/groups/{group_id}/settlements",
        json={"to_member": ALICE, "amount": "999999"},
        headers=auth_headers(BOB)
    )
    assert response.status_code == 422
    body = response.json()
    assert body["details"]["code"] == "overpayment"
    assert Decimal(body["details"]["total_owed"]) == Decimal("5.00")
    assert "5.00" in body["error"]


def test_no_debt_conflict(client):
    """Test settling when nothing is owed."""
    group_id = create_group(client)
    add_dinner(client, group_id)
    response = client.post(
        f"/api/groups/{group_id}/settlements",
        json={"to_member": ALICE},
        headers=auth_headers(CAROL)
    )
    assert response.status_code == 409
    assert response.json()["details"]["code"] == "no_debt"


def test_paid_expense_cannot_be_deleted(client):
    """Test deleting an expense with payments against it."""
    group_id = create_group(client)
    dinner = add_dinner(client, group_id)
    client.post(
        f"/api/groups/{group_id}/settlements",
        json={"to_member": ALICE, "amount": "5.00"},
        headers=auth_headers(BOB)
    )

    response = client.delete(f"/api/groups/{group_id}/expenses/{dinner['id']}", headers=auth_headers(ALICE))
    assert response.status_code == 422

    response = client.delete(f"/api/groups/{group_id}/expenses/999", headers=auth_headers(ALICE))
    assert response.status_code == 404


def test_delete_expense(client):
    """Test deleting an unpaid expense clears its balances."""
    group_id = create_group(client)
    dinner = add_dinner(client, group_id)
    response = client.delete(f"/api/groups/{group_id}/expenses/{dinner['id']}", headers=auth_headers(ALICE))
    assert response.status_code == 200
    assert balances(client, group_id)["is_settled"] is True


def test_member_removal(client):
    """Test members with open splits stay until settled."""
    group_id = create_group(client)
    add_dinner(client, group_id)

    response = client.delete(f"/api/groups/{group_id}/members/{BOB}", headers=auth_headers(ALICE))
    assert response.status_code == 422

    response = client.delete(f"/api/groups/{group_id}/members/{CAROL}", headers=auth_headers(ALICE))
    assert response.status_code == 200
    response = client.get(f"/api/groups/{group_id}", headers=auth_headers(CAROL))
    assert response.status_code == 403


def test_authentication_required(client):
    """Test requests without a valid token."""
    group_id = create_group(client)
    assert client.get(f"/api/groups/{group_id}/balances").status_code == 401

    response = client.get(
        f"/api/groups/{group_id}/balances",
        headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401


def test_group_access(client):
    """Test non-members and missing groups."""
    group_id = create_group(client)
    response = client.get(f"/api/groups/{group_id}/balances", headers=auth_headers(42))
    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied to this group"

    response = client.get("/api/groups/999/balances", headers=auth_headers(ALICE))
    assert response.status_code == 404


def test_update_group_admin_only(client):
    """Test only the admin can update group details."""
    group_id = create_group(client)
    response = client.patch(f"/api/groups/{group_id}", json={"name": "Road trip"}, headers=auth_headers(BOB))
    assert response.status_code == 403

    response = client.patch(f"/api/groups/{group_id}", json={"name": "Road trip"}, headers=auth_headers(ALICE))
    assert response.status_code == 200
    assert response.json()["name"] == "Road trip"
    assert response.json()["currency"] == "EUR"


def test_delete_group(client):
    """Test the admin can delete a group with its ledger."""
    group_id = create_group(client)
    add_dinner(client, group_id)

    assert client.delete(f"/api/groups/{group_id}", headers=auth_headers(BOB)).status_code == 403
    assert client.delete(f"/api/groups/{group_id}", headers=auth_headers(ALICE)).status_code == 200
    assert client.get(f"/api/groups/{group_id}", headers=auth_headers(ALICE)).status_code == 404
