"""Integration tests for purchases, round-ups and transaction queries"""

import pytest
from fastapi.testclient import TestClient
from conftest import auth_headers, checking_of, savings_of
from cayden_gateway.infrastructure.database.models import LedgerTransaction
from cayden_gateway.services.accounts import deposit, ensure_savings_account
from cayden_gateway.utils.date_utils import utc_today


@pytest.fixture
def funded_checking(db, user_id) -> str:
    """Checking account with $100 and round-up switched on"""
    account = checking_of(db, user_id)
    account.round_up_enabled = True
    db.commit()
    deposit(db, user_id, account.id, 10000)
    return account.id


def purchase(client, headers, account_id, amount, merchant="Corner Cafe", category="dining"):
    return client.post(
        "/v1/transactions/simulate",
        json={"accountId": account_id, "amount": amount, "merchantName": merchant, "spendingCategory": category},
        headers=headers,
    )


def test_purchase_rounds_up_into_savings(client: TestClient, db, user_id, headers, funded_checking):
    ensure_savings_account(db, user_id)
    db.commit()

    response = purchase(client, headers, funded_checking, 12.5)

    assert response.status_code == 201
    data = response.json()
    assert data["transaction"]["amount"] == 12.5
    assert data["transaction"]["merchantName"] == "Corner Cafe"
    assert data["transaction"]["spendingCategory"] == "dining"
    assert data["roundUp"]["amount"] == 0.5
    assert data["roundUp"]["description"] == "Round-up from Corner Cafe"

    db.expire_all()
    assert checking_of(db, user_id).balance_cents == 10000 - 1250 - 50
    assert savings_of(db, user_id).balance_cents == 50

    legs = db.query(LedgerTransaction).filter(LedgerTransaction.category == "round_up").all()
    assert len(legs) == 2
    assert {leg.reference_id for leg in legs} == {data["transaction"]["id"]}
    assert {leg.type for leg in legs} == {"debit", "credit"}


def test_whole_dollar_purchase_has_no_round_up(client: TestClient, db, user_id, headers, funded_checking):
    ensure_savings_account(db, user_id)
    db.commit()

    response = purchase(client, headers, funded_checking, 12)

    assert response.json()["roundUp"] is None


def test_round_up_skipped_without_savings(client: TestClient, db, user_id, headers, funded_checking):
    response = purchase(client, headers, funded_checking, 12.5)

    assert response.status_code == 201
    assert response.json()["roundUp"] is None
    db.expire_all()
    assert checking_of(db, user_id).balance_cents == 10000 - 1250


def test_round_up_failure_keeps_purchase(client: TestClient, db, user_id, headers, funded_checking):
    savings = ensure_savings_account(db, user_id)
    savings.status = "frozen"
    db.commit()

    response = purchase(client, headers, funded_checking, 12.5)

    assert response.status_code == 201
    assert response.json()["roundUp"] is None
    db.expire_all()
    assert checking_of(db, user_id).balance_cents == 10000 - 1250
    assert savings_of(db, user_id).balance_cents == 0
    assert db.query(LedgerTransaction).filter(LedgerTransaction.category == "round_up").count() == 0


def test_round_up_disabled(client: TestClient, db, user_id, headers, funded_checking):
    ensure_savings_account(db, user_id)
    checking_of(db, user_id).round_up_enabled = False
    db.commit()

    assert purchase(client, headers, funded_checking, 12.5).json()["roundUp"] is None


def test_purchase_with_insufficient_funds(client: TestClient, db, user_id, headers, funded_checking):
    response = purchase(client, headers, funded_checking, 100.01)

    assert response.status_code == 400
    assert response.json()["message"] == "Insufficient funds"
    db.expire_all()
    assert checking_of(db, user_id).balance_cents == 10000


def test_list_transactions_with_filters_and_pagination(client: TestClient, headers, funded_checking):
    for amount in (1, 2, 3):
        purchase(client, headers, funded_checking, amount, category="groceries")
    purchase(client, headers, funded_checking, 4, category="transport")

    page = client.get("/v1/transactions", params={"limit": 2, "page": 1}, headers=headers).json()
    assert page["pagination"] == {"page": 1, "limit": 2, "total": 5, "totalPages": 3}
    assert len(page["transactions"]) == 2

    groceries = client.get("/v1/transactions", params={"spendingCategory": "groceries"}, headers=headers).json()
    assert groceries["pagination"]["total"] == 3

    deposits = client.get("/v1/transactions", params={"category": "deposit"}, headers=headers).json()
    assert [t["amount"] for t in deposits["transactions"]] == [100.0]


def test_get_transaction_scoped_to_owner(client: TestClient, headers, funded_checking, make_user):
    tx_id = purchase(client, headers, funded_checking, 5).json()["transaction"]["id"]

    assert client.get(f"/v1/transactions/{tx_id}", headers=headers).status_code == 200
    response = client.get(f"/v1/transactions/{tx_id}", headers=auth_headers(make_user()))
    assert response.status_code == 404
    assert response.json()["message"] == "Transaction not found"


def test_spending_summary(client: TestClient, headers, funded_checking):
    purchase(client, headers, funded_checking, 30, category="groceries")
    purchase(client, headers, funded_checking, 10, category="dining")

    month = utc_today().strftime("%Y-%m")
    data = client.get("/v1/transactions/summary", params={"month": month}, headers=headers).json()

    assert data["month"] == month
    assert data["totalSpent"] == 40.0
    by_category = {c["category"]: c for c in data["categories"]}
    assert by_category["groceries"]["total"] == 30.0
    assert by_category["groceries"]["percentage"] == 75.0
    assert by_category["dining"]["count"] == 1


def test_spending_summary_rejects_bad_month(client: TestClient, headers):
    response = client.get("/v1/transactions/summary", params={"month": "2026-13"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Month must be in YYYY-MM format"
