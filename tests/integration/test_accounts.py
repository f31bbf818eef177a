"""Integration tests for deposits, transfers and reconciliation"""

import pytest
from fastapi.testclient import TestClient
from conftest import auth_headers, checking_of
from cayden_gateway.infrastructure.database.models import LedgerTransaction


@pytest.fixture
def checking_id(db, user_id) -> str:
    return checking_of(db, user_id).id


def deposit(client, headers, account_id, amount, **extra_headers):
    return client.post(
        f"/v1/accounts/{account_id}/deposit",
        json={"amount": amount},
        headers={**headers, **extra_headers},
    )


def test_deposit_credits_balance_and_logs_snapshot(client: TestClient, headers, checking_id):
    deposit(client, headers, checking_id, 50)

    response = deposit(client, headers, checking_id, 100)

    assert response.status_code == 200
    data = response.json()
    assert data["newBalance"] == 150.0
    assert data["transaction"]["type"] == "credit"
    assert data["transaction"]["category"] == "deposit"
    assert data["transaction"]["amount"] == 100.0
    assert data["transaction"]["balanceAfter"] == 150.0
    assert data["transaction"]["description"] == "Direct Deposit"


def test_deposit_rounds_half_up_to_the_cent(client: TestClient, headers, checking_id):
    response = deposit(client, headers, checking_id, "10.005")
    assert response.json()["newBalance"] == 10.01


def test_deposit_into_someone_elses_account_is_not_found(client: TestClient, db, make_user):
    owner = make_user()
    intruder = make_user()

    response = deposit(client, auth_headers(intruder), checking_of(db, owner).id, 100)

    assert response.status_code == 404
    assert response.json()["message"] == "Account not found"


def test_deposit_with_same_idempotency_key_posts_once(client: TestClient, db, headers, checking_id):
    first = deposit(client, headers, checking_id, 25, **{"Idempotency-Key": "dep-1"})
    second = deposit(client, headers, checking_id, 25, **{"Idempotency-Key": "dep-1"})

    assert first.json()["transaction"]["id"] == second.json()["transaction"]["id"]
    assert second.json()["newBalance"] == 25.0
    assert db.query(LedgerTransaction).filter(LedgerTransaction.account_id == checking_id).count() == 1


def test_p2p_transfer_conserves_money(client: TestClient, db, make_user):
    sender = make_user()
    receiver = make_user()
    sender_account = checking_of(db, sender).id
    receiver_account = checking_of(db, receiver).id
    deposit(client, auth_headers(sender), sender_account, 200)

    response = client.post(
        "/v1/accounts/transfer",
        json={"fromAccountId": sender_account, "toAccountId": receiver_account, "amount": 75.5},
        headers=auth_headers(sender),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["fromBalance"] == 124.5
    assert data["toBalance"] == 75.5

    legs = db.query(LedgerTransaction).filter(LedgerTransaction.reference_id == data["referenceId"]).all()
    assert len(legs) == 2
    assert {leg.type for leg in legs} == {"debit", "credit"}
    assert {leg.amount_cents for leg in legs} == {7550}
    assert {leg.account_id for leg in legs} == {sender_account, receiver_account}


def test_transfer_with_insufficient_funds_changes_nothing(client: TestClient, db, user_id, headers, make_user):
    source = checking_of(db, user_id).id
    destination = checking_of(db, make_user()).id
    deposit(client, headers, source, 10)

    response = client.post(
        "/v1/accounts/transfer",
        json={"fromAccountId": source, "toAccountId": destination, "amount": 10.01},
        headers=headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Insufficient funds"
    db.expire_all()
    assert checking_of(db, user_id).balance_cents == 1000
    assert db.query(LedgerTransaction).filter(LedgerTransaction.category == "transfer").count() == 0


def test_transfer_to_missing_destination_rolls_back(client: TestClient, db, user_id, headers):
    source = checking_of(db, user_id).id
    deposit(client, headers, source, 10)

    response = client.post(
        "/v1/accounts/transfer",
        json={"fromAccountId": source, "toAccountId": "no-such-account", "amount": 5},
        headers=headers,
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Destination account not found"
    db.expire_all()
    assert checking_of(db, user_id).balance_cents == 1000


def test_transfer_from_unowned_account_is_not_found(client: TestClient, db, make_user):
    victim = make_user()
    thief = make_user()

    response = client.post(
        "/v1/accounts/transfer",
        json={"fromAccountId": checking_of(db, victim).id, "toAccountId": checking_of(db, thief).id, "amount": 1},
        headers=auth_headers(thief),
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Source account not found"


def test_transfer_to_same_account_rejected(client: TestClient, headers, checking_id):
    response = client.post(
        "/v1/accounts/transfer",
        json={"fromAccountId": checking_id, "toAccountId": checking_id, "amount": 1},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Cannot transfer to the same account"


def test_transfer_replay_with_idempotency_key(client: TestClient, db, user_id, headers, make_user):
    source = checking_of(db, user_id).id
    destination = checking_of(db, make_user()).id
    deposit(client, headers, source, 100)
    body = {"fromAccountId": source, "toAccountId": destination, "amount": 30}
    retry_headers = {**headers, "Idempotency-Key": "xfer-1"}

    first = client.post("/v1/accounts/transfer", json=body, headers=retry_headers)
    second = client.post("/v1/accounts/transfer", json=body, headers=retry_headers)

    assert first.json() == second.json()
    assert second.json()["fromBalance"] == 70.0
    db.expire_all()
    assert checking_of(db, user_id).balance_cents == 7000


def test_transfer_reusing_deposit_idempotency_key_is_rejected(client: TestClient, db, user_id, headers, make_user):
    source = checking_of(db, user_id).id
    destination = checking_of(db, make_user()).id
    assert deposit(client, headers, source, 100, **{"Idempotency-Key": "req-1"}).status_code == 200

    response = client.post(
        "/v1/accounts/transfer",
        json={"fromAccountId": source, "toAccountId": destination, "amount": 30},
        headers={**headers, "Idempotency-Key": "req-1"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Idempotency key already used for a different operation"
    db.expire_all()
    assert checking_of(db, user_id).balance_cents == 10000
    assert db.query(LedgerTransaction).filter(LedgerTransaction.account_id == destination).count() == 0


def test_deposit_reusing_transfer_idempotency_key_is_rejected(client: TestClient, db, user_id, headers, make_user):
    source = checking_of(db, user_id).id
    destination = checking_of(db, make_user()).id
    deposit(client, headers, source, 100)
    client.post(
        "/v1/accounts/transfer",
        json={"fromAccountId": source, "toAccountId": destination, "amount": 30},
        headers={**headers, "Idempotency-Key": "req-2"},
    )

    response = deposit(client, headers, source, 30, **{"Idempotency-Key": "req-2"})

    assert response.status_code == 400
    assert response.json()["message"] == "Idempotency key already used for a different operation"
    db.expire_all()
    assert checking_of(db, user_id).balance_cents == 7000


def test_savings_account_is_one_per_user(client: TestClient, headers):
    first = client.post("/v1/accounts/savings", headers=headers)
    assert first.status_code == 201
    assert first.json()["accountType"] == "savings"

    second = client.post("/v1/accounts/savings", headers=headers)
    assert second.status_code == 400
    assert second.json()["message"] == "You already have a savings account"


def test_round_up_toggle(client: TestClient, headers, checking_id):
    assert client.patch(f"/v1/accounts/{checking_id}/round-up", headers=headers).json() == {"roundUpEnabled": True}
    assert client.patch(f"/v1/accounts/{checking_id}/round-up", headers=headers).json() == {"roundUpEnabled": False}


def test_reconciliation_matches_replayed_log(client: TestClient, db, user_id, headers, make_user):
    source = checking_of(db, user_id).id
    deposit(client, headers, source, 100)
    deposit(client, headers, source, "0.99")
    client.post(
        "/v1/accounts/transfer",
        json={"fromAccountId": source, "toAccountId": checking_of(db, make_user()).id, "amount": 40},
        headers=headers,
    )

    response = client.get(f"/v1/accounts/{source}/reconciliation", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["consistent"] is True
    assert data["balance"] == 60.99
    assert data["replayedBalance"] == 60.99
    assert data["entries"] == 3
