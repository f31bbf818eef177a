"""Integration tests for app-level endpoints and authentication"""

from fastapi.testclient import TestClient
from conftest import PASSWORD
from cayden_gateway.infrastructure.security.tokens import create_access_token, create_pin_token


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient, headers):
    """Ledger metrics show up once money has moved"""
    accounts = client.get("/v1/accounts", headers=headers).json()
    client.post(f"/v1/accounts/{accounts[0]['id']}/deposit", json={"amount": 10}, headers=headers)

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "cayden_ledger_operations_total" in response.text


def test_register_returns_token_and_opens_checking(client: TestClient):
    response = client.post(
        "/v1/auth/register",
        json={"email": "New.User@Example.com", "password": PASSWORD, "fullName": "New User"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["tokenType"] == "bearer"

    accounts = client.get("/v1/accounts", headers={"Authorization": f"Bearer {data['accessToken']}"}).json()
    assert len(accounts) == 1
    assert accounts[0]["accountType"] == "checking"
    assert accounts[0]["balance"] == 0
    assert len(accounts[0]["accountNumber"]) == 12
    assert accounts[0]["routingNumber"] == "021000089"


def test_register_duplicate_email(client: TestClient):
    body = {"email": "dup@example.com", "password": PASSWORD}
    assert client.post("/v1/auth/register", json=body).status_code == 201

    response = client.post("/v1/auth/register", json=body)
    assert response.status_code == 400
    assert response.json() == {"status": "error", "message": "Email is already registered"}


def test_missing_token_is_unauthorized(client: TestClient):
    response = client.get("/v1/accounts")
    assert response.status_code == 401
    assert response.json()["message"] == "Authentication required"


def test_tampered_or_wrong_type_token_is_unauthorized(client: TestClient, user_id):
    bad = create_access_token(user_id) + "x"
    assert client.get("/v1/accounts", headers={"Authorization": f"Bearer {bad}"}).status_code == 401

    # A PIN token can't be used as an access token
    pin_token = create_pin_token(user_id)
    response = client.get("/v1/accounts", headers={"Authorization": f"Bearer {pin_token}"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


def test_token_for_unknown_user_is_unauthorized(client: TestClient, db):
    response = client.get("/v1/accounts", headers={"Authorization": f"Bearer {create_access_token('ghost')}"})
    assert response.status_code == 401


def test_validation_errors_use_error_envelope(client: TestClient, headers):
    account_id = client.get("/v1/accounts", headers=headers).json()[0]["id"]

    response = client.post(f"/v1/accounts/{account_id}/deposit", json={"amount": -5}, headers=headers)

    assert response.status_code == 400
    body = response.json()
    assert body["status"] == "error"
    assert body["message"].startswith("amount")


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
