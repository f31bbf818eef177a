"""Integration tests for the transaction PIN and large-advance gating"""

from fastapi.testclient import TestClient
from conftest import PASSWORD, auth_headers
from cayden_gateway.infrastructure.security.tokens import create_pin_token


def set_pin(client, user_id, pin="4821", password=PASSWORD):
    return client.post("/v1/pin", json={"pin": pin, "password": password}, headers=auth_headers(user_id))


def verify(client, user_id, pin="4821"):
    return client.post("/v1/pin/verify", json={"pin": pin}, headers=auth_headers(user_id))


def request_advance(client, user_id, amount, pin_token=None):
    headers = auth_headers(user_id)
    if pin_token:
        headers["x-pin-token"] = pin_token
    return client.post("/v1/advances", json={"amount": amount, "deliverySpeed": "express"}, headers=headers)


def test_set_and_check_pin(client: TestClient, user_id):
    assert client.get("/v1/pin/status", headers=auth_headers(user_id)).json() == {"hasPin": False}

    response = set_pin(client, user_id)

    assert response.status_code == 200
    assert client.get("/v1/pin/status", headers=auth_headers(user_id)).json() == {"hasPin": True}


def test_set_pin_validates_format_and_password(client: TestClient, user_id):
    bad_format = set_pin(client, user_id, pin="12a4")
    assert bad_format.status_code == 400
    assert bad_format.json()["message"] == "PIN must be exactly 4 digits"

    wrong_password = set_pin(client, user_id, password="not-the-password")
    assert wrong_password.status_code == 401
    assert wrong_password.json()["message"] == "Invalid password"


def test_verify_wrong_pin(client: TestClient, user_id):
    set_pin(client, user_id)

    response = verify(client, user_id, pin="0000")

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid PIN"


def test_verify_without_pin_set(client: TestClient, user_id):
    response = verify(client, user_id)
    assert response.status_code == 400
    assert response.json()["message"] == "PIN not set"


def test_large_advance_requires_pin_token(client: TestClient, eligible_user):
    set_pin(client, eligible_user)

    response = request_advance(client, eligible_user, 150)

    assert response.status_code == 401
    assert response.json() == {
        "status": "error",
        "message": "PIN verification required for advances over $100",
        "requirePin": True,
    }


def test_large_advance_with_fresh_pin_token(client: TestClient, eligible_user):
    set_pin(client, eligible_user)
    token = verify(client, eligible_user).json()["pinToken"]

    response = request_advance(client, eligible_user, 150, pin_token=token)

    assert response.status_code == 201
    assert response.json()["status"] == "funded"


def test_small_advance_needs_no_pin(client: TestClient, eligible_user):
    set_pin(client, eligible_user)
    assert request_advance(client, eligible_user, 100).status_code == 201


def test_expired_pin_token_rejected(client: TestClient, eligible_user):
    set_pin(client, eligible_user)
    expired = create_pin_token(eligible_user, ttl_seconds=-1)

    response = request_advance(client, eligible_user, 150, pin_token=expired)

    assert response.status_code == 401
    assert response.json()["requirePin"] is True
    assert "expired" in response.json()["message"]


def test_pin_token_of_another_user_rejected(client: TestClient, eligible_user, make_user):
    set_pin(client, eligible_user)
    other = make_user()
    set_pin(client, other)
    other_token = verify(client, other).json()["pinToken"]

    response = request_advance(client, eligible_user, 150, pin_token=other_token)

    assert response.status_code == 401
    assert response.json()["message"] == "PIN token does not match authenticated user"


def test_user_without_pin_is_not_gated(client: TestClient, eligible_user):
    assert request_advance(client, eligible_user, 150).status_code == 201


def test_remove_pin(client: TestClient, user_id):
    set_pin(client, user_id)

    response = client.request("DELETE", "/v1/pin", json={"password": PASSWORD}, headers=auth_headers(user_id))

    assert response.status_code == 200
    assert client.get("/v1/pin/status", headers=auth_headers(user_id)).json() == {"hasPin": False}
