"""Integration tests for ExtraCash advances"""

import pytest
from datetime import timedelta
from fastapi.testclient import TestClient
from conftest import auth_headers, checking_of
from cayden_gateway import jobs
from cayden_gateway.domain.exceptions import NotFoundError
from cayden_gateway.infrastructure.database.models import Advance, LedgerTransaction
from cayden_gateway.services.accounts import deposit
from cayden_gateway.services.advances import fund_pending_advance, fund_pending_advances, mark_overdue_advances
from cayden_gateway.utils.date_utils import utc_today


def request_advance(client, user_id, amount, speed="express", tip=0):
    return client.post(
        "/v1/advances",
        json={"amount": amount, "deliverySpeed": speed, "tip": tip},
        headers=auth_headers(user_id),
    )


def test_eligibility_for_steady_depositor(client: TestClient, eligible_user):
    response = client.get("/v1/advances/eligibility", headers=auth_headers(eligible_user))

    assert response.status_code == 200
    data = response.json()
    assert data["eligible"] is True
    assert data["score"] == 85
    assert data["maxAmount"] == 400.0
    assert data["hasLinkedBank"] is True
    assert data["factors"] == {
        "incomeConsistency": 100,
        "averageBalance": 100,
        "spendingPatterns": 100,
        "accountAge": 20,
        "repaymentHistory": 50,
    }


def test_new_user_is_not_eligible(client: TestClient, headers):
    data = client.get("/v1/advances/eligibility", headers=headers).json()
    assert data["eligible"] is False
    assert data["maxAmount"] == 0
    assert data["hasLinkedBank"] is False


def test_express_advance_is_funded_immediately(client: TestClient, db, eligible_user):
    response = request_advance(client, eligible_user, 200)

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "funded"
    assert data["fee"] == 10.0
    assert data["totalDue"] == 210.0
    assert data["fundedAt"] is not None
    assert data["repaymentDate"] == (utc_today() + timedelta(days=14)).isoformat()

    db.expire_all()
    checking = checking_of(db, eligible_user)
    assert checking.balance_cents == 300000 + 20000
    credit = db.query(LedgerTransaction).filter(LedgerTransaction.reference_id == data["id"]).one()
    assert credit.category == "advance"
    assert credit.description == "ExtraCash Advance - Express"


def test_outstanding_advance_blocks_another(client: TestClient, eligible_user):
    assert request_advance(client, eligible_user, 50).status_code == 201

    response = request_advance(client, eligible_user, 50)

    assert response.status_code == 400
    assert response.json()["message"] == "You have an outstanding advance. Please repay it first."
    eligibility = client.get("/v1/advances/eligibility", headers=auth_headers(eligible_user)).json()
    assert eligibility["score"] == 0


def test_amount_above_cap_rejected(client: TestClient, eligible_user):
    response = request_advance(client, eligible_user, 450)
    assert response.status_code == 400
    assert response.json()["message"] == "Amount must be between $25 and $400"


def test_amount_outside_schema_bounds_rejected(client: TestClient, eligible_user):
    assert request_advance(client, eligible_user, 10).status_code == 400
    assert request_advance(client, eligible_user, 501).status_code == 400


def test_advance_requires_verified_bank(client: TestClient, db, make_user):
    uid = make_user()
    for _ in range(6):
        deposit(db, uid, checking_of(db, uid).id, 50000)

    response = request_advance(client, uid, 50)

    assert response.status_code == 400
    assert "link" in response.json()["message"].lower()
    assert db.query(Advance).count() == 0


def test_standard_advance_waits_for_funding_job(client: TestClient, db, eligible_user):
    response = request_advance(client, eligible_user, 100, speed="standard")

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "approved"
    assert data["fee"] == 0
    assert data["fundedAt"] is None
    db.expire_all()
    assert checking_of(db, eligible_user).balance_cents == 300000

    funded = fund_pending_advances(db)

    assert funded == [data["id"]]
    db.expire_all()
    assert checking_of(db, eligible_user).balance_cents == 310000
    advance = client.get(f"/v1/advances/{data['id']}", headers=auth_headers(eligible_user)).json()
    assert advance["status"] == "funded"
    notifications = client.get("/v1/notifications", headers=auth_headers(eligible_user)).json()
    assert notifications[0]["type"] == "advance"


def test_funding_twice_is_rejected(client: TestClient, db, eligible_user):
    advance_id = request_advance(client, eligible_user, 100, speed="standard").json()["id"]
    fund_pending_advance(db, advance_id)

    with pytest.raises(NotFoundError):
        fund_pending_advance(db, advance_id)
    db.expire_all()
    assert checking_of(db, eligible_user).balance_cents == 310000


def test_repay_advance(client: TestClient, db, eligible_user):
    advance_id = request_advance(client, eligible_user, 200, tip=2).json()["id"]

    response = client.post(f"/v1/advances/{advance_id}/repay", headers=auth_headers(eligible_user))

    assert response.status_code == 200
    data = response.json()
    assert data["repaid"] is True
    assert data["amountRepaid"] == 212.0
    assert data["newBalance"] == 3000.0 + 200 - 212
    advance = client.get(f"/v1/advances/{advance_id}", headers=auth_headers(eligible_user)).json()
    assert advance["status"] == "repaid"
    assert advance["repaidAt"] is not None

    second = client.post(f"/v1/advances/{advance_id}/repay", headers=auth_headers(eligible_user))
    assert second.status_code == 404
    assert second.json()["message"] == "Active advance not found"


def test_repay_with_insufficient_funds_changes_nothing(client: TestClient, db, eligible_user, make_user):
    advance_id = request_advance(client, eligible_user, 100, tip=2).json()["id"]
    checking_id = checking_of(db, eligible_user).id
    client.post(
        "/v1/accounts/transfer",
        json={"fromAccountId": checking_id, "toAccountId": checking_of(db, make_user()).id, "amount": 3050},
        headers=auth_headers(eligible_user),
    )

    response = client.post(f"/v1/advances/{advance_id}/repay", headers=auth_headers(eligible_user))

    assert response.status_code == 400
    assert response.json()["message"] == "Insufficient funds. Need $107.00 to repay."
    db.expire_all()
    assert checking_of(db, eligible_user).balance_cents == 5000
    assert db.get(Advance, advance_id).status == "funded"


def test_other_users_advance_is_not_found(client: TestClient, eligible_user, make_user):
    advance_id = request_advance(client, eligible_user, 50).json()["id"]
    stranger = make_user()

    assert client.get(f"/v1/advances/{advance_id}", headers=auth_headers(stranger)).status_code == 404
    assert client.post(f"/v1/advances/{advance_id}/repay", headers=auth_headers(stranger)).status_code == 404


def test_overdue_advance_can_still_be_repaid(client: TestClient, db, eligible_user):
    advance_id = request_advance(client, eligible_user, 100).json()["id"]

    # Due date itself is not overdue yet
    assert mark_overdue_advances(db, today=utc_today() + timedelta(days=14)) == []
    assert mark_overdue_advances(db, today=utc_today() + timedelta(days=15)) == [advance_id]

    advance = client.get(f"/v1/advances/{advance_id}", headers=auth_headers(eligible_user)).json()
    assert advance["status"] == "overdue"

    response = client.post(f"/v1/advances/{advance_id}/repay", headers=auth_headers(eligible_user))
    assert response.status_code == 200
    assert response.json()["amountRepaid"] == 105.0


def test_overdue_advance_lowers_repayment_history(client: TestClient, db, eligible_user):
    """An overdue advance is scored through repayment history, not hard-blocked"""
    advance_id = request_advance(client, eligible_user, 50).json()["id"]
    assert mark_overdue_advances(db, today=utc_today() + timedelta(days=15)) == [advance_id]

    data = client.get("/v1/advances/eligibility", headers=auth_headers(eligible_user)).json()

    assert data["factors"]["repaymentHistory"] == 0
    assert data["score"] == 77
    assert data["eligible"] is True
    assert data["maxAmount"] == 400.0


def test_jobs_cli_marks_overdue(client: TestClient, db, eligible_user, capsys):
    advance_id = request_advance(client, eligible_user, 100).json()["id"]
    as_of = (utc_today() + timedelta(days=30)).isoformat()

    exit_code = jobs.main(["mark-overdue", "--as-of", as_of])

    assert exit_code == 0
    assert "mark-overdue: 1 advance(s) updated" in capsys.readouterr().out
    db.expire_all()
    assert db.get(Advance, advance_id).status == "overdue"


def test_list_advances_newest_first(client: TestClient, eligible_user):
    first_id = request_advance(client, eligible_user, 50).json()["id"]
    client.post(f"/v1/advances/{first_id}/repay", headers=auth_headers(eligible_user))
    second_id = request_advance(client, eligible_user, 50).json()["id"]

    advances = client.get("/v1/advances", headers=auth_headers(eligible_user)).json()

    assert [a["id"] for a in advances] == [second_id, first_id]
