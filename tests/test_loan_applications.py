from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId

from app.database.connection import LOAN_APPLICATIONS

VALID_APPLICATION = {
    "loanTitle": "Home Loan",
    "loanAmount": "5000",
    "category": "housing",
    "firstName": "A",
    "lastName": "B",
    "userEmail": "a@b.com",
}


def _seed_application(store, **overrides):
    doc = {
        "loanTitle": "Car Loan",
        "loanAmount": 1000,
        "category": "vehicle",
        "firstName": "C",
        "lastName": "D",
        "userEmail": "c@d.com",
        "status": "pending",
        "applicationFeeStatus": "unpaid",
        "application_date": datetime(2025, 1, 1, tzinfo=timezone.utc),
    }
    doc.update(overrides)
    return store.seed(LOAN_APPLICATIONS, doc)[0]


def test_apply_then_list_for_user(client, store):
    resp = client.post("/apply-loan", json=VALID_APPLICATION)

    assert resp.status_code == 201
    inserted_id = resp.json()["insertedId"]
    assert ObjectId.is_valid(inserted_id)

    listing = client.get("/loan-applications/user/a@b.com")
    assert listing.status_code == 200
    applications = listing.json()
    assert [a["_id"] for a in applications] == [inserted_id]
    assert applications[0]["status"] == "pending"
    assert applications[0]["applicationFeeStatus"] == "unpaid"
    assert applications[0]["loanAmount"] == 5000


def test_apply_stores_amount_as_number_and_date(client, store):
    client.post("/apply-loan", json={**VALID_APPLICATION, "loanAmount": "2500.50"})

    stored = store.all(LOAN_APPLICATIONS)[0]
    assert stored["loanAmount"] == 2500.5
    assert isinstance(stored["application_date"], datetime)


@pytest.mark.parametrize("field", list(VALID_APPLICATION))
def test_apply_without_required_field_is_rejected(client, store, field):
    payload = {k: v for k, v in VALID_APPLICATION.items() if k != field}

    resp = client.post("/apply-loan", json=payload)

    assert resp.status_code == 400
    assert resp.json() == {"message": "Missing required fields"}
    assert store.all(LOAN_APPLICATIONS) == []


def test_apply_with_non_numeric_amount_is_rejected(client, store):
    resp = client.post("/apply-loan", json={**VALID_APPLICATION, "loanAmount": "lots"})

    assert resp.status_code == 400
    assert resp.json() == {"message": "loanAmount must be a number"}
    assert store.all(LOAN_APPLICATIONS) == []


def test_apply_store_failure_uses_message_key(client, store):
    store.fail_with = "write concern error"

    resp = client.post("/apply-loan", json=VALID_APPLICATION)

    assert resp.status_code == 500
    assert resp.json() == {"message": "Server error"}


def test_list_is_newest_first(client, store):
    base = datetime(2025, 3, 1, tzinfo=timezone.utc)
    old_id = _seed_application(store, application_date=base)
    new_id = _seed_application(store, application_date=base + timedelta(days=2))
    mid_id = _seed_application(store, application_date=base + timedelta(days=1))

    resp = client.get("/loan-applications")

    assert resp.status_code == 200
    assert [a["_id"] for a in resp.json()] == [str(new_id), str(mid_id), str(old_id)]
    assert resp.json()[0]["application_date"].startswith("2025-03-03T00:00:00")


def test_my_loans_alias_filters_by_email(client, store):
    _seed_application(store, userEmail="x@y.com")
    _seed_application(store, userEmail="c@d.com")

    resp = client.get("/my-loans/x@y.com")

    assert resp.status_code == 200
    assert [a["userEmail"] for a in resp.json()] == ["x@y.com"]


def test_pending_only_returns_pending(client, store):
    _seed_application(store, status="pending")
    _seed_application(store, status="Approved")
    _seed_application(store, status="Rejected")

    resp = client.get("/pending-loans")

    assert [a["status"] for a in resp.json()] == ["pending"]


def test_get_application_by_id(client, store):
    app_id = _seed_application(store)

    resp = client.get(f"/loan-applications/{app_id}")

    assert resp.status_code == 200
    assert resp.json()["_id"] == str(app_id)


def test_get_application_malformed_and_missing(client):
    malformed = client.get("/loan-applications/1234")
    missing = client.get(f"/loan-applications/{ObjectId()}")

    assert malformed.status_code == 400
    assert malformed.json() == {"message": "Invalid ID format"}
    assert missing.status_code == 404
    assert missing.json() == {"message": "Loan application not found"}


def test_approve_application_records_timestamp(client, store):
    app_id = _seed_application(store)

    resp = client.patch(
        f"/loan-applications/{app_id}",
        json={"status": "Approved", "approvedAt": "2025-05-01T10:00:00.000Z"},
    )

    assert resp.status_code == 200
    assert resp.json() == {"message": "Application Approved successfully", "modifiedCount": 1}
    stored = store.all(LOAN_APPLICATIONS)[0]
    assert stored["status"] == "Approved"
    assert stored["approvedAt"] == "2025-05-01T10:00:00.000Z"


def test_reject_without_timestamp_stores_null(client, store):
    app_id = _seed_application(store)

    client.patch(f"/loan-applications/{app_id}", json={"status": "Rejected"})

    assert store.all(LOAN_APPLICATIONS)[0]["approvedAt"] is None


def test_any_status_may_follow_any_other(client, store):
    app_id = _seed_application(store, status="Rejected")

    resp = client.patch(f"/loan-applications/{app_id}", json={"status": "pending"})

    assert resp.status_code == 200
    assert store.all(LOAN_APPLICATIONS)[0]["status"] == "pending"


@pytest.mark.parametrize("bad_status", ["approved", "Cancelled", "", None, 3])
def test_invalid_status_is_rejected_and_unchanged(client, store, bad_status):
    app_id = _seed_application(store)

    resp = client.patch(f"/loan-applications/{app_id}", json={"status": bad_status})

    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid status provided"}
    assert store.all(LOAN_APPLICATIONS)[0]["status"] == "pending"


def test_status_update_on_missing_application_is_404(client, store):
    _seed_application(store)
    before = store.all(LOAN_APPLICATIONS)

    resp = client.patch(f"/loan-applications/{ObjectId()}", json={"status": "Approved"})

    assert resp.status_code == 404
    assert resp.json() == {"message": "Application not found"}
    assert store.all(LOAN_APPLICATIONS) == before


def test_status_update_store_failure(client, store):
    app_id = _seed_application(store)
    store.fail_with = "primary stepped down"

    resp = client.patch(f"/loan-applications/{app_id}", json={"status": "Approved"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Server error during status update"}


def test_cancel_twice(client, store):
    app_id = _seed_application(store)

    first = client.delete(f"/loan-applications/{app_id}")
    second = client.delete(f"/loan-applications/{app_id}")

    assert first.status_code == 200
    assert first.json() == {"message": "Application cancelled"}
    assert second.status_code == 404
    assert second.json() == {"message": "Application not found"}


def test_record_payment_marks_fee_paid(client, store):
    app_id = _seed_application(store)

    resp = client.patch(f"/loan-applications/payment/{app_id}", json={"transactionId": "pi_123"})

    assert resp.status_code == 200
    assert resp.json() == {
        "acknowledged": True,
        "matchedCount": 1,
        "modifiedCount": 1,
        "upsertedId": None,
        "upsertedCount": 0,
    }
    stored = store.all(LOAN_APPLICATIONS)[0]
    assert stored["paymentStatus"] == "paid"
    assert stored["applicationFeeStatus"] == "paid"
    assert stored["transactionId"] == "pi_123"
    assert stored["paidAt"].endswith("Z")


def test_record_payment_for_unknown_application_reports_zero_matches(client, store):
    resp = client.patch(f"/loan-applications/payment/{ObjectId()}", json={"transactionId": "pi_1"})

    assert resp.status_code == 200
    assert resp.json()["matchedCount"] == 0
    assert store.all(LOAN_APPLICATIONS) == []


def test_record_payment_malformed_id(client):
    resp = client.patch("/loan-applications/payment/xyz", json={"transactionId": "pi_1"})

    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid ID format"}


def test_apply_stores_non_string_names_as_sent(client, store):
    resp = client.post("/apply-loan", json={**VALID_APPLICATION, "firstName": 7})

    assert resp.status_code == 201
    assert store.all(LOAN_APPLICATIONS)[0]["firstName"] == 7
