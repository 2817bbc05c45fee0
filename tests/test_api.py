from datetime import date
from decimal import Decimal

from models import LegacyPayment
from tests.conftest import USER_ID

RENT = {
    "contract_id": 100,
    "type": "rent",
    "period": "2024-03-01",
    "due_date": "2024-03-20",
    "amount": "50000.00",
}


def create(client, **overrides):
    response = client.post("/api/obligations", json={**RENT, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


def pay(client, obligation_id, amount, **extra):
    body = {"amount": amount, "payment_date": "2024-03-12", **extra}
    return client.post(f"/api/obligations/{obligation_id}/payments", json=body)


def test_create_and_get(client):
    created = create(client)
    assert created["status"] == "pending"
    assert created["apartment_id"] == 10
    assert Decimal(created["outstanding"]) == Decimal("50000")
    assert created["commission_amount"] is None

    fetched = client.get(f"/api/obligations/{created['id']}").json()
    assert fetched["id"] == created["id"]


def test_ledger_errors_use_their_kind(client):
    missing = client.get("/api/obligations/999")
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"

    no_contract = client.post("/api/obligations", json={**RENT, "contract_id": None})
    assert no_contract.status_code == 422
    assert no_contract.json()["error"] == "validation_error"

    # Request body validation stays with FastAPI
    assert client.post("/api/obligations", json={**RENT, "amount": "-5"}).status_code == 422


def test_unknown_route(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json() == {"error": "Route not found"}


def test_partial_full_and_overpayment(client):
    obligation = create(client)

    first = pay(client, obligation["id"], "30000")
    assert first.status_code == 201
    assert first.json()["status"] == "pending"
    assert first.json()["is_partially_paid"] is True

    over = pay(client, obligation["id"], "20000.01")
    assert over.status_code == 409
    assert over.json()["error"] == "overpayment"

    final = pay(client, obligation["id"], "20000", method="cash", reference="REC-9")
    body = final.json()
    assert body["status"] == "paid"
    assert Decimal(body["commission_amount"]) == Decimal("5000")
    assert Decimal(body["owner_impact"]) == Decimal("45000")

    history = client.get(f"/api/obligations/{obligation['id']}/payments").json()
    assert history["total"] == 2
    assert sum(Decimal(p["amount"]) for p in history["payments"]) == Decimal("50000")


def test_reverse_and_annotate(client):
    obligation = create(client)
    pay(client, obligation["id"], "50000")
    payment = client.get(f"/api/obligations/{obligation['id']}/payments").json()["payments"][0]

    noted = client.patch(
        f"/api/obligations/{obligation['id']}/payments/{payment['id']}",
        json={"notes": "Deposited late"},
    )
    assert noted.status_code == 200
    assert noted.json()["notes"] == "Deposited late"

    reversed_ = client.delete(f"/api/obligations/{obligation['id']}/payments/{payment['id']}")
    assert reversed_.status_code == 200
    assert Decimal(reversed_.json()["paid_amount"]) == Decimal("0")
    assert reversed_.json()["status"] != "paid"

    gone = client.delete(f"/api/obligations/{obligation['id']}/payments/{payment['id']}")
    assert gone.status_code == 404


def test_update_and_recompute(client):
    obligation = create(client)
    pay(client, obligation["id"], "20000")

    too_low = client.put(f"/api/obligations/{obligation['id']}", json={"amount": "10000"})
    assert too_low.status_code == 422

    lowered = client.put(f"/api/obligations/{obligation['id']}", json={"amount": "20000"})
    assert lowered.json()["status"] == "paid"

    recomputed = client.post(f"/api/obligations/{obligation['id']}/recompute")
    assert recomputed.json()["status"] == "paid"


def test_list_filters(client):
    create(client)
    create(client, contract_id=200, amount="80000")
    create(client, type="expenses", contract_id=None, apartment_id=20, amount="1000")

    everything = client.get("/api/obligations").json()
    assert everything["total"] == 3
    assert client.get("/api/obligations", params={"owner_id": 2}).json()["total"] == 2
    assert client.get("/api/obligations", params={"type": "expenses"}).json()["total"] == 1
    assert client.get("/api/obligations", params={"status": "paid"}).json()["total"] == 0
    assert client.get("/api/obligations", params={"status": "partial"}).status_code == 422


def test_mark_overdue_and_generate(client):
    create(client, due_date="2024-03-01")
    assert client.post("/api/obligations/mark-overdue").json() == {"count": 1}
    assert client.post("/api/obligations/mark-overdue").json() == {"count": 0}

    generated = client.post("/api/obligations/generate", params={"month": "2024-05"})
    assert generated.json() == {"generated": 2, "skipped": 0, "errors": []}
    assert client.post("/api/obligations/generate", params={"month": "May"}).status_code == 400


def test_settlement(client):
    obligation = create(client, amount="100000")
    pay(client, obligation["id"], "100000")

    response = client.get("/api/settlements", params={"period_from": "2024-03-01", "refresh_overdue": True})
    assert response.status_code == 200
    totals = response.json()["totals"]
    assert Decimal(totals["cobrado"]) == Decimal("90000")
    assert Decimal(totals["comisiones"]) == Decimal("10000")
    assert Decimal(totals["a_liquidar"]) == Decimal("80000")

    bad = client.get("/api/settlements", params={"period_from": "2024-03-01", "period_to": "2024-01-01"})
    assert bad.status_code == 422


def test_migration_endpoint(client, session_factory):
    session = session_factory()
    session.add(LegacyPayment(
        user_id=USER_ID, contract_id=100, month=date(2024, 3, 1), amount=Decimal("450000"),
        status="paid", payment_date=date(2024, 3, 10),
    ))
    session.commit()
    session.close()

    first = client.post("/api/migration/legacy-payments").json()
    assert first["migrated"] == 1
    assert first["payments_created"] == 1
    second = client.post("/api/migration/legacy-payments").json()
    assert second["migrated"] == 0
    assert second["skipped"] == 1


def test_gateway_webhook(client):
    obligation = create(client)
    event = {
        "event": "CHECKOUT.SUCCESS",
        "data": {
            "id": "chk_0001",
            "requestReferenceNumber": f"OBL-{obligation['id']}",
            "totalAmount": {"value": 50000, "currency": "ARS"},
            "paymentDate": "2024-03-11T14:02:00Z",
        },
    }
    first = client.post("/api/payments/webhook", json=event).json()
    assert first["applied"] is True
    assert first["status"] == "paid"

    redelivered = client.post("/api/payments/webhook", json=event).json()
    assert redelivered["applied"] is False

    history = client.get(f"/api/obligations/{obligation['id']}/payments").json()
    assert history["total"] == 1
    assert history["payments"][0]["method"] == "gateway"
    assert history["payments"][0]["payment_date"] == "2024-03-11"

    ignored = client.post("/api/payments/webhook", json={"event": "CHECKOUT.FAILURE", "data": {}})
    assert ignored.json() == {"message": "Ignored non-success event"}

    bad_ref = {"event": "CHECKOUT.SUCCESS", "data": {"id": "chk_2", "requestReferenceNumber": "INV-1"}}
    assert client.post("/api/payments/webhook", json=bad_ref).status_code == 400


def test_gateway_webhook_with_bare_amount(client):
    obligation = create(client, amount="30000")
    event = {
        "event": "CHECKOUT.SUCCESS",
        "data": {
            "id": "chk_0002",
            "requestReferenceNumber": f"OBL-{obligation['id']}",
            "totalAmount": 12000,
        },
    }
    response = client.post("/api/payments/webhook", json=event)
    assert response.status_code == 200, response.text
    assert response.json()["applied"] is True
    assert response.json()["status"] == "pending"

    stored = client.get(f"/api/obligations/{obligation['id']}").json()
    assert Decimal(stored["paid_amount"]) == Decimal("12000")


def test_repeated_payment_reference_is_a_conflict(client):
    obligation = create(client)
    assert pay(client, obligation["id"], "10", reference="chk-1").status_code == 201
    again = pay(client, obligation["id"], "10", reference="chk-1")
    assert again.status_code == 409
    assert again.json()["error"] == "duplicate_payment"
    assert client.get(f"/api/obligations/{obligation['id']}/payments").json()["total"] == 1


def test_token_is_required(client):
    from auth import create_token, verify_token
    from main import app

    app.dependency_overrides.pop(verify_token)
    assert client.get("/api/obligations").status_code == 401
    assert client.get("/api/obligations", headers={"Authorization": "Bearer nope"}).status_code == 403

    token = create_token(USER_ID)
    response = client.get("/api/obligations", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


def test_recurring_obligations(client):
    body = {
        "apartment_id": 30,
        "type": "expenses",
        "description": "Expensas ordinarias",
        "amount": "85000.00",
        "day_of_month": 31,
        "start_date": "2024-01-01",
    }
    created = client.post("/api/recurring-obligations", json=body)
    assert created.status_code == 201, created.text
    recurring = created.json()
    assert recurring["is_active"] is True

    rent = client.post("/api/recurring-obligations", json={**body, "type": "rent", "contract_id": 100})
    assert rent.status_code == 422
    assert rent.json()["error"] == "validation_error"
    assert client.post("/api/recurring-obligations", json={**body, "day_of_month": 32}).status_code == 422

    generated = client.post("/api/recurring-obligations/generate", params={"month": "2024-04"})
    assert generated.json() == {"generated": 1, "skipped": 0, "errors": []}
    again = client.post("/api/recurring-obligations/generate", params={"month": "2024-04"})
    assert again.json()["skipped"] == 1
    assert client.post("/api/recurring-obligations/generate", params={"month": "abril"}).status_code == 400

    billed = client.get("/api/obligations", params={"type": "expenses"}).json()["obligations"]
    assert [(o["due_date"], o["recurring_obligation_id"]) for o in billed] == [("2024-04-30", recurring["id"])]

    updated = client.put(f"/api/recurring-obligations/{recurring['id']}", json={"amount": "90000"}).json()
    assert Decimal(updated["amount"]) == Decimal("90000")
    paused = client.post(f"/api/recurring-obligations/{recurring['id']}/toggle").json()
    assert paused["is_active"] is False
    assert client.get("/api/recurring-obligations").json()["total"] == 1

    assert client.delete(f"/api/recurring-obligations/{recurring['id']}").status_code == 204
    missing = client.get(f"/api/recurring-obligations/{recurring['id']}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"
