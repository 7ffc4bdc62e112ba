from __future__ import annotations

from app.modules.missions.models import Mission
from app.modules.payments.models import Payment


def _mission(api, client_key: str = "client") -> str:
    mission = Mission(title="Collecte facturée", client_id=api.ids[client_key], location="Paris",
                      service_type="ramassage", status="completed")
    api.seed(mission)
    return mission.id


def _payment(api, client_key: str = "client", **values) -> str:
    mission_id = _mission(api, client_key)
    data = {"amount": 120.0, "payment_method": "bank_transfer", "payment_status": "pending"}
    data.update(values)
    payment = Payment(mission_id=mission_id, client_id=api.ids[client_key], **data)
    api.seed(payment)
    return payment.id


def test_payments_require_session(api) -> None:
    payment_id = _payment(api)
    mission_id = _mission(api)
    for method, url, kwargs in (
        ("GET", "/api/payments", {}),
        ("POST", "/api/payments", {"json": {"mission_id": mission_id, "amount": 10, "payment_method": "cash"}}),
        ("PUT", f"/api/payments/{payment_id}", {"json": {"payment_status": "completed"}}),
        ("DELETE", f"/api/payments/{payment_id}", {}),
    ):
        response = api.client.request(method, url, **kwargs)
        assert response.status_code == 401, (method, url)
    assert api.count(Payment) == 1
    assert api.fetch(Payment, payment_id).payment_status == "pending"


def test_admin_creates_payment(api) -> None:
    mission_id = _mission(api)
    response = api.client.post(
        "/api/payments",
        json={"mission_id": mission_id, "amount": "89,90", "payment_method": "stripe", "currency": "eur"},
        headers=api.as_user("admin"),
    )
    assert response.status_code == 201
    payment = response.json()["payment"]
    assert payment["payment_status"] == "pending"
    assert payment["client_id"] == api.ids["client"]
    assert payment["amount"] == 89.9
    assert payment["currency"] == "EUR"
    assert payment["mission"]["title"] == "Collecte facturée"


def test_payment_amount_must_be_positive(api) -> None:
    mission_id = _mission(api)
    response = api.client.post(
        "/api/payments",
        json={"mission_id": mission_id, "amount": 0, "payment_method": "cash"},
        headers=api.as_user("admin"),
    )
    assert response.status_code == 400
    assert "amount doit être supérieur à 0" in response.json()["details"]
    assert api.count(Payment) == 0


def test_payment_client_must_match_mission(api) -> None:
    mission_id = _mission(api)
    response = api.client.post(
        "/api/payments",
        json={"mission_id": mission_id, "client_id": api.ids["other_client"], "amount": 10, "payment_method": "cash"},
        headers=api.as_user("admin"),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "StateConflict"


def test_payment_for_unknown_mission(api) -> None:
    response = api.client.post(
        "/api/payments",
        json={"mission_id": "missing", "amount": 10, "payment_method": "cash"},
        headers=api.as_user("admin"),
    )
    assert response.status_code == 404


def test_only_admin_mutates_payments(api) -> None:
    payment_id = _payment(api)
    headers = api.as_user("client_user")
    mission_id = _mission(api)
    response = api.client.post(
        "/api/payments", json={"mission_id": mission_id, "amount": 10, "payment_method": "cash"}, headers=headers
    )
    assert response.status_code == 403
    assert api.client.put(f"/api/payments/{payment_id}", json={"amount": 1}, headers=headers).status_code == 403
    assert api.client.delete(f"/api/payments/{payment_id}", headers=headers).status_code == 403


def test_list_scoping(api) -> None:
    own = _payment(api, amount=100.0)
    _payment(api, client_key="other_client", amount=50.5, payment_status="completed")

    body = api.client.get("/api/payments", headers=api.as_user("admin")).json()
    assert body["count"] == 2
    assert body["statistics"]["total_amount"] == 150.5
    assert body["statistics"]["status_counts"] == {"pending": 1, "completed": 1}

    body = api.client.get("/api/payments", headers=api.as_user("client_user")).json()
    assert [p["id"] for p in body["payments"]] == [own]

    # le filtre client_id est ignoré hors admin
    body = api.client.get(
        "/api/payments", params={"client_id": api.ids["other_client"]}, headers=api.as_user("client_user")
    ).json()
    assert [p["id"] for p in body["payments"]] == [own]

    body = api.client.get("/api/payments", headers=api.as_user("staff")).json()
    assert body == {"payments": [], "count": 0, "statistics": {"status_counts": {}, "total_amount": 0.0}, "filters": {}}


def test_admin_filters_by_status(api) -> None:
    _payment(api)
    done = _payment(api, payment_status="completed")
    body = api.client.get(
        "/api/payments", params={"payment_status": "completed"}, headers=api.as_user("admin")
    ).json()
    assert [p["id"] for p in body["payments"]] == [done]


def test_completing_payment_stamps_paid_at(api) -> None:
    payment_id = _payment(api)
    response = api.client.put(
        f"/api/payments/{payment_id}", json={"payment_status": "completed"}, headers=api.as_user("admin")
    )
    assert response.status_code == 200
    assert response.json()["payment"]["paid_at"] is not None
    assert api.fetch(Payment, payment_id).paid_at is not None


def test_payment_transitions(api) -> None:
    headers = api.as_user("admin")
    failed = _payment(api, payment_status="failed")
    response = api.client.put(f"/api/payments/{failed}", json={"payment_status": "completed"}, headers=headers)
    assert response.status_code == 400

    done = _payment(api, payment_status="completed")
    response = api.client.put(f"/api/payments/{done}", json={"payment_status": "refunded"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["payment"]["payment_status"] == "refunded"


def test_update_ignores_fields_outside_allow_list(api) -> None:
    payment_id = _payment(api)
    response = api.client.put(
        f"/api/payments/{payment_id}",
        json={"client_id": api.ids["other_client"], "description": "Facture mars"},
        headers=api.as_user("admin"),
    )
    assert response.status_code == 200
    payment = api.fetch(Payment, payment_id)
    assert payment.client_id == api.ids["client"]
    assert payment.description == "Facture mars"


def test_completed_payment_cannot_be_deleted(api) -> None:
    headers = api.as_user("admin")
    done = _payment(api, payment_status="completed")
    response = api.client.delete(f"/api/payments/{done}", headers=headers)
    assert response.status_code == 400
    assert api.fetch(Payment, done) is not None

    pending = _payment(api)
    response = api.client.delete(f"/api/payments/{pending}", headers=headers)
    assert response.status_code == 200
    assert api.fetch(Payment, pending) is None
