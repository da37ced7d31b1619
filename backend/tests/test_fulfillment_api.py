import pytest

from conftest import ADMIN

from marketplace import config
from marketplace.services import audit


@pytest.fixture
def paid_order(client, accepted_order):
    r = client.post(f"/orders/{accepted_order['order']['id']}/verify-payment", headers=ADMIN)
    assert r.status_code == 200, r.text
    return {**accepted_order, "order": r.json()}


@pytest.fixture
def job(client, paid_order):
    r = client.post(f"/orders/{paid_order['order']['id']}/logistics-job", headers=ADMIN)
    assert r.status_code == 201, r.text
    return {**paid_order, "job": r.json()}


@pytest.fixture
def assigned_job(client, market, job):
    transporter = market.register("transporter", "FastFreight")
    r = client.post(f"/jobs/{job['job']['id']}/claim", headers=transporter["headers"])
    assert r.status_code == 200, r.text
    return {**job, "job": r.json(), "transporter": transporter}


def _set_status(client, job_id, status, headers):
    return client.patch(f"/jobs/{job_id}/status", json={"status": status}, headers=headers)


def _upload_pod(client, job_id, headers):
    return client.post(
        f"/jobs/{job_id}/pod",
        files={"file": ("pod.jpg", b"signed delivery note", "image/jpeg")},
        headers=headers,
    )


def test_verify_payment(client, accepted_order):
    order_id = accepted_order["order"]["id"]
    r = client.post(f"/orders/{order_id}/verify-payment", headers=ADMIN)
    assert r.status_code == 200
    body = r.json()
    assert body["payment_status"] == "verified"
    assert body["status"] == "payment_verified"
    assert body["payment_verified_at"] is not None

    assert client.post(f"/orders/{order_id}/verify-payment", headers=ADMIN).status_code == 409


def test_buyer_cannot_verify_payment(client, accepted_order):
    r = client.post(
        f"/orders/{accepted_order['order']['id']}/verify-payment",
        headers=accepted_order["buyer"]["headers"],
    )
    assert r.status_code == 403


def test_job_requires_verified_payment(client, accepted_order):
    r = client.post(f"/orders/{accepted_order['order']['id']}/logistics-job", headers=ADMIN)
    assert r.status_code == 409


def test_create_job_from_offer(client, job):
    j = job["job"]
    assert j["status"] == "pending"
    assert j["transporter_id"] is None
    assert j["pickup_city"] == "Johannesburg"
    assert j["pickup_address"] == "Supplier Warehouse, Johannesburg"
    assert j["delivery_city"] == "Pretoria"
    assert j["agreed_rate"] == 3000.0
    assert j["distance_km"] == 120.0

    again = client.post(f"/orders/{job['order']['id']}/logistics-job", headers=ADMIN)
    assert again.status_code == 409


def test_job_board_and_claim(client, market, job):
    first = market.register("transporter", "FastFreight")
    second = market.register("transporter", "SlowFreight")
    job_id = job["job"]["id"]

    board = client.get("/jobs", headers=first["headers"]).json()
    assert [j["id"] for j in board] == [job_id]
    assert board[0]["product_name"] == "Portland cement 42.5N"
    assert board[0]["order_number"] == job["order"]["order_number"]

    r = client.post(f"/jobs/{job_id}/claim", headers=first["headers"])
    assert r.status_code == 200
    assert r.json()["status"] == "assigned"
    assert r.json()["transporter_id"] == first["id"]

    lost = client.post(f"/jobs/{job_id}/claim", headers=second["headers"])
    assert lost.status_code == 409
    assert client.get("/jobs", headers=second["headers"]).json() == []
    assert [j["id"] for j in client.get("/jobs/mine", headers=first["headers"]).json()] == [job_id]


def test_unapproved_transporter_cannot_claim(client, market, job):
    transporter = market.register("transporter", approve=False)
    r = client.post(f"/jobs/{job['job']['id']}/claim", headers=transporter["headers"])
    assert r.status_code == 403


def test_admin_assigns_job(client, market, job):
    transporter = market.register("transporter")
    r = client.post(f"/jobs/{job['job']['id']}/assign", json={"transporter_id": transporter["id"]}, headers=ADMIN)
    assert r.status_code == 200
    assert r.json()["transporter_id"] == transporter["id"]


def test_admin_cannot_assign_unapproved_transporter(client, market, job):
    transporter = market.register("transporter", approve=False)
    r = client.post(f"/jobs/{job['job']['id']}/assign", json={"transporter_id": transporter["id"]}, headers=ADMIN)
    assert r.status_code == 403


def test_admin_job_listing_filters(client, job):
    assert len(client.get("/jobs", headers=ADMIN).json()) == 1
    assert client.get("/jobs", params={"status": "completed"}, headers=ADMIN).json() == []


def test_job_progress_is_mirrored_onto_order(client, assigned_job):
    job_id = assigned_job["job"]["id"]
    order_id = assigned_job["order"]["id"]
    headers = assigned_job["transporter"]["headers"]

    r = _set_status(client, job_id, "picked_up", headers)
    assert r.status_code == 200
    assert r.json()["pickup_scheduled_at"] is not None
    assert client.get(f"/orders/{order_id}", headers=ADMIN).json()["status"] == "payment_verified"

    assert _set_status(client, job_id, "in_transit", headers).status_code == 200
    assert client.get(f"/orders/{order_id}", headers=ADMIN).json()["status"] == "in_transit"

    r = _set_status(client, job_id, "delivered", headers)
    assert r.json()["delivered_at"] is not None
    order = client.get(f"/orders/{order_id}", headers=assigned_job["buyer"]["headers"]).json()
    assert order["status"] == "delivered"
    assert order["logistics_job"]["status"] == "delivered"


def test_transporter_cannot_skip_states(client, assigned_job):
    job_id = assigned_job["job"]["id"]
    r = _set_status(client, job_id, "delivered", assigned_job["transporter"]["headers"])
    assert r.status_code == 409
    assert r.json()["error"] == "invalid_transition"


def test_pod_status_only_through_upload(client, assigned_job):
    r = _set_status(client, assigned_job["job"]["id"], "pod_uploaded", assigned_job["transporter"]["headers"])
    assert r.status_code == 422


def test_other_transporter_cannot_update(client, market, assigned_job):
    other = market.register("transporter", "Interloper")
    r = _set_status(client, assigned_job["job"]["id"], "in_transit", other["headers"])
    assert r.status_code == 403


def test_completion_requires_pod(client, assigned_job):
    job_id = assigned_job["job"]["id"]
    order_id = assigned_job["order"]["id"]
    headers = assigned_job["transporter"]["headers"]
    _set_status(client, job_id, "in_transit", headers)
    _set_status(client, job_id, "delivered", headers)

    r = _set_status(client, job_id, "completed", headers)
    assert r.status_code == 409
    assert r.json()["error"] == "missing_proof_of_delivery"

    r = _upload_pod(client, job_id, headers)
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "pod_uploaded"
    assert body["pod_url"].startswith("/static/pod_")
    assert body["pod_url"].endswith(".jpg")

    r = _set_status(client, job_id, "completed", headers)
    assert r.status_code == 200
    assert r.json()["completed_at"] is not None

    # Job completion does not close the order
    order = client.get(f"/orders/{order_id}", headers=ADMIN).json()
    assert order["status"] == "delivered"
    assert [d["document_type"] for d in order["documents"]] == ["pod"]

    r = client.post(f"/orders/{order_id}/complete", headers=ADMIN)
    assert r.status_code == 200
    assert r.json()["status"] == "completed"
    assert r.json()["completed_at"] is not None


def test_pod_before_delivery_rejected(client, assigned_job):
    r = _upload_pod(client, assigned_job["job"]["id"], assigned_job["transporter"]["headers"])
    assert r.status_code == 409


def test_order_cannot_complete_before_delivery(client, paid_order):
    r = client.post(f"/orders/{paid_order['order']['id']}/complete", headers=ADMIN)
    assert r.status_code == 409


def test_order_detail_hides_costs(client, accepted_order):
    order = client.get(
        f"/orders/{accepted_order['order']['id']}", headers=accepted_order["buyer"]["headers"]
    ).json()
    assert order["offer"]["final_total"] == 16675.0
    assert "supplier_cost" not in order["offer"]
    assert order["rfq_reference"] == accepted_order["rfq"]["reference_number"]
    assert order["logistics_job"] is None


def test_orders_scoped_to_buyer(client, market, accepted_order):
    stranger = market.register("buyer")
    assert client.get("/orders", headers=stranger["headers"]).json() == []
    assert client.get(f"/orders/{accepted_order['order']['id']}", headers=stranger["headers"]).status_code == 403
    mine = client.get("/orders", headers=accepted_order["buyer"]["headers"]).json()
    assert [o["id"] for o in mine] == [accepted_order["order"]["id"]]


def test_attach_invoice(client, accepted_order):
    order_id = accepted_order["order"]["id"]
    r = client.post(
        f"/orders/{order_id}/documents",
        data={"document_type": "invoice"},
        files={"file": ("INV-001.pdf", b"%PDF-1.4 invoice", "application/pdf")},
        headers=ADMIN,
    )
    assert r.status_code == 201
    doc = r.json()
    assert doc["filename"] == "INV-001.pdf"
    assert doc["url"].startswith("/static/invoice_")

    served = client.get(doc["url"])
    assert served.status_code == 200
    assert served.content == b"%PDF-1.4 invoice"

    bad = client.post(
        f"/orders/{order_id}/documents",
        data={"document_type": "receipt"},
        files={"file": ("x.pdf", b"x", "application/pdf")},
        headers=ADMIN,
    )
    assert bad.status_code == 422


def test_suspended_transporter_cannot_move_claimed_job(client, assigned_job):
    job_id = assigned_job["job"]["id"]
    transporter = assigned_job["transporter"]
    client.patch(f"/profiles/{transporter['id']}/approval", json={"is_approved": False}, headers=ADMIN)

    r = _set_status(client, job_id, "in_transit", transporter["headers"])
    assert r.status_code == 403
    assert r.json()["error"] == "permission_denied"
    assert _upload_pod(client, job_id, transporter["headers"]).status_code == 403

    jobs = client.get("/jobs", headers=ADMIN).json()
    assert jobs[0]["status"] == "assigned"
    order = client.get(f"/orders/{assigned_job['order']['id']}", headers=ADMIN).json()
    assert order["status"] == "payment_verified"


def test_failed_pod_save_leaves_no_file(client, monkeypatch, assigned_job):
    job_id = assigned_job["job"]["id"]
    headers = assigned_job["transporter"]["headers"]
    _set_status(client, job_id, "in_transit", headers)
    _set_status(client, job_id, "delivered", headers)
    config.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    before = set(config.UPLOAD_DIR.iterdir())

    def broken_record(*args, **kwargs):
        raise RuntimeError("audit store unavailable")

    monkeypatch.setattr(audit, "record", broken_record)
    with pytest.raises(RuntimeError):
        _upload_pod(client, job_id, headers)
    monkeypatch.undo()

    assert set(config.UPLOAD_DIR.iterdir()) == before
    jobs = client.get("/jobs", headers=ADMIN).json()
    assert jobs[0]["status"] == "delivered"
    assert jobs[0]["pod_url"] is None
