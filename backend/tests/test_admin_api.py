from conftest import ADMIN

from marketplace import config


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "service": "marketplace-backend"}


def test_audit_trail_follows_rfq(client, accepted_order):
    rfq_id = accepted_order["rfq"]["id"]
    events = client.get("/admin/audit", params={"entity_type": "rfq", "entity_id": rfq_id}, headers=ADMIN).json()
    assert [e["action"] for e in events] == ["created", "sourcing", "quoted", "accepted"]
    assert events[0]["actor"] == f"buyer:{accepted_order['buyer']['id']}"
    assert events[2]["actor"] == "admin:9000"


def test_audit_is_admin_only(client, accepted_order):
    r = client.get("/admin/audit", headers=accepted_order["buyer"]["headers"])
    assert r.status_code == 403


def test_reset_clears_data_and_uploads(client, market):
    market.register("buyer")
    config.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    (config.UPLOAD_DIR / "stray.pdf").write_bytes(b"x")

    r = client.post("/admin/reset", headers=ADMIN)
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert client.get("/profiles", headers=ADMIN).json() == []
    assert not (config.UPLOAD_DIR / "stray.pdf").exists()
