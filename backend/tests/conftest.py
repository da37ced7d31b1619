import os
import tempfile
from datetime import date, timedelta

# Point the app at a throwaway SQLite file before anything imports marketplace.config
_TMP = tempfile.mkdtemp(prefix="marketplace-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")

import pytest
from fastapi.testclient import TestClient

from marketplace.database import SessionLocal, engine
from marketplace.main import app
from marketplace.models.base import Base

ADMIN_ID = 9000


def actor(user_id: int, role: str) -> dict:
    return {"X-User-Id": str(user_id), "X-User-Role": role}


ADMIN = actor(ADMIN_ID, "admin")


class Market:
    """Walks the API the way the three portals do."""

    def __init__(self, client: TestClient):
        self.client = client

    def register(self, role: str, company: str = "Acme", city: str | None = None, approve: bool = True) -> dict:
        r = self.client.post("/profiles", json={"company_name": company, "role": role, "city": city})
        assert r.status_code == 201, r.text
        profile = r.json()
        if approve and not profile["is_approved"]:
            r = self.client.patch(f"/profiles/{profile['id']}/approval", json={"is_approved": True}, headers=ADMIN)
            assert r.status_code == 200, r.text
            profile = r.json()
        profile["headers"] = actor(profile["id"], role)
        return profile

    def create_rfq(self, buyer: dict, **overrides) -> dict:
        payload = {
            "product_name": "Portland cement 42.5N",
            "quantity": 100,
            "unit": "bags",
            "delivery_address": "12 Church Street",
            "delivery_city": "Pretoria",
            "delivery_province": "Gauteng",
        }
        payload.update(overrides)
        r = self.client.post("/rfqs", json=payload, headers=buyer["headers"])
        assert r.status_code == 201, r.text
        return r.json()

    def quote(self, supplier: dict, rfq_id: int, price_per_unit=100, lead_time_days=5, valid_days=30):
        return self.client.put(
            f"/rfqs/{rfq_id}/quote",
            json={
                "price_per_unit": price_per_unit,
                "lead_time_days": lead_time_days,
                "valid_until": (date.today() + timedelta(days=valid_days)).isoformat(),
            },
            headers=supplier["headers"],
        )

    def add_distance(self, city_from: str, city_to: str, km) -> dict:
        r = self.client.post(
            "/distances",
            json={"city_from": city_from, "city_to": city_to, "distance_km": km},
            headers=ADMIN,
        )
        assert r.status_code == 200, r.text
        return r.json()

    def create_offer(self, supplier_quote_id: int, **overrides):
        payload = {
            "supplier_quote_id": supplier_quote_id,
            "margin_percent": 15,
            "logistics_rate_per_km": 25,
            "min_logistics_fee": 1500,
        }
        payload.update(overrides)
        return self.client.post("/offers", json=payload, headers=ADMIN)


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def market(client):
    return Market(client)


@pytest.fixture
def quoted_rfq(market):
    """RFQ from Pretoria with one Johannesburg quote of 100 x 100, route 120 km."""
    buyer = market.register("buyer", "BuildRight")
    supplier = market.register("supplier", "CemCo", city="Johannesburg")
    market.add_distance("Johannesburg", "Pretoria", 120)
    rfq = market.create_rfq(buyer)
    r = market.quote(supplier, rfq["id"])
    assert r.status_code == 200, r.text
    return {"buyer": buyer, "supplier": supplier, "rfq": rfq, "quote": r.json()}


@pytest.fixture
def offered(market, quoted_rfq):
    r = market.create_offer(quoted_rfq["quote"]["id"])
    assert r.status_code == 201, r.text
    return {**quoted_rfq, "offer": r.json()}


@pytest.fixture
def accepted_order(client, offered):
    r = client.post(f"/offers/{offered['offer']['offer_id']}/accept", headers=offered["buyer"]["headers"])
    assert r.status_code == 201, r.text
    return {**offered, "order": r.json()}
