from datetime import datetime, timedelta, timezone
from decimal import Decimal

from conftest import ADMIN

from marketplace.models.client_offer import ClientOffer
from marketplace.models.order import Order

BUYER_OFFER_FIELDS = {"id", "rfq_id", "vat_percent", "final_total", "estimated_delivery_days", "valid_until", "status"}


def test_preview_prices_without_writing(client, quoted_rfq):
    r = client.post("/offers/preview", json={"supplier_quote_id": quoted_rfq["quote"]["id"]}, headers=ADMIN)
    assert r.status_code == 200
    body = r.json()
    assert body["pickup_city"] == "Johannesburg"
    assert body["distance_source"] == "table"
    assert body["breakdown"]["final_total"] == 16675.0
    assert body["estimated_delivery_days"] == 6

    rfq = client.get(f"/rfqs/{quoted_rfq['rfq']['id']}", headers=ADMIN).json()
    assert rfq["status"] == "sourcing"
    assert client.get(f"/rfqs/{rfq['id']}/offer", headers=ADMIN).status_code == 404


def test_create_offer(client, offered):
    offer = offered["offer"]
    b = offer["breakdown"]
    assert offer["status"] == "pending"
    assert b["margin_amount"] == 1500.0
    assert b["logistics_fee"] == 3000.0
    assert b["subtotal"] == 14500.0
    assert b["vat_amount"] == 2175.0
    assert b["final_total"] == 16675.0

    rfq = client.get(f"/rfqs/{offered['rfq']['id']}", headers=ADMIN).json()
    assert rfq["status"] == "quoted"
    quote = client.get(f"/rfqs/{rfq['id']}/quote", headers=offered["supplier"]["headers"]).json()
    assert quote["is_selected"] is True


def test_offer_valid_for_requested_days(market, quoted_rfq):
    r = market.create_offer(quoted_rfq["quote"]["id"], valid_days=3)
    valid_until = datetime.fromisoformat(r.json()["valid_until"])
    if valid_until.tzinfo is None:
        valid_until = valid_until.replace(tzinfo=timezone.utc)
    delta = valid_until - datetime.now(timezone.utc)
    assert timedelta(days=2, hours=23) < delta <= timedelta(days=3)


def test_buyer_sees_final_price_only(client, offered):
    rfq_id = offered["rfq"]["id"]
    buyer_view = client.get(f"/rfqs/{rfq_id}/offer", headers=offered["buyer"]["headers"]).json()
    assert set(buyer_view) == BUYER_OFFER_FIELDS
    assert buyer_view["final_total"] == 16675.0

    admin_view = client.get(f"/rfqs/{rfq_id}/offer", headers=ADMIN).json()
    assert admin_view["supplier_cost"] == 10000.0
    assert admin_view["margin_amount"] == 1500.0
    assert admin_view["logistics_fee"] == 3000.0


def test_other_buyer_cannot_see_offer(client, market, offered):
    stranger = market.register("buyer")
    r = client.get(f"/rfqs/{offered['rfq']['id']}/offer", headers=stranger["headers"])
    assert r.status_code == 403


def test_same_quote_cannot_be_selected_twice(market, offered):
    r = market.create_offer(offered["quote"]["id"])
    assert r.status_code == 409
    assert r.json()["error"] == "already_selected"


def test_second_quote_cannot_be_offered_on_quoted_rfq(market, offered):
    rival = market.register("supplier", "Rival", city="Johannesburg")
    # RFQ is already quoted, so the rival cannot even submit
    assert market.quote(rival, offered["rfq"]["id"]).status_code == 409


def test_only_one_quote_selected_per_rfq(client, market, quoted_rfq, db):
    rival = market.register("supplier", "Rival", city="Johannesburg")
    rival_quote = market.quote(rival, quoted_rfq["rfq"]["id"], price_per_unit=90).json()

    first = market.create_offer(quoted_rfq["quote"]["id"])
    assert first.status_code == 201
    second = market.create_offer(rival_quote["id"])
    assert second.status_code == 409

    assert db.query(ClientOffer).count() == 1
    rows = client.get(f"/rfqs/{quoted_rfq['rfq']['id']}/quotes", headers=ADMIN).json()
    assert [r["is_selected"] for r in rows] == [False, True]


def test_missing_distance_blocks_offer(market):
    buyer = market.register("buyer")
    supplier = market.register("supplier", city="Cape Town")
    rfq = market.create_rfq(buyer, delivery_city="Bloemfontein")
    quote = market.quote(supplier, rfq["id"]).json()

    r = market.create_offer(quote["id"])
    assert r.status_code == 422
    assert r.json()["error"] == "missing_distance"

    r = market.create_offer(quote["id"], distance_km=1000)
    assert r.status_code == 201
    body = r.json()
    assert body["distance_source"] == "manual"
    assert body["breakdown"]["logistics_fee"] == 25000.0


def test_same_city_uses_minimum_fee(market):
    buyer = market.register("buyer")
    supplier = market.register("supplier", city="pretoria")
    rfq = market.create_rfq(buyer)
    quote = market.quote(supplier, rfq["id"]).json()
    r = market.create_offer(quote["id"], logistics_rate_per_km=999)
    assert r.status_code == 201
    b = r.json()["breakdown"]
    assert b["distance_km"] == 0.0
    assert b["logistics_fee"] == 1500.0
    assert b["minimum_fee_applied"] is True


def test_pickup_city_override(market, quoted_rfq):
    market.add_distance("Pretoria", "Rustenburg", 110)
    r = market.create_offer(quoted_rfq["quote"]["id"], pickup_city="Rustenburg")
    assert r.status_code == 201
    assert r.json()["pickup_city"] == "Rustenburg"
    assert r.json()["breakdown"]["distance_km"] == 110.0


def test_margin_out_of_range(market, quoted_rfq):
    assert market.create_offer(quoted_rfq["quote"]["id"], margin_percent=120).status_code == 422


def test_non_admin_cannot_create_offer(client, quoted_rfq):
    r = client.post(
        "/offers",
        json={"supplier_quote_id": quoted_rfq["quote"]["id"]},
        headers=quoted_rfq["buyer"]["headers"],
    )
    assert r.status_code == 403


def test_accept_creates_order(client, offered, db):
    offer_id = offered["offer"]["offer_id"]
    r = client.post(f"/offers/{offer_id}/accept", headers=offered["buyer"]["headers"])
    assert r.status_code == 201
    order = r.json()
    assert order["order_number"].startswith("ORD-")
    assert order["total_amount"] == 16675.0
    assert order["vat_amount"] == 2175.0
    assert order["payment_status"] == "pending"
    assert order["status"] == "accepted"

    rfq = client.get(f"/rfqs/{offered['rfq']['id']}", headers=ADMIN).json()
    assert rfq["status"] == "accepted"
    offer = client.get(f"/offers/{offer_id}", headers=ADMIN).json()
    assert offer["status"] == "accepted"
    assert offer["accepted_at"] is not None

    again = client.post(f"/offers/{offer_id}/accept", headers=offered["buyer"]["headers"])
    assert again.status_code == 409
    assert db.query(Order).count() == 1


def test_only_owner_can_accept(client, market, offered):
    stranger = market.register("buyer")
    r = client.post(f"/offers/{offered['offer']['offer_id']}/accept", headers=stranger["headers"])
    assert r.status_code == 403


def test_expired_offer_cannot_be_accepted(client, offered, db):
    offer_id = offered["offer"]["offer_id"]
    offer = db.get(ClientOffer, offer_id)
    offer.valid_until = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.commit()

    r = client.post(f"/offers/{offer_id}/accept", headers=offered["buyer"]["headers"])
    assert r.status_code == 410
    assert r.json()["error"] == "offer_expired"

    db.expire_all()
    assert db.query(Order).count() == 0
    assert db.get(ClientOffer, offer_id).status == "pending"
    rfq = client.get(f"/rfqs/{offered['rfq']['id']}", headers=ADMIN).json()
    assert rfq["status"] == "quoted"


def test_accept_after_rfq_cancelled(client, offered, db):
    client.post(f"/rfqs/{offered['rfq']['id']}/cancel", headers=offered["buyer"]["headers"])
    r = client.post(f"/offers/{offered['offer']['offer_id']}/accept", headers=offered["buyer"]["headers"])
    assert r.status_code == 409
    db.expire_all()
    assert db.query(Order).count() == 0
    assert db.get(ClientOffer, offered["offer"]["offer_id"]).status == "pending"


def test_suspended_buyer_cannot_accept(client, offered, db):
    buyer = offered["buyer"]
    client.patch(f"/profiles/{buyer['id']}/approval", json={"is_approved": False}, headers=ADMIN)

    r = client.post(f"/offers/{offered['offer']['offer_id']}/accept", headers=buyer["headers"])
    assert r.status_code == 403
    assert r.json()["error"] == "permission_denied"
    assert db.query(Order).count() == 0
    assert db.get(ClientOffer, offered["offer"]["offer_id"]).status == "pending"


def test_pricing_inputs_limited_to_stored_precision(market, quoted_rfq):
    quote_id = quoted_rfq["quote"]["id"]
    assert market.create_offer(quote_id, margin_percent="12.345").status_code == 422
    assert market.create_offer(quote_id, logistics_rate_per_km="25.125").status_code == 422
    assert market.create_offer(quote_id, min_logistics_fee="1500.001").status_code == 422
    assert market.create_offer(quote_id, distance_km="120.005").status_code == 422


def test_stored_offer_reproduces_its_figures(client, market, quoted_rfq, db):
    r = market.create_offer(quoted_rfq["quote"]["id"], margin_percent="12.35", logistics_rate_per_km="25.12")
    assert r.status_code == 201
    offer = db.get(ClientOffer, r.json()["offer_id"])
    assert offer.margin_amount == (offer.supplier_cost * offer.margin_percent / 100).quantize(Decimal("0.01"))
    assert offer.logistics_fee == (offer.distance_km * offer.logistics_rate_per_km).quantize(Decimal("0.01"))
    assert offer.subtotal + offer.vat_amount == offer.final_total
