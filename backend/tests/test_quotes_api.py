from conftest import ADMIN


def test_first_quote_moves_rfq_to_sourcing(client, quoted_rfq):
    quote = quoted_rfq["quote"]
    assert quote["total_price"] == 10000.0
    assert quote["is_selected"] is False
    rfq = client.get(f"/rfqs/{quoted_rfq['rfq']['id']}", headers=ADMIN).json()
    assert rfq["status"] == "sourcing"


def test_unapproved_supplier_cannot_quote(market):
    buyer = market.register("buyer")
    supplier = market.register("supplier", approve=False)
    rfq = market.create_rfq(buyer)
    r = market.quote(supplier, rfq["id"])
    assert r.status_code == 403


def test_resubmit_updates_the_same_quote(client, market, quoted_rfq):
    r = market.quote(quoted_rfq["supplier"], quoted_rfq["rfq"]["id"], price_per_unit="87.50", lead_time_days=3)
    assert r.status_code == 200
    body = r.json()
    assert body["id"] == quoted_rfq["quote"]["id"]
    assert body["total_price"] == 8750.0
    assert body["lead_time_days"] == 3

    rows = client.get(f"/rfqs/{quoted_rfq['rfq']['id']}/quotes", headers=ADMIN).json()
    assert len(rows) == 1


def test_admin_sees_quotes_cheapest_first(client, market, quoted_rfq):
    cheap = market.register("supplier", "Budget Bricks", city="Polokwane")
    market.quote(cheap, quoted_rfq["rfq"]["id"], price_per_unit=80)
    rows = client.get(f"/rfqs/{quoted_rfq['rfq']['id']}/quotes", headers=ADMIN).json()
    assert [r["supplier_company"] for r in rows] == ["Budget Bricks", "CemCo"]
    assert rows[0]["supplier_city"] == "Polokwane"


def test_quote_validation(market, quoted_rfq):
    supplier, rfq_id = quoted_rfq["supplier"], quoted_rfq["rfq"]["id"]
    assert market.quote(supplier, rfq_id, price_per_unit=0).status_code == 422
    assert market.quote(supplier, rfq_id, lead_time_days=-1).status_code == 422
    r = market.quote(supplier, rfq_id, valid_days=-1)
    assert r.status_code == 422
    assert r.json()["error"] == "validation_error"


def test_cannot_quote_on_cancelled_rfq(client, market, quoted_rfq):
    client.post(f"/rfqs/{quoted_rfq['rfq']['id']}/cancel", headers=quoted_rfq["buyer"]["headers"])
    r = market.quote(quoted_rfq["supplier"], quoted_rfq["rfq"]["id"])
    assert r.status_code == 409


def test_selected_quote_is_frozen(market, offered):
    r = market.quote(offered["supplier"], offered["rfq"]["id"], price_per_unit=1)
    assert r.status_code == 409


def test_my_quotes_show_state(client, market, offered):
    other_buyer = market.register("buyer")
    rfq2 = market.create_rfq(other_buyer, product_name="River sand")
    market.quote(offered["supplier"], rfq2["id"], price_per_unit=10)
    headers = offered["supplier"]["headers"]

    rows = client.get("/quotes/mine", headers=headers).json()
    states = {r["product_name"]: r["state"] for r in rows}
    assert states == {"Portland cement 42.5N": "selected", "River sand": "pending"}

    selected = client.get("/quotes/mine", params={"state": "selected"}, headers=headers).json()
    assert [r["rfq_id"] for r in selected] == [offered["rfq"]["id"]]
    assert selected[0]["rfq_status"] == "quoted"


def test_supplier_reads_own_quote(client, quoted_rfq):
    rfq_id = quoted_rfq["rfq"]["id"]
    r = client.get(f"/rfqs/{rfq_id}/quote", headers=quoted_rfq["supplier"]["headers"])
    assert r.status_code == 200
    assert r.json()["id"] == quoted_rfq["quote"]["id"]


def test_supplier_never_sees_the_client_offer(client, offered):
    r = client.get(f"/rfqs/{offered['rfq']['id']}/offer", headers=offered["supplier"]["headers"])
    assert r.status_code == 403
