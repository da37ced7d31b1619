#!/usr/bin/env python3
"""
Load demo data and walk one RFQ through the whole marketplace flow.

Run with backend up:
  uvicorn marketplace.main:app --reload (from backend dir)

Usage:
  python scripts/create_demo_data.py
  python scripts/create_demo_data.py --base http://localhost:8001
  python scripts/create_demo_data.py --stop-at offer

--stop-at leaves the flow at rfq | quote | offer | order | job so each portal can be
tried by hand from that point.

Writes: scripts/demo_data.json with the created profile, RFQ, offer, order and job IDs.
"""

import json
import os
import sys
import urllib.error
import urllib.request
import uuid
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

# Default: backend on port 8001 (Docker or local)
BASE_URL = os.environ.get("API_BASE", "http://localhost:8001").rstrip("/")
ADMIN_ID = int(os.environ.get("DEMO_ADMIN_ID", "1"))

STAGES = ["rfq", "quote", "offer", "order", "job", "delivered"]

DISTANCES = [
    ("Johannesburg", "Pretoria", 58),
    ("Johannesburg", "Durban", 568),
    ("Johannesburg", "Cape Town", 1398),
    ("Johannesburg", "Bloemfontein", 398),
    ("Durban", "Pretoria", 626),
    ("Cape Town", "Port Elizabeth", 756),
]


def claims(user_id: int, role: str) -> dict:
    return {"X-User-Id": str(user_id), "X-User-Role": role}


def request(method: str, path: str, body: dict | None = None, headers: dict | None = None) -> dict:
    url = f"{BASE_URL}{path}"
    data = None
    all_headers = dict(headers or {})
    if body is not None:
        data = json.dumps(body).encode("utf-8")
        all_headers["Content-Type"] = "application/json"
    req = urllib.request.Request(url, data=data, method=method, headers=all_headers)
    return _send(req, path)


def upload(path: str, filename: str, content: bytes, headers: dict, fields: dict | None = None) -> dict:
    """multipart/form-data POST with one file part."""
    boundary = uuid.uuid4().hex
    parts = []
    for name, value in (fields or {}).items():
        parts.append(
            f'--{boundary}\r\nContent-Disposition: form-data; name="{name}"\r\n\r\n{value}\r\n'.encode("utf-8")
        )
    parts.append(
        (
            f'--{boundary}\r\nContent-Disposition: form-data; name="file"; filename="{filename}"\r\n'
            "Content-Type: application/octet-stream\r\n\r\n"
        ).encode("utf-8")
        + content
        + b"\r\n"
    )
    parts.append(f"--{boundary}--\r\n".encode("utf-8"))
    req = urllib.request.Request(
        f"{BASE_URL}{path}",
        data=b"".join(parts),
        method="POST",
        headers={**headers, "Content-Type": f"multipart/form-data; boundary={boundary}"},
    )
    return _send(req, path)


def _send(req: urllib.request.Request, path: str) -> dict:
    try:
        with urllib.request.urlopen(req, timeout=30) as resp:
            return json.loads(resp.read().decode("utf-8"))
    except urllib.error.HTTPError as e:
        err_body = e.read().decode("utf-8") if e.fp else ""
        raise SystemExit(f"HTTP {e.code} {path}: {err_body}")
    except urllib.error.URLError as e:
        raise SystemExit(f"Request failed (is the backend running at {BASE_URL}?): {e.reason}")


def register(company: str, role: str, city: str, province: str, admin: dict) -> dict:
    profile = request("POST", "/profiles", body={
        "company_name": company,
        "role": role,
        "contact_email": f"ops@{company.lower().replace(' ', '')}.co.za",
        "city": city,
        "province": province,
    })
    if not profile["is_approved"]:
        profile = request("PATCH", f"/profiles/{profile['id']}/approval", body={"is_approved": True}, headers=admin)
    print(f"  {role:<11} id={profile['id']} {company} ({city})")
    return profile


def main() -> None:
    global BASE_URL
    if "--help" in sys.argv or "-h" in sys.argv:
        print(__doc__)
        sys.exit(0)
    stop_at = STAGES[-1]
    for i, arg in enumerate(sys.argv):
        if arg == "--base" and i + 1 < len(sys.argv):
            BASE_URL = sys.argv[i + 1].rstrip("/")
        if arg == "--stop-at" and i + 1 < len(sys.argv):
            stop_at = sys.argv[i + 1]
    if stop_at not in STAGES:
        raise SystemExit(f"--stop-at must be one of {', '.join(STAGES)}")

    def reached(stage: str) -> bool:
        return STAGES.index(stage) >= STAGES.index(stop_at)

    admin = claims(ADMIN_ID, "admin")
    print(f"Using API base: {BASE_URL}")

    print("Profiles:")
    buyer = register("BuildRight Construction", "buyer", "Pretoria", "Gauteng", admin)
    supplier_a = register("Highveld Cement", "supplier", "Johannesburg", "Gauteng", admin)
    supplier_b = register("Coastal Aggregates", "supplier", "Durban", "KwaZulu-Natal", admin)
    transporter = register("N1 Freight", "transporter", "Johannesburg", "Gauteng", admin)
    buyer_h = claims(buyer["id"], "buyer")
    transporter_h = claims(transporter["id"], "transporter")

    print("Distances:")
    for a, b, km in DISTANCES:
        request("POST", "/distances", body={"city_from": a, "city_to": b, "distance_km": km}, headers=admin)
        print(f"  {a} <-> {b}: {km} km")

    print("Catalog:")
    cement = request("POST", "/categories", body={"name": "Cement"}, headers=admin)
    product = request("POST", "/products", body={
        "category_id": cement["id"],
        "name": "Portland cement CEM II 42.5N",
        "description": "50kg bags, palletised",
        "price_per_unit": 98.5,
        "unit": "bags",
        "minimum_order_quantity": 40,
        "lead_time_days": 3,
    }, headers=claims(supplier_a["id"], "supplier"))
    print(f"  {cement['name']}: {product['name']} @ {product['price_per_unit']}/{product['unit']}")

    manifest = {
        "base_url": BASE_URL,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "profiles": {
            "admin": ADMIN_ID,
            "buyer": buyer["id"],
            "suppliers": [supplier_a["id"], supplier_b["id"]],
            "transporter": transporter["id"],
        },
        "catalog": {
            "category": cement["id"],
            "product": product["id"],
        },
    }

    rfq = request("POST", "/rfqs", body={
        "product_name": "Portland cement CEM II 42.5N",
        "product_category_id": cement["id"],
        "quantity": 400,
        "unit": "bags",
        "delivery_address": "Plot 14, Hennopspark Industrial",
        "delivery_city": "Pretoria",
        "delivery_province": "Gauteng",
        "required_by": (date.today() + timedelta(days=21)).isoformat(),
        "additional_notes": "Palletised, forklift on site.",
    }, headers=buyer_h)
    manifest["rfq"] = rfq["id"]
    print(f"RFQ {rfq['reference_number']} created")

    if not reached("rfq"):
        valid_until = (date.today() + timedelta(days=14)).isoformat()
        qa = request("PUT", f"/rfqs/{rfq['id']}/quote", body={
            "price_per_unit": 98.5, "lead_time_days": 3, "valid_until": valid_until,
        }, headers=claims(supplier_a["id"], "supplier"))
        qb = request("PUT", f"/rfqs/{rfq['id']}/quote", body={
            "price_per_unit": 91.0, "lead_time_days": 5, "valid_until": valid_until,
            "notes": "Price ex works Durban.",
        }, headers=claims(supplier_b["id"], "supplier"))
        manifest["quotes"] = [qa["id"], qb["id"]]
        print(f"  Quotes: {qa['total_price']} (Johannesburg), {qb['total_price']} (Durban)")

    if not reached("quote"):
        # Nearest supplier wins once logistics is included; preview both before publishing
        previews = [
            request("POST", "/offers/preview", body={"supplier_quote_id": q}, headers=admin)
            for q in manifest["quotes"]
        ]
        best = min(previews, key=lambda p: p["breakdown"]["final_total"])
        offer = request("POST", "/offers", body={"supplier_quote_id": best["supplier_quote_id"]}, headers=admin)
        manifest["offer"] = offer["offer_id"]
        print(f"Offer {offer['offer_id']}: final total {offer['breakdown']['final_total']} incl. VAT")

    if not reached("offer"):
        order = request("POST", f"/offers/{manifest['offer']}/accept", headers=buyer_h)
        manifest["order"] = order["id"]
        print(f"Order {order['order_number']} created")
        request("POST", f"/orders/{order['id']}/verify-payment", headers=admin)
        print("  Payment verified")

    if not reached("order"):
        job = request("POST", f"/orders/{manifest['order']}/logistics-job", headers=admin)
        manifest["job"] = job["id"]
        print(f"Logistics job {job['id']}: {job['pickup_city']} -> {job['delivery_city']}")

    if not reached("job"):
        job_id = manifest["job"]
        request("POST", f"/jobs/{job_id}/claim", headers=transporter_h)
        for status in ("picked_up", "in_transit", "delivered"):
            request("PATCH", f"/jobs/{job_id}/status", body={"status": status}, headers=transporter_h)
            print(f"  Job {status}")
        upload(f"/jobs/{job_id}/pod", "pod.txt", b"Received in good order.", transporter_h)
        request("PATCH", f"/jobs/{job_id}/status", body={"status": "completed"}, headers=transporter_h)
        print("  POD uploaded, job completed")

    script_dir = Path(__file__).resolve().parent
    manifest_path = script_dir / "demo_data.json"
    manifest_path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    print(f"  Manifest: {manifest_path}")

    print("\nDone. Next:")
    print(f"  1. GET /orders as buyer {buyer['id']} to see the order.")
    print("  2. POST /orders/{id}/complete as admin to sign it off.")


if __name__ == "__main__":
    main()
