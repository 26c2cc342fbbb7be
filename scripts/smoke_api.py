#!/usr/bin/env python3
"""
Walk the adoption and donation flows against a running server.

Usage:
  python scripts/smoke_api.py [--base URL]

  Start the server first (PORT=5050 python run.py) and seed the DB
  (python scripts/seed.py --force). Set ETH_USD_RATE on the server to
  avoid depending on the price API.
"""
import argparse
import sys
import uuid

import requests

BASE = "http://127.0.0.1:5050"
PASSWORD = "demo123456"


def call(method, path, token=None, **kw):
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    try:
        resp = requests.request(method, f"{BASE}{path}", headers=headers, timeout=10, **kw)
    except requests.RequestException as e:
        print(f"Connection error: {e}")
        sys.exit(2)
    try:
        body = resp.json()
    except ValueError:
        body = {"raw": resp.text}
    return resp.status_code, body


def login(email, role):
    code, body = call(
        "POST", "/api/auth/login", json={"email": email, "password": PASSWORD, "role": role}
    )
    if code != 200:
        print(f"login {email} failed: {code} {body}")
        sys.exit(1)
    return body["access_token"]


def main():
    global BASE
    ap = argparse.ArgumentParser()
    ap.add_argument("--base", default=BASE, help=f"Base URL (default: {BASE})")
    BASE = ap.parse_args().base.rstrip("/")

    checks = []

    def check(label, cond, detail=""):
        checks.append(cond)
        print(f"  [{'OK' if cond else 'FAIL'}] {label} {detail}")

    donor = login("donor@example.com", "donor")
    welfare = login("shelter@example.com", "welfare")

    print("1. Adoption request ...")
    _, listings = call("GET", "/api/adoptions?status=available")
    check("available listing exists", bool(listings))
    adoption_id = listings[0]["id"]
    code, req = call(
        "POST",
        "/api/adoption-request",
        donor,
        json={
            "adoptionId": adoption_id,
            "donorName": "Demo Donor",
            "contactNumber": "+1 555 0111",
            "email": "donor@example.com",
            "reason": "Quiet home with a garden.",
            "preferredContact": "email",
        },
    )
    check("request created", code == 201, str(code))
    rid = req.get("id")

    code, out = call("PATCH", f"/api/adoption-request/{rid}", welfare, json={"status": "approved"})
    check("approved", code == 200 and out["request"]["status"] == "approved", str(code))

    code, out = call(
        "POST", f"/api/adoption-request/{rid}/payment", donor,
        json={"amount": 25, "fromAddress": "0xabc"},
    )
    check("underpayment rejected", code == 400, str(code))

    code, out = call(
        "POST", f"/api/adoption-request/{rid}/payment", donor,
        json={"amount": 30, "fromAddress": "0xabc"},
    )
    check("payment under review", code == 200 and out["request"]["status"] == "under review")

    code, out = call(
        "POST", f"/api/adoption-request/{rid}/verify-payment", welfare, json={"verified": True}
    )
    check("completed", code == 200 and out["request"]["status"] == "completed")
    check("listing adopted", out.get("adoption", {}).get("status") == "adopted")

    print("2. Donation ...")
    _, cases = call("GET", "/api/cases")
    case_id = cases[0]["id"]
    before = float(cases[0]["amount_raised"])
    tx = "0x" + uuid.uuid4().hex * 2
    code, out = call(
        "POST", "/api/donor/donate", donor,
        json={"caseId": case_id, "amount": 0.01, "txHash": tx},
    )
    check("donation recorded", code == 201, str(code))
    after = float(out["case"]["amount_raised"])
    check("balance increased", after > before, f"{before} -> {after}")
    code, _ = call(
        "POST", "/api/donor/donate", donor,
        json={"caseId": case_id, "amount": 0.01, "txHash": tx},
    )
    check("duplicate txHash conflict", code == 409, str(code))

    failed = checks.count(False)
    print(f"\n{len(checks) - failed} passed, {failed} failed")
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
