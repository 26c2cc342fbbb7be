import pytest

from pawfund.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from pawfund.services import auth_service, case_service, donation_service
from pawfund.services.case_service import parse_cost_breakdown, resolve_target_amount


def test_breakdown_mapping_drops_zero_items():
    items = parse_cost_breakdown({"surgery": "300", "medicine": 0, "recovery": 50})
    assert items == [{"item": "surgery", "cost": 300.0}, {"item": "recovery", "cost": 50.0}]


def test_breakdown_list_and_json_string():
    assert parse_cost_breakdown('[{"item": "x-ray", "cost": 40}]') == [{"item": "x-ray", "cost": 40.0}]


@pytest.mark.parametrize(
    "raw",
    [{"grooming": 10}, [{"cost": 5}], [{"item": "x", "cost": -1}], "not json", 42],
)
def test_bad_breakdowns(raw):
    with pytest.raises(ValidationError):
        parse_cost_breakdown(raw)


def test_breakdown_sum_wins_over_target():
    items = parse_cost_breakdown({"surgery": 100, "other": 25.25})
    assert resolve_target_amount(999, items) == 125.25
    assert resolve_target_amount("80", []) == 80.0
    with pytest.raises(ValidationError):
        resolve_target_amount(None, [])
    with pytest.raises(ValidationError):
        resolve_target_amount(0, [])


def test_create_case_saves_request_address(store):
    welfare = store.seed_welfare(wallet=None)
    case = case_service.create_case(
        welfare_id=welfare["id"],
        title="Rex",
        description="hip surgery",
        cost_breakdown=[{"item": "surgery", "cost": 400}],
        blockchain_address="0xnew",
    )
    assert case["target_amount"] == 400.0
    assert case["welfare_address"] == "0xnew"
    assert store.tables["welfare"][welfare["id"]]["blockchain_address"] == "0xnew"


def test_create_case_needs_an_address(store):
    welfare = store.seed_welfare(wallet=None)
    with pytest.raises(ValidationError):
        case_service.create_case(welfare_id=welfare["id"], title="Rex", description="d", target_amount=10)
    assert store.tables["cases"] == {}


def test_assign_doctor_ownership(store):
    welfare = store.seed_welfare()
    other = store.seed_welfare(name="Other")
    case = store.seed_case(welfare["id"])
    mine = store.seed_doctor(welfare["id"])
    theirs = store.seed_doctor(other["id"])

    out = case_service.assign_doctor(welfare_id=welfare["id"], case_id=case["id"], doctor_id=mine["id"])
    assert out["assigned_doctor"] == mine["id"]

    with pytest.raises(ForbiddenError):
        case_service.assign_doctor(welfare_id=welfare["id"], case_id=case["id"], doctor_id=theirs["id"])
    with pytest.raises(ForbiddenError):
        case_service.assign_doctor(welfare_id=other["id"], case_id=case["id"], doctor_id=theirs["id"])
    assert case_service.doctor_cases(mine["id"])[0]["id"] == case["id"]


# -- HTTP -------------------------------------------------------------------


def test_welfare_case_endpoints(client, auth, store):
    welfare = store.seed_welfare()
    headers = auth("welfare", welfare["id"])

    resp = client.post(
        "/api/welfare/cases",
        json={"title": "Milo", "description": "dental", "costBreakdown": {"surgery": 150, "medicine": 30}},
        headers=headers,
    )
    assert resp.status_code == 201
    case = resp.get_json()
    assert case["target_amount"] == 180.0

    assert [c["id"] for c in client.get("/api/welfare/cases", headers=headers).get_json()] == [case["id"]]
    assert [c["id"] for c in client.get("/api/cases").get_json()] == [case["id"]]
    assert client.get(f"/api/cases/{case['id']}").get_json()["title"] == "Milo"
    assert client.get("/api/cases/missing").status_code == 404


def test_blockchain_address_endpoint(client, auth, store):
    welfare = store.seed_welfare(wallet=None)
    headers = auth("welfare", welfare["id"])
    resp = client.put("/api/welfare/blockchain-address", json={"blockchainAddress": "0xabc"}, headers=headers)
    assert resp.status_code == 200
    assert client.get("/api/welfare/profile", headers=headers).get_json()["blockchain_address"] == "0xabc"
    resp = client.put("/api/welfare/blockchain-address", json={}, headers=headers)
    assert resp.status_code == 400


def test_doctor_endpoints(client, auth, store):
    welfare = store.seed_welfare()
    case = store.seed_case(welfare["id"])
    headers = auth("welfare", welfare["id"])

    resp = client.post(
        "/api/doctors",
        json={"name": "Dr. Ada", "email": "ada@vet.test", "password": "longenough", "specialization": "Ortho"},
        headers=headers,
    )
    assert resp.status_code == 201
    doctor = resp.get_json()
    assert "password_hash" not in doctor

    resp = client.post(f"/api/doctors/{doctor['id']}/assign-case", json={"caseId": case["id"]}, headers=headers)
    assert resp.status_code == 200

    mine = client.get("/api/doctors/me/cases", headers=auth("doctor", doctor["id"])).get_json()
    assert [c["id"] for c in mine] == [case["id"]]


@pytest.mark.parametrize("raw", [{"surgery": "nan"}, [{"item": "x", "cost": "inf"}], {"medicine": float("nan")}])
def test_non_finite_breakdown_costs_rejected(raw):
    with pytest.raises(ValidationError):
        parse_cost_breakdown(raw)


@pytest.mark.parametrize("target", ["nan", "inf", "-inf", float("inf")])
def test_non_finite_target_rejected(target):
    with pytest.raises(ValidationError):
        resolve_target_amount(target, [])


def test_delete_case_only_without_donations(store, fake_redis):
    welfare = store.seed_welfare()
    other = store.seed_welfare(name="Other")
    donor = store.seed_donor()
    empty = store.seed_case(welfare["id"])
    funded = store.seed_case(welfare["id"], title="Funded")
    donation_service.record_donation(donor_id=donor["id"], case_id=funded["id"], amount=0.1, tx_hash="0xf")

    with pytest.raises(ForbiddenError):
        case_service.delete_case(welfare_id=other["id"], case_id=empty["id"])
    with pytest.raises(ConflictError):
        case_service.delete_case(welfare_id=welfare["id"], case_id=funded["id"])
    assert funded["id"] in store.tables["cases"]

    out = case_service.delete_case(welfare_id=welfare["id"], case_id=empty["id"])
    assert out == {"deleted": True, "case_id": empty["id"]}
    assert empty["id"] not in store.tables["cases"]
    with pytest.raises(NotFoundError):
        case_service.delete_case(welfare_id=welfare["id"], case_id=empty["id"])


def test_deactivated_doctor_loses_cases_and_assignments(store):
    welfare = store.seed_welfare()
    other = store.seed_welfare(name="Other")
    doctor = store.seed_doctor(welfare["id"])
    case = store.seed_case(welfare["id"])
    case_service.assign_doctor(welfare_id=welfare["id"], case_id=case["id"], doctor_id=doctor["id"])

    with pytest.raises(ForbiddenError):
        auth_service.deactivate_doctor(other["id"], doctor["id"])
    out = auth_service.deactivate_doctor(welfare["id"], doctor["id"])
    assert out["unassignedCases"] == 1
    assert out["doctor"]["is_active"] is False
    assert store.tables["cases"][case["id"]]["assigned_doctor"] is None

    with pytest.raises(ConflictError):
        auth_service.deactivate_doctor(welfare["id"], doctor["id"])
    with pytest.raises(ConflictError):
        case_service.assign_doctor(welfare_id=welfare["id"], case_id=case["id"], doctor_id=doctor["id"])


def test_case_delete_endpoint(client, auth, store):
    welfare = store.seed_welfare()
    case = store.seed_case(welfare["id"])
    other = store.seed_welfare(name="Other")

    resp = client.delete(f"/api/welfare/cases/{case['id']}", headers=auth("welfare", other["id"]))
    assert resp.status_code == 403
    resp = client.delete(f"/api/welfare/cases/{case['id']}", headers=auth("welfare", welfare["id"]))
    assert resp.status_code == 200
    assert client.get(f"/api/cases/{case['id']}").status_code == 404


def test_doctor_edit_and_deactivate_endpoints(client, auth, store):
    welfare = store.seed_welfare()
    headers = auth("welfare", welfare["id"])
    doctor = client.post(
        "/api/doctors",
        json={"name": "Dr. Ada", "email": "ada@vet.test", "password": "longenough", "specialization": "Ortho"},
        headers=headers,
    ).get_json()
    taken = store.seed_donor()

    resp = client.put(f"/api/doctors/{doctor['id']}", json={"specialization": "Dental"}, headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()["specialization"] == "Dental"
    assert resp.get_json()["name"] == "Dr. Ada"
    resp = client.put(f"/api/doctors/{doctor['id']}", json={"email": taken["email"]}, headers=headers)
    assert resp.status_code == 409

    login = {"email": "ada@vet.test", "password": "longenough", "role": "doctor"}
    assert client.post("/api/auth/login", json=login).status_code == 200
    assert client.delete(f"/api/doctors/{doctor['id']}", headers=headers).status_code == 200
    assert client.delete(f"/api/doctors/{doctor['id']}", headers=headers).status_code == 409
    assert client.post("/api/auth/login", json=login).status_code == 403


def test_limit_query_is_validated_and_clamped(client, monkeypatch):
    seen = []
    monkeypatch.setattr(case_service, "active_cases", lambda limit: seen.append(limit) or [])

    assert client.get("/api/cases?limit=abc").status_code == 400
    assert client.get("/api/cases?limit=-5").status_code == 200
    assert client.get("/api/cases?limit=100000").status_code == 200
    assert client.get("/api/cases").status_code == 200
    assert seen == [1, 200, 50]
    assert client.get("/api/case-updates/success-stories?limit=1.5").status_code == 400
