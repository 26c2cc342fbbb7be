import io

import pytest

from pawfund.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from pawfund.services import emergency_service


def _convert(welfare_id, emergency_id, **kw):
    body = dict(title="Save Rex", description="surgery needed", target_amount=300)
    body.update(kw)
    return emergency_service.convert_to_case(welfare_id=welfare_id, emergency_id=emergency_id, **body)


def test_conversion_creates_case_and_latches_emergency(store):
    welfare = store.seed_welfare()
    em = store.seed_emergency(images=["https://media.test/a.jpg", "https://media.test/b.jpg"])

    out = _convert(welfare["id"], em["id"])

    case = out["case"]
    assert case["image_urls"] == ["https://media.test/a.jpg"]
    assert case["welfare_address"] == welfare["blockchain_address"]
    assert case["emergency_id"] == em["id"]
    assert case["created_by"] == welfare["id"]

    row = store.tables["emergencies"][em["id"]]
    assert row["converted_to_case"] is True
    assert row["case_id"] == case["id"]
    assert row["assigned_to"] == welfare["id"]
    assert row["status"] == "Resolved"


def test_second_conversion_conflicts_without_new_case(store):
    welfare = store.seed_welfare()
    em = store.seed_emergency()
    _convert(welfare["id"], em["id"])

    with pytest.raises(ConflictError):
        _convert(welfare["id"], em["id"])
    assert len(store.tables["cases"]) == 1


def test_resolved_emergency_cannot_be_converted(store):
    welfare = store.seed_welfare()
    em = store.seed_emergency()
    store.tables["emergencies"][em["id"]]["status"] = "Resolved"
    with pytest.raises(ConflictError):
        _convert(welfare["id"], em["id"])
    assert store.tables["cases"] == {}


def test_welfare_without_address_is_refused(store):
    welfare = store.seed_welfare(wallet=None)
    em = store.seed_emergency()
    before = dict(store.tables["emergencies"][em["id"]])

    with pytest.raises(ValidationError):
        _convert(welfare["id"], em["id"])

    assert store.tables["emergencies"][em["id"]] == before
    assert store.tables["cases"] == {}


def test_conversion_target_from_breakdown(store):
    welfare = store.seed_welfare()
    em = store.seed_emergency()
    out = _convert(
        welfare["id"], em["id"], target_amount=None, cost_breakdown={"surgery": 200, "medicine": 45.5}
    )
    assert out["case"]["target_amount"] == 245.5


def test_conversion_failure_after_case_insert_rolls_back(store, monkeypatch):
    welfare = store.seed_welfare()
    em = store.seed_emergency()
    monkeypatch.setattr(emergency_service, "mark_converted", lambda cur, *a, **kw: None)

    with pytest.raises(ConflictError):
        _convert(welfare["id"], em["id"])
    assert store.tables["cases"] == {}


def test_unknown_emergency(store):
    welfare = store.seed_welfare()
    with pytest.raises(NotFoundError):
        _convert(welfare["id"], "missing")


def test_triage_assigns_and_guards(store):
    welfare = store.seed_welfare()
    other = store.seed_welfare(name="Other")
    em = store.seed_emergency()

    out = emergency_service.triage(
        welfare_id=welfare["id"], emergency_id=em["id"], status="In Progress", estimated_cost="120"
    )
    assert out["assigned_to"] == welfare["id"]
    assert out["status"] == "In Progress"
    assert out["estimated_cost"] == 120.0

    with pytest.raises(ForbiddenError):
        emergency_service.triage(welfare_id=other["id"], emergency_id=em["id"], status="Assigned")
    with pytest.raises(ValidationError):
        emergency_service.triage(welfare_id=welfare["id"], emergency_id=em["id"], status="Closed")

    _convert(welfare["id"], em["id"])
    with pytest.raises(ConflictError):
        emergency_service.triage(welfare_id=welfare["id"], emergency_id=em["id"], medical_issue="x")


def test_listing_visibility(store):
    welfare = store.seed_welfare()
    open_em = store.seed_emergency()
    done = store.seed_emergency()
    _convert(welfare["id"], done["id"])

    public = emergency_service.list_for(None)
    assert len(public) == 2
    assert all("phone" not in e and "email" not in e for e in public)

    assert [e["id"] for e in emergency_service.list_for("welfare")] == [open_em["id"]]
    assert len(emergency_service.list_for("doctor")) == 2


# -- HTTP -------------------------------------------------------------------


def test_public_report_with_images(client, store, uploads):
    resp = client.post(
        "/api/emergency",
        data={
            "name": "Sam",
            "phone": "555-0101",
            "animalType": "Cat",
            "condition": "trapped",
            "location": "Drain on 3rd",
            "description": "kitten stuck",
            "images": [(io.BytesIO(b"\xff\xd8"), "kitten.jpg", "image/jpeg")],
        },
        content_type="multipart/form-data",
    )
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["status"] == "New"
    assert body["images"] == uploads == ["https://media.test/emergencies/kitten.jpg"]


def test_report_missing_fields_discards_images(client, store, uploads):
    resp = client.post(
        "/api/emergency",
        data={"name": "Sam", "images": [(io.BytesIO(b"\xff\xd8"), "kitten.jpg", "image/jpeg")]},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 400
    assert uploads == []


def test_convert_endpoint(client, auth, store):
    welfare = store.seed_welfare()
    em = store.seed_emergency()
    headers = auth("welfare", welfare["id"])
    body = {"title": "Rex", "description": "fracture", "targetAmount": 250}

    resp = client.post(f"/api/emergency/{em['id']}/convert-to-case", json=body, headers=headers)
    assert resp.status_code == 201
    assert resp.get_json()["emergency"]["converted_to_case"] is True

    resp = client.post(f"/api/emergency/{em['id']}/convert-to-case", json=body, headers=headers)
    assert resp.status_code == 409

    no_wallet = store.seed_welfare(name="No wallet", wallet=None)
    em2 = store.seed_emergency()
    resp = client.post(
        f"/api/emergency/{em2['id']}/convert-to-case", json=body, headers=auth("welfare", no_wallet["id"])
    )
    assert resp.status_code == 400


def test_json_report_with_numeric_phone(client, store):
    resp = client.post(
        "/api/emergency",
        json={
            "name": "Sam",
            "phone": 5550101,
            "animalType": "Dog",
            "condition": "hit by car",
            "location": "Highway 9",
            "description": "not moving",
        },
    )
    assert resp.status_code == 201
    assert resp.get_json()["phone"] == "5550101"


def test_triage_rejects_non_finite_cost(store):
    welfare = store.seed_welfare()
    em = store.seed_emergency()
    with pytest.raises(ValidationError):
        emergency_service.triage(welfare_id=welfare["id"], emergency_id=em["id"], estimated_cost="nan")
    assert store.tables["emergencies"][em["id"]].get("assigned_to") is None
