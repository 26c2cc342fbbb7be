"""
Test configuration and fixtures.

Provides:
- An in-memory store standing in for the psycopg2 model functions
- A fake connection whose transaction context snapshots/restores the store
- A Flask app + test client and JWT minting per role
"""
import copy
import os
import sys
import uuid
from datetime import datetime, timedelta, timezone
from itertools import count

os.environ["SOCKETIO_ASYNC_MODE"] = "threading"
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["ETH_USD_RATE"] = "2000"
os.environ["USE_NOTIFY_QUEUE"] = "0"
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from flask_jwt_extended import create_access_token

import pawfund
from pawfund import create_app

WALLET = "0x8ba1f109551bD432803012645Ac136ddd64DBA72"
PRIVATE = ("password_hash",)

TABLES = (
    "donors",
    "welfare",
    "doctors",
    "cases",
    "case_updates",
    "donations",
    "adoptions",
    "adoption_requests",
    "emergencies",
    "messages",
    "saved_welfares",
)


def _public(row):
    return {k: v for k, v in row.items() if k not in PRIVATE}


class FakeStore:
    """
    Dict-backed replacement for pawfund.models.*. Method names match the
    model functions; the leading ``cur`` argument is ignored.
    """

    def __init__(self):
        self.tables = {t: {} for t in TABLES}
        self._ticks = count()
        self._epoch = datetime(2024, 1, 1, tzinfo=timezone.utc)

    # -- plumbing ---------------------------------------------------------

    def snapshot(self):
        return copy.deepcopy(self.tables)

    def restore(self, snap):
        self.tables = snap

    def _now(self):
        return self._epoch + timedelta(seconds=next(self._ticks))

    def _insert(self, table, **row):
        row["id"] = str(uuid.uuid4())
        row.setdefault("created_at", self._now())
        self.tables[table][row["id"]] = row
        return dict(row)

    def _get(self, table, row_id):
        row = self.tables[table].get(str(row_id)) if row_id is not None else None
        return dict(row) if row else None

    def _rows(self, table, pred=lambda r: True, newest_first=True):
        rows = [dict(r) for r in self.tables[table].values() if pred(r)]
        rows.sort(key=lambda r: r["created_at"], reverse=newest_first)
        return rows

    def _touch(self, table, row_id, **fields):
        row = self.tables[table][str(row_id)]
        row.update(fields)
        row["updated_at"] = self._now()
        return dict(row)

    # -- accounts ---------------------------------------------------------

    def create_donor(self, cur, *, name, email, password_hash):
        return _public(self._insert("donors", name=name, email=email, password_hash=password_hash))

    def get_donor(self, cur, donor_id):
        row = self._get("donors", donor_id)
        return _public(row) if row else None

    def get_donor_by_email(self, cur, email):
        rows = self._rows("donors", lambda r: r["email"] == email)
        return rows[0] if rows else None

    def create_welfare(self, cur, *, name, email, password_hash, phone, address, description, website):
        return _public(
            self._insert(
                "welfare",
                name=name,
                email=email,
                password_hash=password_hash,
                phone=phone,
                address=address,
                description=description,
                website=website,
                blockchain_address=None,
            )
        )

    def get_welfare(self, cur, welfare_id):
        row = self._get("welfare", welfare_id)
        return _public(row) if row else None

    def get_welfare_by_email(self, cur, email):
        rows = self._rows("welfare", lambda r: r["email"] == email)
        return rows[0] if rows else None

    def set_blockchain_address(self, cur, welfare_id, address):
        if str(welfare_id) not in self.tables["welfare"]:
            return None
        self.tables["welfare"][str(welfare_id)]["blockchain_address"] = address
        return self.get_welfare(cur, welfare_id)

    def create_doctor(self, cur, *, name, email, password_hash, specialization, welfare_id):
        return _public(
            self._insert(
                "doctors",
                name=name,
                email=email,
                password_hash=password_hash,
                specialization=specialization,
                welfare_id=welfare_id,
                is_active=True,
            )
        )

    def get_doctor(self, cur, doctor_id):
        row = self._get("doctors", doctor_id)
        return _public(row) if row else None

    def get_doctor_by_email(self, cur, email):
        rows = self._rows("doctors", lambda r: r["email"] == email)
        return rows[0] if rows else None

    def update_welfare_profile(self, cur, welfare_id, **fields):
        if str(welfare_id) not in self.tables["welfare"]:
            return None
        self.tables["welfare"][str(welfare_id)].update({k: v for k, v in fields.items() if v is not None})
        return self.get_welfare(cur, welfare_id)

    def list_doctors_for_welfare(self, cur, welfare_id):
        return [_public(r) for r in self._rows("doctors", lambda r: r["welfare_id"] == welfare_id)]

    def update_doctor(self, cur, doctor_id, **fields):
        if str(doctor_id) not in self.tables["doctors"]:
            return None
        self.tables["doctors"][str(doctor_id)].update({k: v for k, v in fields.items() if v is not None})
        return self.get_doctor(cur, doctor_id)

    def deactivate_doctor(self, cur, doctor_id):
        row = self.tables["doctors"].get(str(doctor_id))
        if not row or not row["is_active"]:
            return None
        row["is_active"] = False
        return _public(dict(row))

    # -- saved welfares ---------------------------------------------------

    def save_welfare(self, cur, donor_id, welfare_id):
        key = f"{donor_id}:{welfare_id}"
        if key in self.tables["saved_welfares"]:
            return None
        row = {"donor_id": donor_id, "welfare_id": welfare_id, "created_at": self._now()}
        self.tables["saved_welfares"][key] = row
        return dict(row)

    def unsave_welfare(self, cur, donor_id, welfare_id):
        return self.tables["saved_welfares"].pop(f"{donor_id}:{welfare_id}", None) is not None

    def list_saved_welfares(self, cur, donor_id):
        out = []
        for s in self._rows("saved_welfares", lambda r: r["donor_id"] == donor_id):
            w = self.tables["welfare"][s["welfare_id"]]
            out.append(
                {
                    "id": w["id"],
                    "name": w["name"],
                    "description": w["description"],
                    "website": w["website"],
                    "saved_at": s["created_at"],
                }
            )
        return out

    # -- cases ------------------------------------------------------------

    def create_case(
        self,
        cur,
        *,
        title,
        description,
        target_amount,
        created_by,
        welfare_address,
        image_urls=None,
        medical_issue=None,
        cost_breakdown=None,
        assigned_doctor=None,
        emergency_id=None,
    ):
        return self._insert(
            "cases",
            title=title,
            description=description,
            target_amount=float(target_amount),
            amount_raised=0.0,
            image_urls=list(image_urls or []),
            created_by=created_by,
            welfare_address=welfare_address,
            assigned_doctor=assigned_doctor,
            medical_issue=medical_issue,
            cost_breakdown=list(cost_breakdown or []),
            has_updates=False,
            status="active",
            emergency_id=emergency_id,
            updated_at=None,
        )

    def get_case(self, cur, case_id, for_update=False):
        return self._get("cases", case_id)

    def list_active_cases(self, cur, limit=50):
        return self._rows("cases", lambda r: r["status"] == "active")[:limit]

    def list_cases_by_welfare(self, cur, welfare_id):
        return self._rows("cases", lambda r: r["created_by"] == welfare_id)

    def list_cases_for_doctor(self, cur, doctor_id):
        return self._rows("cases", lambda r: r["assigned_doctor"] == doctor_id)

    def increment_amount_raised(self, cur, case_id, amount_usd):
        if str(case_id) not in self.tables["cases"]:
            return None
        row = self.tables["cases"][str(case_id)]
        return self._touch("cases", case_id, amount_raised=row["amount_raised"] + amount_usd)

    def set_has_updates(self, cur, case_id, has_updates):
        self._touch("cases", case_id, has_updates=has_updates)

    def assign_doctor(self, cur, case_id, doctor_id):
        return self._touch("cases", case_id, assigned_doctor=doctor_id)

    def set_medical_issue(self, cur, case_id, medical_issue):
        self._touch("cases", case_id, medical_issue=medical_issue)

    def unassign_doctor(self, cur, doctor_id):
        rows = [r for r in self.tables["cases"].values() if r["assigned_doctor"] == doctor_id]
        for r in rows:
            self._touch("cases", r["id"], assigned_doctor=None)
        return len(rows)

    def delete_case(self, cur, case_id):
        row = self.tables["cases"].get(str(case_id))
        if not row or row["amount_raised"] or self.count_donations_for_case(cur, case_id):
            return False
        del self.tables["cases"][str(case_id)]
        for uid in [u["id"] for u in self.tables["case_updates"].values() if u["case_id"] == case_id]:
            del self.tables["case_updates"][uid]
        return True

    # -- case updates -----------------------------------------------------

    def create_case_update(
        self,
        cur,
        *,
        case_id,
        title,
        content,
        posted_by,
        image_urls=None,
        is_success_story=False,
        is_published=True,
    ):
        return self._insert(
            "case_updates",
            case_id=case_id,
            title=title,
            content=content,
            image_urls=list(image_urls or []),
            posted_by=posted_by,
            is_success_story=is_success_story,
            is_published=is_published,
            updated_at=None,
        )

    def get_case_update(self, cur, update_id):
        return self._get("case_updates", update_id)

    def edit_case_update(self, cur, update_id, **fields):
        changes = {k: v for k, v in fields.items() if v is not None}
        if str(update_id) not in self.tables["case_updates"]:
            return None
        return self._touch("case_updates", update_id, **changes)

    def delete_case_update(self, cur, update_id):
        return self.tables["case_updates"].pop(str(update_id), None) is not None

    def count_case_updates(self, cur, case_id):
        return len(self._rows("case_updates", lambda r: r["case_id"] == case_id))

    def list_case_updates(self, cur, case_id, published_only=True):
        return self._rows(
            "case_updates",
            lambda r: r["case_id"] == case_id and (r["is_published"] or not published_only),
        )

    def list_success_stories(self, cur, limit=50):
        return self._rows(
            "case_updates", lambda r: r["is_success_story"] and r["is_published"]
        )[:limit]

    # -- donations --------------------------------------------------------

    def insert_donation(
        self,
        cur,
        *,
        donor_id,
        case_id,
        welfare_id,
        amount,
        amount_usd,
        eth_usd_rate,
        tx_hash,
        donor_address=None,
        organization_address=None,
        message=None,
    ):
        return self._insert(
            "donations",
            donor_id=donor_id,
            case_id=case_id,
            welfare_id=welfare_id,
            amount=amount,
            amount_usd=amount_usd,
            eth_usd_rate=eth_usd_rate,
            tx_hash=tx_hash,
            status="Confirmed",
            donor_address=donor_address,
            organization_address=organization_address,
            message=message or "",
        )

    def get_donation_by_tx_hash(self, cur, tx_hash):
        rows = self._rows("donations", lambda r: r["tx_hash"] == tx_hash)
        return rows[0] if rows else None

    def list_donations_by_donor(self, cur, donor_id):
        rows = self._rows("donations", lambda r: r["donor_id"] == donor_id)
        for d in rows:
            d["welfare_name"] = self.tables["welfare"].get(d["welfare_id"], {}).get("name")
            d["case_title"] = self.tables["cases"].get(d["case_id"], {}).get("title")
        return rows

    def count_donations_for_case(self, cur, case_id):
        return len(self._rows("donations", lambda r: r["case_id"] == case_id))

    def list_donations_by_welfare(self, cur, welfare_id):
        return self._rows("donations", lambda r: r["welfare_id"] == welfare_id)

    def list_donations_for_case(self, cur, case_id):
        return self._rows(
            "donations", lambda r: r["case_id"] == case_id and r["status"] == "Confirmed"
        )

    # -- adoptions --------------------------------------------------------

    def create_adoption(
        self,
        cur,
        *,
        name,
        type,
        breed,
        age,
        gender,
        size,
        description,
        location,
        posted_by,
        images=None,
        health=None,
        behavior=None,
    ):
        return self._insert(
            "adoptions",
            name=name,
            type=type,
            breed=breed,
            age=age,
            gender=gender,
            size=size,
            description=description,
            images=list(images or []),
            location=location,
            health=health,
            behavior=behavior,
            status="available",
            posted_by=posted_by,
            adopted_by=None,
            updated_at=None,
        )

    def get_adoption(self, cur, adoption_id, for_update=False):
        return self._get("adoptions", adoption_id)

    def list_adoptions(self, cur, status=None):
        return self._rows("adoptions", lambda r: status is None or r["status"] == status)

    def update_adoption(self, cur, adoption_id, **fields):
        row = self.tables["adoptions"].get(str(adoption_id))
        if not row or row["status"] == "adopted":
            return None
        return self._touch(
            "adoptions", adoption_id, **{k: v for k, v in fields.items() if v is not None}
        )

    def mark_adopted(self, cur, adoption_id, donor_id):
        row = self.tables["adoptions"].get(str(adoption_id))
        if not row or row["status"] == "adopted":
            return None
        return self._touch("adoptions", adoption_id, status="adopted", adopted_by=donor_id)

    # -- adoption requests ------------------------------------------------

    def create_adoption_request(
        self, cur, *, adoption_id, donor_id, donor_name, contact_number, email, reason, preferred_contact
    ):
        return self._insert(
            "adoption_requests",
            adoption_id=adoption_id,
            donor_id=donor_id,
            donor_name=donor_name,
            contact_number=contact_number,
            email=email,
            reason=reason,
            preferred_contact=preferred_contact,
            status="pending",
            payment_proof=None,
            payment_amount=None,
            updated_at=None,
        )

    def get_adoption_request(self, cur, request_id, for_update=False):
        return self._get("adoption_requests", request_id)

    def find_open_request(self, cur, adoption_id, donor_id):
        rows = self._rows(
            "adoption_requests",
            lambda r: r["adoption_id"] == adoption_id
            and r["donor_id"] == donor_id
            and r["status"] not in ("rejected", "completed"),
        )
        return rows[0] if rows else None

    def transition_request(
        self, cur, request_id, *, from_statuses, to_status, payment_proof=None, payment_amount=None
    ):
        row = self.tables["adoption_requests"].get(str(request_id))
        if not row or row["status"] not in tuple(from_statuses):
            return None
        changes = {"status": to_status}
        if payment_proof is not None:
            changes["payment_proof"] = payment_proof
        if payment_amount is not None:
            changes["payment_amount"] = payment_amount
        return self._touch("adoption_requests", request_id, **changes)

    def list_requests_by_donor(self, cur, donor_id):
        return self._rows("adoption_requests", lambda r: r["donor_id"] == donor_id)

    def list_requests_for_adoption(self, cur, adoption_id):
        return self._rows("adoption_requests", lambda r: r["adoption_id"] == adoption_id)

    def list_requests_for_welfare(self, cur, welfare_id):
        owned = {a["id"] for a in self.tables["adoptions"].values() if a["posted_by"] == welfare_id}
        return self._rows("adoption_requests", lambda r: r["adoption_id"] in owned)

    # -- emergencies ------------------------------------------------------

    def create_emergency(
        self, cur, *, name, phone, animal_type, condition, location, description, email=None, images=None
    ):
        return self._insert(
            "emergencies",
            name=name,
            phone=phone,
            email=email or "",
            animal_type=animal_type,
            condition=condition,
            location=location,
            description=description,
            status="New",
            assigned_to=None,
            medical_issue=None,
            estimated_cost=None,
            treatment_plan=None,
            images=list(images or []),
            converted_to_case=False,
            case_id=None,
            updated_at=None,
        )

    def get_emergency(self, cur, emergency_id, for_update=False):
        return self._get("emergencies", emergency_id)

    def list_emergencies(self, cur, status=None, open_only=False, public=False):
        def pred(r):
            if status and r["status"] != status:
                return False
            if open_only and (r["converted_to_case"] or r["status"] == "Resolved"):
                return False
            return True

        rows = self._rows("emergencies", pred)
        if public:
            rows = [{k: v for k, v in r.items() if k not in ("name", "phone", "email")} for r in rows]
        return rows

    def update_emergency(self, cur, emergency_id, **fields):
        row = self.tables["emergencies"].get(str(emergency_id))
        if not row or row["converted_to_case"]:
            return None
        return self._touch(
            "emergencies", emergency_id, **{k: v for k, v in fields.items() if v is not None}
        )

    def mark_converted(self, cur, emergency_id, *, case_id, welfare_id, treatment_plan):
        row = self.tables["emergencies"].get(str(emergency_id))
        if not row or row["converted_to_case"] or row["status"] == "Resolved":
            return None
        return self._touch(
            "emergencies",
            emergency_id,
            converted_to_case=True,
            case_id=case_id,
            assigned_to=welfare_id,
            status="Resolved",
            treatment_plan=treatment_plan,
        )

    # -- messages ---------------------------------------------------------

    def insert_message(self, cur, *, from_id, to_id, title, content, related_case=None):
        return self._insert(
            "messages",
            from_id=from_id,
            to_id=to_id,
            title=title,
            content=content,
            related_case=related_case,
            is_read=False,
        )

    def list_messages_to(self, cur, to_id):
        return self._rows("messages", lambda r: r["to_id"] == to_id)

    def list_messages_from(self, cur, from_id):
        return self._rows("messages", lambda r: r["from_id"] == from_id)

    def mark_read(self, cur, message_id, to_id):
        row = self.tables["messages"].get(str(message_id))
        if not row or row["to_id"] != to_id:
            return False
        row["is_read"] = True
        return True

    # -- seeding helpers --------------------------------------------------

    def seed_donor(self, name="Dana Donor"):
        return self.create_donor(
            None, name=name, email=f"{uuid.uuid4().hex[:8]}@donor.test", password_hash="x"
        )

    def seed_welfare(self, name="Happy Paws", wallet=WALLET):
        org = self.create_welfare(
            None,
            name=name,
            email=f"{uuid.uuid4().hex[:8]}@welfare.test",
            password_hash="x",
            phone="555-0100",
            address="1 Shelter Lane",
            description="rescue",
            website="",
        )
        if wallet:
            org = self.set_blockchain_address(None, org["id"], wallet)
        return org

    def seed_doctor(self, welfare_id):
        return self.create_doctor(
            None,
            name="Dr. Vet",
            email=f"{uuid.uuid4().hex[:8]}@vet.test",
            password_hash="x",
            specialization="Surgery",
            welfare_id=welfare_id,
        )

    def seed_case(self, welfare_id, target=500.0, **kw):
        return self.create_case(
            None,
            title=kw.pop("title", "Broken leg"),
            description="needs surgery",
            target_amount=target,
            created_by=welfare_id,
            welfare_address=WALLET,
            **kw,
        )

    def seed_adoption(self, welfare_id, name="Luna"):
        return self.create_adoption(
            None,
            name=name,
            type="Cat",
            breed="Shorthair",
            age="2 years",
            gender="Female",
            size="Small",
            description="calm",
            location="Shelter",
            posted_by=welfare_id,
        )

    def seed_request(self, adoption_id, donor_id, status="pending"):
        req = self.create_adoption_request(
            None,
            adoption_id=adoption_id,
            donor_id=donor_id,
            donor_name="Dana",
            contact_number="555-0199",
            email="dana@donor.test",
            reason="garden",
            preferred_contact="email",
        )
        self.tables["adoption_requests"][req["id"]]["status"] = status
        return self._get("adoption_requests", req["id"])

    def seed_emergency(self, images=None):
        return self.create_emergency(
            None,
            name="Reporter",
            phone="555-0123",
            email="reporter@example.com",
            animal_type="Dog",
            condition="bleeding paw",
            location="5th and Main",
            description="limping",
            images=images,
        )

    def messages_to(self, to_id):
        return self.list_messages_to(None, to_id)


class FakeCursor:
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeConnection:
    """`with conn` snapshots the store and restores it when the block raises."""

    def __init__(self, store):
        self.store = store
        self._snap = None
        self.closed = False

    def __enter__(self):
        self._snap = self.store.snapshot()
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.store.restore(self._snap)
        self._snap = None
        return False

    def cursor(self, **kw):
        return FakeCursor()

    def commit(self):
        pass

    def close(self):
        self.closed = True


class FakeRedis:
    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value

    def delete(self, *keys):
        for k in keys:
            self.data.pop(k, None)


def _model_bound_attrs():
    """(module, attribute, function name) for every model function imported anywhere in pawfund."""
    out = []
    for mod_name, mod in list(sys.modules.items()):
        if not mod_name.startswith("pawfund") or mod is None:
            continue
        for attr, value in list(vars(mod).items()):
            fn_mod = getattr(value, "__module__", None) or ""
            if callable(value) and fn_mod.startswith("pawfund.models") and hasattr(value, "__name__"):
                out.append((mod, attr, value.__name__))
    return out


@pytest.fixture
def store(monkeypatch):
    s = FakeStore()
    for mod, attr, fn_name in _model_bound_attrs():
        monkeypatch.setattr(mod, attr, getattr(s, fn_name))
    monkeypatch.setattr(pawfund.utils.db, "get_db_connection", lambda: FakeConnection(s))
    return s


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    for mod_name in (
        "pawfund.services.donation_service",
        "pawfund.services.case_service",
        "pawfund.services.rate_service",
    ):
        monkeypatch.setattr(f"{mod_name}.r", lambda: fake)
    return fake


@pytest.fixture
def uploads(monkeypatch):
    """Replace object storage with a list of stored keys."""
    stored = []

    def fake_store(file_storage, prefix, media_type="image"):
        from pawfund.utils.media_validators import validate_upload

        validate_upload(file_storage, media_type)
        url = f"https://media.test/{prefix}/{file_storage.filename}"
        stored.append(url)
        return url

    def fake_delete(url):
        stored.remove(url)

    monkeypatch.setattr("pawfund.utils.s3_helpers.store_upload", fake_store)
    monkeypatch.setattr("pawfund.utils.s3_helpers.delete_object", fake_delete)
    return stored


@pytest.fixture
def app(store, fake_redis):
    return create_app({"TESTING": True})


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth(app):
    """auth(role, account_id) -> Authorization headers."""

    def _headers(role, account_id):
        with app.app_context():
            token = create_access_token(identity=str(account_id), additional_claims={"role": role})
        return {"Authorization": f"Bearer {token}"}

    return _headers
