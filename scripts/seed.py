#!/usr/bin/env python3
"""
Seed the database with demo accounts and records.

Usage: python scripts/seed.py [--force]
Requires: migrations applied (alembic upgrade head)
"""
import sys

import bcrypt

from pawfund.models.adoption import create_adoption
from pawfund.models.case import create_case
from pawfund.models.doctor import create_doctor
from pawfund.models.donor import create_donor, get_donor_by_email
from pawfund.models.emergency import create_emergency
from pawfund.models.welfare import create_welfare, set_blockchain_address
from pawfund.utils.db import transaction

DEMO_PASSWORD = "demo123456"
DEMO_WALLET = "0x8ba1f109551bD432803012645Ac136ddd64DBA72"


def _hash(pw: str) -> str:
    return bcrypt.hashpw(pw.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def seed():
    with transaction() as cur:
        if get_donor_by_email(cur, "donor@example.com"):
            print("Already seeded (donor@example.com exists). Use --force to re-seed.")
            return

        pw_hash = _hash(DEMO_PASSWORD)
        donor = create_donor(
            cur, name="Demo Donor", email="donor@example.com", password_hash=pw_hash
        )
        welfare = create_welfare(
            cur,
            name="Demo Shelter",
            email="shelter@example.com",
            password_hash=pw_hash,
            phone="+1 555 0100",
            address="12 Harbor Road",
            description="Rescue and rehoming for strays.",
            website="https://shelter.example.com",
        )
        set_blockchain_address(cur, welfare["id"], DEMO_WALLET)
        doctor = create_doctor(
            cur,
            name="Dr. Demo",
            email="vet@example.com",
            password_hash=pw_hash,
            specialization="Surgery",
            welfare_id=welfare["id"],
        )
        case = create_case(
            cur,
            title="Fractured leg for Biscuit",
            description="Hit by a car, needs surgery and two weeks of recovery.",
            target_amount=450,
            created_by=welfare["id"],
            welfare_address=DEMO_WALLET,
            cost_breakdown=[
                {"item": "surgery", "cost": 300},
                {"item": "medicine", "cost": 80},
                {"item": "recovery", "cost": 70},
            ],
            assigned_doctor=doctor["id"],
        )
        create_adoption(
            cur,
            name="Luna",
            type="Cat",
            breed="Domestic Shorthair",
            age="2 years",
            gender="Female",
            size="Small",
            description="Calm, litter trained, gets along with other cats.",
            location="Demo Shelter",
            posted_by=welfare["id"],
        )
        create_emergency(
            cur,
            name="Passer-by",
            phone="+1 555 0199",
            animal_type="Dog",
            condition="Bleeding paw",
            location="Corner of 5th and Main",
            description="Limping, will not put weight on front left paw.",
        )

    print("Seeded successfully.")
    print(f"  Donor:   donor@example.com / {DEMO_PASSWORD}")
    print(f"  Welfare: shelter@example.com / {DEMO_PASSWORD}")
    print(f"  Doctor:  vet@example.com / {DEMO_PASSWORD}")
    print(f"  Case:    {case['id']}")
    print(f"  Donor id: {donor['id']}")


def force_seed():
    """Clear demo data and re-seed. Use with caution."""
    with transaction() as cur:
        cur.execute("DELETE FROM messages")
        cur.execute("DELETE FROM donations")
        cur.execute("DELETE FROM adoption_requests")
        cur.execute("DELETE FROM adoptions")
        cur.execute("UPDATE emergencies SET case_id = NULL")
        cur.execute("DELETE FROM cases")
        cur.execute("DELETE FROM emergencies")
        cur.execute("DELETE FROM welfare_organizations WHERE email LIKE '%%@example.com'")
        cur.execute("DELETE FROM donors WHERE email LIKE '%%@example.com'")
    print("Cleared demo data. Seeding...")
    seed()


if __name__ == "__main__":
    if "--force" in sys.argv:
        force_seed()
    else:
        seed()
