from typing import Any, Dict, Optional

from pawfund.utils.db import is_uuid

DONOR_COLS = "id, name, email, created_at"


def create_donor(cur, *, name: str, email: str, password_hash: str) -> Dict[str, Any]:
    cur.execute(
        f"""
        INSERT INTO donors (name, email, password_hash)
        VALUES (%s, %s, %s)
        RETURNING {DONOR_COLS}
        """,
        (name, email, password_hash),
    )
    return dict(cur.fetchone())


def get_donor(cur, donor_id: str) -> Optional[Dict[str, Any]]:
    if not is_uuid(donor_id):
        return None
    cur.execute(f"SELECT {DONOR_COLS} FROM donors WHERE id = %s", (donor_id,))
    row = cur.fetchone()
    return dict(row) if row else None


def get_donor_by_email(cur, email: str) -> Optional[Dict[str, Any]]:
    cur.execute(
        f"SELECT {DONOR_COLS}, password_hash FROM donors WHERE email = %s", (email,)
    )
    row = cur.fetchone()
    return dict(row) if row else None
