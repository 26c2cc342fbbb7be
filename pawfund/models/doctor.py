from typing import Any, Dict, List, Optional

from pawfund.utils.db import is_uuid

DOCTOR_COLS = "id, name, email, specialization, welfare_id, is_active, created_at"


def create_doctor(
    cur,
    *,
    name: str,
    email: str,
    password_hash: str,
    specialization: str,
    welfare_id: str,
) -> Dict[str, Any]:
    cur.execute(
        f"""
        INSERT INTO doctors (name, email, password_hash, specialization, welfare_id)
        VALUES (%s, %s, %s, %s, %s)
        RETURNING {DOCTOR_COLS}
        """,
        (name, email, password_hash, specialization, welfare_id),
    )
    return dict(cur.fetchone())


def get_doctor(cur, doctor_id: str) -> Optional[Dict[str, Any]]:
    if not is_uuid(doctor_id):
        return None
    cur.execute(f"SELECT {DOCTOR_COLS} FROM doctors WHERE id = %s", (doctor_id,))
    row = cur.fetchone()
    return dict(row) if row else None


def get_doctor_by_email(cur, email: str) -> Optional[Dict[str, Any]]:
    cur.execute(
        f"SELECT {DOCTOR_COLS}, password_hash FROM doctors WHERE email = %s", (email,)
    )
    row = cur.fetchone()
    return dict(row) if row else None


def list_doctors_for_welfare(cur, welfare_id: str) -> List[Dict[str, Any]]:
    cur.execute(
        f"SELECT {DOCTOR_COLS} FROM doctors WHERE welfare_id = %s ORDER BY created_at DESC",
        (welfare_id,),
    )
    return [dict(r) for r in cur.fetchall()]


def update_doctor(cur, doctor_id: str, **fields) -> Optional[Dict[str, Any]]:
    updates, params = [], []
    for name in ("name", "email", "specialization"):
        if fields.get(name) is not None:
            updates.append(f"{name} = %s")
            params.append(fields[name])
    if not updates:
        return get_doctor(cur, doctor_id)
    params.append(doctor_id)
    cur.execute(
        f"UPDATE doctors SET {', '.join(updates)} WHERE id = %s RETURNING {DOCTOR_COLS}",
        params,
    )
    row = cur.fetchone()
    return dict(row) if row else None


def deactivate_doctor(cur, doctor_id: str) -> Optional[Dict[str, Any]]:
    """Returns None when the doctor was already inactive."""
    cur.execute(
        f"""
        UPDATE doctors SET is_active = FALSE
         WHERE id = %s AND is_active
        RETURNING {DOCTOR_COLS}
        """,
        (doctor_id,),
    )
    row = cur.fetchone()
    return dict(row) if row else None
