from typing import Any, Dict, List, Optional

from pawfund.utils.db import is_uuid

NEW = "New"
ASSIGNED = "Assigned"
IN_PROGRESS = "In Progress"
RESOLVED = "Resolved"
STATUSES = (NEW, ASSIGNED, IN_PROGRESS, RESOLVED)

EMERGENCY_COLS = """id, name, phone, email, animal_type, condition, location, description,
    status, assigned_to, medical_issue, estimated_cost, treatment_plan, images,
    converted_to_case, case_id, created_at, updated_at"""
PUBLIC_COLS = """id, animal_type, condition, location, description, status, images,
    converted_to_case, case_id, created_at"""

TRIAGE_FIELDS = ("status", "medical_issue", "estimated_cost", "treatment_plan")


def create_emergency(
    cur,
    *,
    name: str,
    phone: str,
    animal_type: str,
    condition: str,
    location: str,
    description: str,
    email: str | None = None,
    images: List[str] | None = None,
) -> Dict[str, Any]:
    cur.execute(
        f"""
        INSERT INTO emergencies (name, phone, email, animal_type, condition, location,
                                 description, images)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING {EMERGENCY_COLS}
        """,
        (name, phone, email or "", animal_type, condition, location, description, images or []),
    )
    return dict(cur.fetchone())


def get_emergency(cur, emergency_id: str, for_update: bool = False) -> Optional[Dict[str, Any]]:
    if not is_uuid(emergency_id):
        return None
    sql = f"SELECT {EMERGENCY_COLS} FROM emergencies WHERE id = %s"
    if for_update:
        sql += " FOR UPDATE"
    cur.execute(sql, (emergency_id,))
    row = cur.fetchone()
    return dict(row) if row else None


def list_emergencies(
    cur, status: str | None = None, open_only: bool = False, public: bool = False
) -> List[Dict[str, Any]]:
    cols = PUBLIC_COLS if public else EMERGENCY_COLS
    where, params = [], []
    if status:
        where.append("status = %s")
        params.append(status)
    if open_only:
        where.append("NOT converted_to_case AND status <> 'Resolved'")
    sql = f"SELECT {cols} FROM emergencies"
    if where:
        sql += " WHERE " + " AND ".join(where)
    sql += " ORDER BY created_at DESC"
    cur.execute(sql, params)
    return [dict(r) for r in cur.fetchall()]


def update_emergency(cur, emergency_id: str, **fields) -> Optional[Dict[str, Any]]:
    updates, params = [], []
    for name in TRIAGE_FIELDS + ("assigned_to",):
        if fields.get(name) is not None:
            updates.append(f"{name} = %s")
            params.append(fields[name])
    if not updates:
        return get_emergency(cur, emergency_id)
    updates.append("updated_at = now()")
    params.append(emergency_id)
    cur.execute(
        f"""
        UPDATE emergencies
        SET {", ".join(updates)}
        WHERE id = %s AND NOT converted_to_case
        RETURNING {EMERGENCY_COLS}
        """,
        params,
    )
    row = cur.fetchone()
    return dict(row) if row else None


def mark_converted(
    cur, emergency_id: str, *, case_id: str, welfare_id: str, treatment_plan: str
) -> Optional[Dict[str, Any]]:
    """Latch converted_to_case. Returns None if already converted or resolved."""
    cur.execute(
        f"""
        UPDATE emergencies
           SET converted_to_case = TRUE,
               case_id = %s,
               assigned_to = %s,
               status = 'Resolved',
               treatment_plan = %s,
               updated_at = now()
         WHERE id = %s AND NOT converted_to_case AND status <> 'Resolved'
        RETURNING {EMERGENCY_COLS}
        """,
        (case_id, welfare_id, treatment_plan, emergency_id),
    )
    row = cur.fetchone()
    return dict(row) if row else None
