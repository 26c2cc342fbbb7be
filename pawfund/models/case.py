from typing import Any, Dict, List, Optional

from psycopg2.extras import Json

from pawfund.utils.db import is_uuid

CASE_COLS = """id, title, description, target_amount, amount_raised, image_urls,
    created_by, welfare_address, assigned_doctor, medical_issue, cost_breakdown,
    has_updates, status, emergency_id, created_at, updated_at"""


def create_case(
    cur,
    *,
    title: str,
    description: str,
    target_amount: float,
    created_by: str,
    welfare_address: str,
    image_urls: List[str] | None = None,
    medical_issue: str | None = None,
    cost_breakdown: List[Dict[str, Any]] | None = None,
    assigned_doctor: str | None = None,
    emergency_id: str | None = None,
) -> Dict[str, Any]:
    cur.execute(
        f"""
        INSERT INTO cases (title, description, target_amount, image_urls, created_by,
                           welfare_address, medical_issue, cost_breakdown,
                           assigned_doctor, emergency_id)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING {CASE_COLS}
        """,
        (
            title,
            description,
            target_amount,
            image_urls or [],
            created_by,
            welfare_address,
            medical_issue,
            Json(cost_breakdown or []),
            assigned_doctor,
            emergency_id,
        ),
    )
    return dict(cur.fetchone())


def get_case(cur, case_id: str, for_update: bool = False) -> Optional[Dict[str, Any]]:
    if not is_uuid(case_id):
        return None
    sql = f"SELECT {CASE_COLS} FROM cases WHERE id = %s"
    if for_update:
        sql += " FOR UPDATE"
    cur.execute(sql, (case_id,))
    row = cur.fetchone()
    return dict(row) if row else None


def list_active_cases(cur, limit: int = 50) -> List[Dict[str, Any]]:
    cur.execute(
        f"""
        SELECT {CASE_COLS} FROM cases
        WHERE status = 'active'
        ORDER BY created_at DESC
        LIMIT %s
        """,
        (limit,),
    )
    return [dict(r) for r in cur.fetchall()]


def list_cases_by_welfare(cur, welfare_id: str) -> List[Dict[str, Any]]:
    cur.execute(
        f"SELECT {CASE_COLS} FROM cases WHERE created_by = %s ORDER BY created_at DESC",
        (welfare_id,),
    )
    return [dict(r) for r in cur.fetchall()]


def list_cases_for_doctor(cur, doctor_id: str) -> List[Dict[str, Any]]:
    cur.execute(
        f"SELECT {CASE_COLS} FROM cases WHERE assigned_doctor = %s ORDER BY created_at DESC",
        (doctor_id,),
    )
    return [dict(r) for r in cur.fetchall()]


def increment_amount_raised(cur, case_id: str, amount_usd: float) -> Optional[Dict[str, Any]]:
    cur.execute(
        f"""
        UPDATE cases
           SET amount_raised = amount_raised + %s, updated_at = now()
         WHERE id = %s
        RETURNING {CASE_COLS}
        """,
        (amount_usd, case_id),
    )
    row = cur.fetchone()
    return dict(row) if row else None


def set_has_updates(cur, case_id: str, has_updates: bool) -> None:
    cur.execute(
        "UPDATE cases SET has_updates = %s, updated_at = now() WHERE id = %s",
        (has_updates, case_id),
    )


def assign_doctor(cur, case_id: str, doctor_id: str) -> Optional[Dict[str, Any]]:
    cur.execute(
        f"""
        UPDATE cases SET assigned_doctor = %s, updated_at = now()
         WHERE id = %s
        RETURNING {CASE_COLS}
        """,
        (doctor_id, case_id),
    )
    row = cur.fetchone()
    return dict(row) if row else None


def set_medical_issue(cur, case_id: str, medical_issue: str) -> None:
    cur.execute(
        "UPDATE cases SET medical_issue = %s, updated_at = now() WHERE id = %s",
        (medical_issue, case_id),
    )


def unassign_doctor(cur, doctor_id: str) -> int:
    cur.execute(
        "UPDATE cases SET assigned_doctor = NULL, updated_at = now() WHERE assigned_doctor = %s",
        (doctor_id,),
    )
    return cur.rowcount


def delete_case(cur, case_id: str) -> bool:
    """Deletes the case only when it has no donations."""
    cur.execute(
        "DELETE FROM cases WHERE id = %s AND amount_raised = 0 "
        "AND NOT EXISTS (SELECT 1 FROM donations WHERE case_id = %s)",
        (case_id, case_id),
    )
    return cur.rowcount > 0
