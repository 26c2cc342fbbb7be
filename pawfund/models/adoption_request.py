from typing import Any, Dict, Iterable, List, Optional

from pawfund.utils.db import is_uuid

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
PAYMENT_PENDING = "payment pending"
UNDER_REVIEW = "under review"
COMPLETED = "completed"

STATUSES = (PENDING, APPROVED, REJECTED, PAYMENT_PENDING, UNDER_REVIEW, COMPLETED)
TERMINAL_STATUSES = (REJECTED, COMPLETED)

REQUEST_COLS = """id, adoption_id, donor_id, donor_name, contact_number, email, reason,
    preferred_contact, status, payment_proof, payment_amount, created_at, updated_at"""


def create_adoption_request(
    cur,
    *,
    adoption_id: str,
    donor_id: str,
    donor_name: str,
    contact_number: str,
    email: str,
    reason: str,
    preferred_contact: str,
) -> Dict[str, Any]:
    cur.execute(
        f"""
        INSERT INTO adoption_requests (adoption_id, donor_id, donor_name, contact_number,
                                       email, reason, preferred_contact)
        VALUES (%s, %s, %s, %s, %s, %s, %s)
        RETURNING {REQUEST_COLS}
        """,
        (adoption_id, donor_id, donor_name, contact_number, email, reason, preferred_contact),
    )
    return dict(cur.fetchone())


def get_adoption_request(
    cur, request_id: str, for_update: bool = False
) -> Optional[Dict[str, Any]]:
    if not is_uuid(request_id):
        return None
    sql = f"SELECT {REQUEST_COLS} FROM adoption_requests WHERE id = %s"
    if for_update:
        sql += " FOR UPDATE"
    cur.execute(sql, (request_id,))
    row = cur.fetchone()
    return dict(row) if row else None


def find_open_request(cur, adoption_id: str, donor_id: str) -> Optional[Dict[str, Any]]:
    cur.execute(
        f"""
        SELECT {REQUEST_COLS} FROM adoption_requests
        WHERE adoption_id = %s AND donor_id = %s AND NOT (status = ANY(%s))
        LIMIT 1
        """,
        (adoption_id, donor_id, list(TERMINAL_STATUSES)),
    )
    row = cur.fetchone()
    return dict(row) if row else None


def transition_request(
    cur,
    request_id: str,
    *,
    from_statuses: Iterable[str],
    to_status: str,
    payment_proof: str | None = None,
    payment_amount: float | None = None,
) -> Optional[Dict[str, Any]]:
    """
    Compare-and-set the request status. Returns the updated row, or None when
    the request is no longer in one of ``from_statuses``.
    """
    cur.execute(
        f"""
        UPDATE adoption_requests
           SET status = %s,
               payment_proof = COALESCE(%s, payment_proof),
               payment_amount = COALESCE(%s, payment_amount),
               updated_at = now()
         WHERE id = %s AND status = ANY(%s)
        RETURNING {REQUEST_COLS}
        """,
        (to_status, payment_proof, payment_amount, request_id, list(from_statuses)),
    )
    row = cur.fetchone()
    return dict(row) if row else None


def list_requests_by_donor(cur, donor_id: str) -> List[Dict[str, Any]]:
    cur.execute(
        """
        SELECT r.id, r.adoption_id, r.status, r.reason, r.preferred_contact,
               r.payment_proof, r.created_at, r.updated_at,
               a.name AS adoption_name, a.type AS adoption_type, a.images AS adoption_images
        FROM adoption_requests r
        JOIN adoptions a ON a.id = r.adoption_id
        WHERE r.donor_id = %s
        ORDER BY r.created_at DESC
        """,
        (donor_id,),
    )
    return [dict(r) for r in cur.fetchall()]


def list_requests_for_adoption(cur, adoption_id: str) -> List[Dict[str, Any]]:
    cur.execute(
        f"SELECT {REQUEST_COLS} FROM adoption_requests WHERE adoption_id = %s ORDER BY created_at DESC",
        (adoption_id,),
    )
    return [dict(r) for r in cur.fetchall()]


def list_requests_for_welfare(cur, welfare_id: str) -> List[Dict[str, Any]]:
    cur.execute(
        """
        SELECT r.id, r.adoption_id, r.donor_id, r.donor_name, r.email, r.contact_number,
               r.status, r.reason, r.preferred_contact, r.payment_proof,
               r.payment_amount, r.created_at,
               a.name AS adoption_name, a.type AS adoption_type, a.breed AS adoption_breed
        FROM adoption_requests r
        JOIN adoptions a ON a.id = r.adoption_id
        WHERE a.posted_by = %s
        ORDER BY r.created_at DESC
        """,
        (welfare_id,),
    )
    return [dict(r) for r in cur.fetchall()]
