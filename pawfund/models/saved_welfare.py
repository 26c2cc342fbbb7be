from typing import Any, Dict, List, Optional

from pawfund.utils.db import is_uuid


def save_welfare(cur, donor_id: str, welfare_id: str) -> Optional[Dict[str, Any]]:
    """Bookmark a welfare for a donor. Returns None if it was already saved."""
    cur.execute(
        """
        INSERT INTO saved_welfares (donor_id, welfare_id)
        VALUES (%s, %s)
        ON CONFLICT (donor_id, welfare_id) DO NOTHING
        RETURNING donor_id, welfare_id, created_at
        """,
        (donor_id, welfare_id),
    )
    row = cur.fetchone()
    return dict(row) if row else None


def unsave_welfare(cur, donor_id: str, welfare_id: str) -> bool:
    if not is_uuid(welfare_id):
        return False
    cur.execute(
        "DELETE FROM saved_welfares WHERE donor_id = %s AND welfare_id = %s",
        (donor_id, welfare_id),
    )
    return cur.rowcount > 0


def list_saved_welfares(cur, donor_id: str) -> List[Dict[str, Any]]:
    cur.execute(
        """
        SELECT w.id, w.name, w.description, w.website, s.created_at AS saved_at
        FROM saved_welfares s
        JOIN welfare_organizations w ON w.id = s.welfare_id
        WHERE s.donor_id = %s
        ORDER BY s.created_at DESC
        """,
        (donor_id,),
    )
    return [dict(r) for r in cur.fetchall()]
