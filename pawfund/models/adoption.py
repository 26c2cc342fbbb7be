from typing import Any, Dict, List, Optional

from pawfund.utils.db import is_uuid

ADOPTION_COLS = """id, name, type, breed, age, gender, size, description, images,
    location, health, behavior, status, posted_by, adopted_by, created_at, updated_at"""

EDITABLE_FIELDS = (
    "name",
    "type",
    "breed",
    "age",
    "gender",
    "size",
    "description",
    "location",
    "health",
    "behavior",
    "status",
)


def create_adoption(
    cur,
    *,
    name: str,
    type: str,
    breed: str,
    age: str,
    gender: str,
    size: str,
    description: str,
    location: str,
    posted_by: str,
    images: List[str] | None = None,
    health: str | None = None,
    behavior: str | None = None,
) -> Dict[str, Any]:
    cur.execute(
        f"""
        INSERT INTO adoptions (name, type, breed, age, gender, size, description,
                               images, location, health, behavior, posted_by)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING {ADOPTION_COLS}
        """,
        (
            name,
            type,
            breed,
            age,
            gender,
            size,
            description,
            images or [],
            location,
            health,
            behavior,
            posted_by,
        ),
    )
    return dict(cur.fetchone())


def get_adoption(cur, adoption_id: str, for_update: bool = False) -> Optional[Dict[str, Any]]:
    if not is_uuid(adoption_id):
        return None
    sql = f"SELECT {ADOPTION_COLS} FROM adoptions WHERE id = %s"
    if for_update:
        sql += " FOR UPDATE"
    cur.execute(sql, (adoption_id,))
    row = cur.fetchone()
    return dict(row) if row else None


def list_adoptions(cur, status: str | None = None) -> List[Dict[str, Any]]:
    if status:
        cur.execute(
            f"SELECT {ADOPTION_COLS} FROM adoptions WHERE status = %s ORDER BY created_at DESC",
            (status,),
        )
    else:
        cur.execute(f"SELECT {ADOPTION_COLS} FROM adoptions ORDER BY created_at DESC")
    return [dict(r) for r in cur.fetchall()]


def update_adoption(cur, adoption_id: str, **fields) -> Optional[Dict[str, Any]]:
    updates, params = [], []
    for name in EDITABLE_FIELDS:
        if fields.get(name) is not None:
            updates.append(f"{name} = %s")
            params.append(fields[name])
    if not updates:
        return get_adoption(cur, adoption_id)
    updates.append("updated_at = now()")
    params.append(adoption_id)
    cur.execute(
        f"""
        UPDATE adoptions
        SET {", ".join(updates)}
        WHERE id = %s AND status <> 'adopted'
        RETURNING {ADOPTION_COLS}
        """,
        params,
    )
    row = cur.fetchone()
    return dict(row) if row else None


def mark_adopted(cur, adoption_id: str, donor_id: str) -> Optional[Dict[str, Any]]:
    """Flip the listing to adopted. Returns None if it was already adopted."""
    cur.execute(
        f"""
        UPDATE adoptions
           SET status = 'adopted', adopted_by = %s, updated_at = now()
         WHERE id = %s AND status <> 'adopted'
        RETURNING {ADOPTION_COLS}
        """,
        (donor_id, adoption_id),
    )
    row = cur.fetchone()
    return dict(row) if row else None
