from typing import Any, Dict, Optional

from pawfund.utils.db import is_uuid

WELFARE_COLS = """id, name, email, phone, address, description, website,
    blockchain_address, created_at"""


def create_welfare(
    cur,
    *,
    name: str,
    email: str,
    password_hash: str,
    phone: str,
    address: str,
    description: str,
    website: str,
) -> Dict[str, Any]:
    cur.execute(
        f"""
        INSERT INTO welfare_organizations
            (name, email, password_hash, phone, address, description, website)
        VALUES (%s, %s, %s, %s, %s, %s, %s)
        RETURNING {WELFARE_COLS}
        """,
        (name, email, password_hash, phone, address, description, website),
    )
    return dict(cur.fetchone())


def get_welfare(cur, welfare_id: str) -> Optional[Dict[str, Any]]:
    if not is_uuid(welfare_id):
        return None
    cur.execute(
        f"SELECT {WELFARE_COLS} FROM welfare_organizations WHERE id = %s",
        (welfare_id,),
    )
    row = cur.fetchone()
    return dict(row) if row else None


def get_welfare_by_email(cur, email: str) -> Optional[Dict[str, Any]]:
    cur.execute(
        f"SELECT {WELFARE_COLS}, password_hash FROM welfare_organizations WHERE email = %s",
        (email,),
    )
    row = cur.fetchone()
    return dict(row) if row else None


def set_blockchain_address(cur, welfare_id: str, address: str) -> Optional[Dict[str, Any]]:
    cur.execute(
        f"""
        UPDATE welfare_organizations
           SET blockchain_address = %s
         WHERE id = %s
        RETURNING {WELFARE_COLS}
        """,
        (address, welfare_id),
    )
    row = cur.fetchone()
    return dict(row) if row else None


PROFILE_FIELDS = ("name", "email", "phone", "address", "description", "website")


def update_welfare_profile(cur, welfare_id: str, **fields) -> Optional[Dict[str, Any]]:
    updates, params = [], []
    for name in PROFILE_FIELDS:
        if fields.get(name) is not None:
            updates.append(f"{name} = %s")
            params.append(fields[name])
    if not updates:
        return get_welfare(cur, welfare_id)
    params.append(welfare_id)
    cur.execute(
        f"""
        UPDATE welfare_organizations
        SET {", ".join(updates)}
        WHERE id = %s
        RETURNING {WELFARE_COLS}
        """,
        params,
    )
    row = cur.fetchone()
    return dict(row) if row else None
