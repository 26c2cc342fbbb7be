from typing import Any, Dict, List

from pawfund.utils.db import is_uuid

MESSAGE_COLS = "id, from_id, to_id, title, content, related_case, is_read, created_at"


def insert_message(
    cur,
    *,
    from_id: str,
    to_id: str,
    title: str,
    content: str,
    related_case: str | None = None,
) -> Dict[str, Any]:
    cur.execute(
        f"""
        INSERT INTO messages (from_id, to_id, title, content, related_case)
        VALUES (%s, %s, %s, %s, %s)
        RETURNING {MESSAGE_COLS}
        """,
        (from_id, to_id, title, content, related_case),
    )
    return dict(cur.fetchone())


def list_messages_to(cur, to_id: str) -> List[Dict[str, Any]]:
    cur.execute(
        f"SELECT {MESSAGE_COLS} FROM messages WHERE to_id = %s ORDER BY created_at DESC",
        (to_id,),
    )
    return [dict(r) for r in cur.fetchall()]


def list_messages_from(cur, from_id: str) -> List[Dict[str, Any]]:
    cur.execute(
        f"SELECT {MESSAGE_COLS} FROM messages WHERE from_id = %s ORDER BY created_at DESC",
        (from_id,),
    )
    return [dict(r) for r in cur.fetchall()]


def mark_read(cur, message_id: str, to_id: str) -> bool:
    if not is_uuid(message_id):
        return False
    cur.execute(
        "UPDATE messages SET is_read = TRUE WHERE id = %s AND to_id = %s",
        (message_id, to_id),
    )
    return cur.rowcount > 0
