from typing import Any, Dict, List, Optional

from pawfund.utils.db import is_uuid

UPDATE_COLS = """id, case_id, title, content, image_urls, posted_by, is_success_story,
    is_published, created_at, updated_at"""

EDITABLE_FIELDS = ("title", "content", "image_urls", "is_success_story", "is_published")


def create_case_update(
    cur,
    *,
    case_id: str,
    title: str,
    content: str,
    posted_by: str,
    image_urls: List[str] | None = None,
    is_success_story: bool = False,
    is_published: bool = True,
) -> Dict[str, Any]:
    cur.execute(
        f"""
        INSERT INTO case_updates (case_id, title, content, image_urls, posted_by,
                                  is_success_story, is_published)
        VALUES (%s, %s, %s, %s, %s, %s, %s)
        RETURNING {UPDATE_COLS}
        """,
        (
            case_id,
            title,
            content,
            image_urls or [],
            posted_by,
            is_success_story,
            is_published,
        ),
    )
    return dict(cur.fetchone())


def get_case_update(cur, update_id: str) -> Optional[Dict[str, Any]]:
    if not is_uuid(update_id):
        return None
    cur.execute(f"SELECT {UPDATE_COLS} FROM case_updates WHERE id = %s", (update_id,))
    row = cur.fetchone()
    return dict(row) if row else None


def edit_case_update(cur, update_id: str, **fields) -> Optional[Dict[str, Any]]:
    updates, params = [], []
    for name in EDITABLE_FIELDS:
        if fields.get(name) is not None:
            updates.append(f"{name} = %s")
            params.append(fields[name])
    if not updates:
        return get_case_update(cur, update_id)
    updates.append("updated_at = now()")
    params.append(update_id)
    cur.execute(
        f"""
        UPDATE case_updates
        SET {", ".join(updates)}
        WHERE id = %s
        RETURNING {UPDATE_COLS}
        """,
        params,
    )
    row = cur.fetchone()
    return dict(row) if row else None


def delete_case_update(cur, update_id: str) -> bool:
    if not is_uuid(update_id):
        return False
    cur.execute("DELETE FROM case_updates WHERE id = %s", (update_id,))
    return cur.rowcount > 0


def count_case_updates(cur, case_id: str) -> int:
    cur.execute(
        "SELECT COUNT(*)::int AS cnt FROM case_updates WHERE case_id = %s", (case_id,)
    )
    return cur.fetchone()["cnt"]


def list_case_updates(
    cur, case_id: str, published_only: bool = True
) -> List[Dict[str, Any]]:
    sql = f"SELECT {UPDATE_COLS} FROM case_updates WHERE case_id = %s"
    if published_only:
        sql += " AND is_published"
    sql += " ORDER BY created_at DESC"
    cur.execute(sql, (case_id,))
    return [dict(r) for r in cur.fetchall()]


def list_success_stories(cur, limit: int = 50) -> List[Dict[str, Any]]:
    cur.execute(
        f"""
        SELECT {UPDATE_COLS} FROM case_updates
        WHERE is_success_story AND is_published
        ORDER BY created_at DESC
        LIMIT %s
        """,
        (limit,),
    )
    return [dict(r) for r in cur.fetchall()]
