"""
Case updates and success stories.

``cases.has_updates`` mirrors ``count(case_updates) > 0`` and is written in
the same transaction as every insert or delete.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List

from pawfund.errors import ForbiddenError, NotFoundError, ValidationError
from pawfund.models.case import get_case, set_has_updates, set_medical_issue
from pawfund.models.case_update import (
    count_case_updates,
    create_case_update,
    delete_case_update,
    edit_case_update,
    get_case_update,
    list_case_updates,
    list_success_stories,
)
from pawfund.utils.db import transaction
from pawfund.utils.payload import text

logger = logging.getLogger(__name__)


def _owned_case(cur, case_id: str, welfare_id: str) -> Dict[str, Any]:
    case = get_case(cur, case_id, for_update=True)
    if not case:
        raise NotFoundError("case not found")
    if str(case["created_by"]) != str(welfare_id):
        raise ForbiddenError("case belongs to another organization")
    return case


def _sync_has_updates(cur, case_id: str) -> bool:
    has_updates = count_case_updates(cur, case_id) > 0
    set_has_updates(cur, case_id, has_updates)
    return has_updates


def post_update(
    *,
    welfare_id: str,
    case_id: str,
    title: str | None,
    content: str | None,
    image_urls: List[str] | None = None,
    is_success_story: bool = False,
    is_published: bool = True,
) -> Dict[str, Any]:
    if not text(title) or not text(content):
        raise ValidationError("title and content are required")
    with transaction() as cur:
        _owned_case(cur, case_id, welfare_id)
        update = create_case_update(
            cur,
            case_id=case_id,
            title=text(title),
            content=text(content),
            posted_by=welfare_id,
            image_urls=image_urls,
            is_success_story=bool(is_success_story),
            is_published=bool(is_published),
        )
        _sync_has_updates(cur, case_id)
    logger.info("case %s: update %s posted", case_id, update["id"])
    return update


def edit_update(*, welfare_id: str, update_id: str, **fields) -> Dict[str, Any]:
    with transaction() as cur:
        update = get_case_update(cur, update_id)
        if not update:
            raise NotFoundError("case update not found")
        _owned_case(cur, update["case_id"], welfare_id)
        return edit_case_update(cur, update_id, **fields)


def remove_update(*, welfare_id: str, update_id: str) -> Dict[str, Any]:
    with transaction() as cur:
        update = get_case_update(cur, update_id)
        if not update:
            raise NotFoundError("case update not found")
        case_id = update["case_id"]
        _owned_case(cur, case_id, welfare_id)
        delete_case_update(cur, update_id)
        has_updates = _sync_has_updates(cur, case_id)
    logger.info("case %s: update %s deleted, has_updates=%s", case_id, update_id, has_updates)
    return {"deleted": True, "case_id": case_id, "has_updates": has_updates}


def post_diagnosis(
    *, doctor_id: str, case_id: str, medical_issue: str | None, notes: str | None = None
) -> Dict[str, Any]:
    medical_issue = text(medical_issue)
    if not medical_issue:
        raise ValidationError("medicalIssue is required")
    with transaction() as cur:
        case = get_case(cur, case_id, for_update=True)
        if not case:
            raise NotFoundError("case not found")
        if str(case.get("assigned_doctor")) != str(doctor_id):
            raise ForbiddenError("case is not assigned to you")
        update = create_case_update(
            cur,
            case_id=case_id,
            title=f"Diagnosis: {medical_issue}",
            content=text(notes) or medical_issue,
            posted_by=doctor_id,
        )
        set_medical_issue(cur, case_id, medical_issue)
        _sync_has_updates(cur, case_id)
    logger.info("case %s: diagnosis posted by doctor %s", case_id, doctor_id)
    return update


def public_updates(case_id: str):
    with transaction() as cur:
        if not get_case(cur, case_id):
            raise NotFoundError("case not found")
        return list_case_updates(cur, case_id, published_only=True)


def success_stories(limit: int = 50):
    with transaction() as cur:
        return list_success_stories(cur, limit=limit)
