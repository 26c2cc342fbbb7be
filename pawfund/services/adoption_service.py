"""Adoption listings posted by welfare organizations."""

from __future__ import annotations
import logging
from typing import Any, Dict, List

from pawfund.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from pawfund.models.adoption import (
    create_adoption,
    get_adoption,
    list_adoptions,
    update_adoption,
)
from pawfund.models.adoption_request import list_requests_for_adoption
from pawfund.utils.db import transaction

logger = logging.getLogger(__name__)

TYPES = ("Dog", "Cat", "Other")
GENDERS = ("Male", "Female")
SIZES = ("Small", "Medium", "Large")
LISTING_STATUSES = ("available", "reserved", "adopted")
# statuses an owner may set by hand; "adopted" only comes from payment verification
OWNER_STATUSES = ("available", "reserved")

REQUIRED_FIELDS = ("name", "type", "breed", "age", "gender", "size", "description", "location")


def _check_choices(fields: Dict[str, Any]) -> None:
    for name, choices in (("type", TYPES), ("gender", GENDERS), ("size", SIZES)):
        value = fields.get(name)
        if value is not None and value not in choices:
            raise ValidationError(f"{name} must be one of: {', '.join(choices)}")


def create_listing(*, welfare_id: str, images: List[str] | None = None, **fields) -> Dict[str, Any]:
    missing = [f for f in REQUIRED_FIELDS if not str(fields.get(f) or "").strip()]
    if missing:
        raise ValidationError(f"missing required fields: {', '.join(missing)}")
    _check_choices(fields)
    with transaction() as cur:
        adoption = create_adoption(
            cur,
            posted_by=welfare_id,
            images=images,
            health=fields.get("health"),
            behavior=fields.get("behavior"),
            **{f: str(fields[f]).strip() for f in REQUIRED_FIELDS},
        )
    logger.info("adoption listing %s posted by welfare %s", adoption["id"], welfare_id)
    return adoption


def get_listing(adoption_id: str) -> Dict[str, Any]:
    with transaction() as cur:
        adoption = get_adoption(cur, adoption_id)
    if not adoption:
        raise NotFoundError("adoption listing not found")
    return adoption


def browse(status: str | None = None):
    if status and status not in LISTING_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(LISTING_STATUSES)}")
    with transaction() as cur:
        return list_adoptions(cur, status=status)


def edit_listing(*, welfare_id: str, adoption_id: str, **fields) -> Dict[str, Any]:
    status = fields.get("status")
    if status is not None and status not in OWNER_STATUSES:
        raise ValidationError("status can only be set to available or reserved")
    _check_choices(fields)
    with transaction() as cur:
        adoption = get_adoption(cur, adoption_id, for_update=True)
        if not adoption:
            raise NotFoundError("adoption listing not found")
        if str(adoption["posted_by"]) != str(welfare_id):
            raise ForbiddenError("listing belongs to another organization")
        if adoption["status"] == "adopted":
            raise ConflictError("adopted listings cannot be edited")
        updated = update_adoption(cur, adoption_id, **fields)
        if updated is None:
            raise ConflictError("adopted listings cannot be edited")
    return updated


def requests_for_listing(*, welfare_id: str, adoption_id: str):
    with transaction() as cur:
        adoption = get_adoption(cur, adoption_id)
        if not adoption:
            raise NotFoundError("adoption listing not found")
        if str(adoption["posted_by"]) != str(welfare_id):
            raise ForbiddenError("listing belongs to another organization")
        return list_requests_for_adoption(cur, adoption_id)
