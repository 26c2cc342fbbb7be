from __future__ import annotations
import json
import logging
from typing import Any, Dict, List

from redis import RedisError

from pawfund.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from pawfund.models.case import (
    assign_doctor as assign_doctor_row,
    create_case as insert_case,
    delete_case as delete_case_row,
    get_case,
    list_active_cases,
    list_cases_by_welfare,
    list_cases_for_doctor,
)
from pawfund.models.doctor import get_doctor
from pawfund.models.donation import count_donations_for_case, list_donations_for_case
from pawfund.models.welfare import get_welfare, set_blockchain_address
from pawfund.utils.cache import case_progress_key, r
from pawfund.utils import s3_helpers
from pawfund.utils.db import transaction
from pawfund.utils.payload import number, text

logger = logging.getLogger(__name__)

BREAKDOWN_KEYS = ("surgery", "medicine", "recovery", "other")
PROGRESS_TTL_SECONDS = 30


def _money(value: Any, field: str) -> float:
    amount = number(value, field)
    if amount < 0:
        raise ValidationError(f"{field} must not be negative")
    return amount


def parse_cost_breakdown(raw: Any) -> List[Dict[str, Any]]:
    """
    Normalize a cost breakdown to ``[{"item", "cost"}]``.

    Accepts either a list of ``{"item", "cost"}`` objects or a mapping of
    surgery/medicine/recovery/other amounts (zero entries are dropped).
    """
    if raw in (None, "", [], {}):
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationError("costBreakdown must be JSON")

    items: List[Dict[str, Any]] = []
    if isinstance(raw, dict):
        unknown = set(raw) - set(BREAKDOWN_KEYS)
        if unknown:
            raise ValidationError(f"unknown cost items: {', '.join(sorted(unknown))}")
        for key in BREAKDOWN_KEYS:
            cost = _money(raw.get(key) or 0, key)
            if cost:
                items.append({"item": key, "cost": cost})
        return items

    if isinstance(raw, list):
        for entry in raw:
            if not isinstance(entry, dict) or not text(entry.get("item")):
                raise ValidationError("each cost item needs an item name and cost")
            items.append(
                {"item": text(entry["item"]), "cost": _money(entry.get("cost"), "cost")}
            )
        return items

    raise ValidationError("costBreakdown must be a list or an object")


def resolve_target_amount(target_amount: Any, breakdown: List[Dict[str, Any]]) -> float:
    """The breakdown total wins over a stated target."""
    if breakdown:
        total = round(sum(i["cost"] for i in breakdown), 2)
        if total <= 0:
            raise ValidationError("cost breakdown must add up to more than 0")
        return total
    if target_amount in (None, ""):
        raise ValidationError("targetAmount or costBreakdown is required")
    target = _money(target_amount, "targetAmount")
    if target <= 0:
        raise ValidationError("targetAmount must be > 0")
    return target


def create_case(
    *,
    welfare_id: str,
    title: str | None,
    description: str | None,
    target_amount: Any = None,
    cost_breakdown: Any = None,
    blockchain_address: str | None = None,
    image_urls: List[str] | None = None,
    medical_issue: str | None = None,
) -> Dict[str, Any]:
    if not text(title) or not text(description):
        raise ValidationError("title and description are required")
    breakdown = parse_cost_breakdown(cost_breakdown)
    target = resolve_target_amount(target_amount, breakdown)

    with transaction() as cur:
        welfare = get_welfare(cur, welfare_id)
        if not welfare:
            raise NotFoundError("welfare organization not found")
        address = text(blockchain_address) or welfare.get("blockchain_address")
        if not address:
            raise ValidationError("a blockchain address is required to receive donations")
        if address != welfare.get("blockchain_address"):
            set_blockchain_address(cur, welfare_id, address)

        case = insert_case(
            cur,
            title=text(title),
            description=text(description),
            target_amount=target,
            created_by=welfare_id,
            welfare_address=address,
            image_urls=image_urls,
            medical_issue=medical_issue,
            cost_breakdown=breakdown,
        )
    logger.info("case %s created by welfare %s, target %.2f", case["id"], welfare_id, target)
    return case


def get_case_or_404(case_id: str) -> Dict[str, Any]:
    with transaction() as cur:
        case = get_case(cur, case_id)
    if not case:
        raise NotFoundError("case not found")
    return case


def active_cases(limit: int = 50):
    with transaction() as cur:
        return list_active_cases(cur, limit=limit)


def welfare_cases(welfare_id: str):
    with transaction() as cur:
        return list_cases_by_welfare(cur, welfare_id)


def doctor_cases(doctor_id: str):
    with transaction() as cur:
        return list_cases_for_doctor(cur, doctor_id)


def update_blockchain_address(welfare_id: str, address: str | None) -> Dict[str, Any]:
    address = text(address)
    if not address:
        raise ValidationError("blockchainAddress is required")
    with transaction() as cur:
        welfare = set_blockchain_address(cur, welfare_id, address)
    if not welfare:
        raise NotFoundError("welfare organization not found")
    return welfare


def assign_doctor(*, welfare_id: str, case_id: str, doctor_id: str) -> Dict[str, Any]:
    with transaction() as cur:
        case = get_case(cur, case_id, for_update=True)
        if not case:
            raise NotFoundError("case not found")
        doctor = get_doctor(cur, doctor_id)
        if not doctor:
            raise NotFoundError("doctor not found")
        if str(case["created_by"]) != str(welfare_id):
            raise ForbiddenError("case belongs to another organization")
        if str(doctor["welfare_id"]) != str(welfare_id):
            raise ForbiddenError("doctor belongs to another organization")
        if not doctor.get("is_active", True):
            raise ConflictError("doctor has been deactivated")
        case = assign_doctor_row(cur, case_id, doctor_id)
    logger.info("doctor %s assigned to case %s", doctor_id, case_id)
    return case


def case_progress(case_id: str) -> Dict[str, Any]:
    key = case_progress_key(case_id)
    try:
        cached = r().get(key)
        if cached:
            return json.loads(cached)
    except RedisError as e:
        logger.warning("progress cache read failed: %s", e)

    with transaction() as cur:
        case = get_case(cur, case_id)
        if not case:
            raise NotFoundError("case not found")
        donations = list_donations_for_case(cur, case_id)

    target = float(case["target_amount"])
    raised = float(case["amount_raised"])
    out = {
        "case_id": str(case_id),
        "target_amount": target,
        "amount_raised": raised,
        "percent": round(min(100.0, raised / target * 100), 2) if target > 0 else 0.0,
        "donation_count": len(donations),
    }
    try:
        r().setex(key, PROGRESS_TTL_SECONDS, json.dumps(out))
    except RedisError as e:
        logger.warning("progress cache write failed: %s", e)
    return out


def delete_case(*, welfare_id: str, case_id: str) -> Dict[str, Any]:
    """Owner removes a case nobody has donated to; its images go afterwards."""
    with transaction() as cur:
        case = get_case(cur, case_id, for_update=True)
        if not case:
            raise NotFoundError("case not found")
        if str(case["created_by"]) != str(welfare_id):
            raise ForbiddenError("case belongs to another organization")
        if float(case["amount_raised"]) > 0 or count_donations_for_case(cur, case_id):
            raise ConflictError("a case that has received donations cannot be deleted")
        if not delete_case_row(cur, case_id):
            raise ConflictError("a case that has received donations cannot be deleted")

    if not case.get("emergency_id"):
        # converted cases share their images with the emergency record
        s3_helpers.discard_uploads(case.get("image_urls"))
    try:
        r().delete(case_progress_key(case_id))
    except RedisError as e:
        logger.warning("progress cache invalidation for case %s failed: %s", case_id, e)
    logger.info("case %s deleted by welfare %s", case_id, welfare_id)
    return {"deleted": True, "case_id": str(case_id)}
