"""
Emergency reports, welfare triage and the one-shot conversion into a Case.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List

from pawfund.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from pawfund.models.case import create_case
from pawfund.models.emergency import (
    RESOLVED,
    STATUSES,
    create_emergency,
    get_emergency,
    list_emergencies,
    mark_converted,
    update_emergency,
)
from pawfund.models.welfare import get_welfare
from pawfund.services.case_service import parse_cost_breakdown, resolve_target_amount
from pawfund.utils.db import transaction
from pawfund.utils.payload import number, text

logger = logging.getLogger(__name__)

REPORT_FIELDS = ("name", "phone", "animal_type", "condition", "location", "description")


def report(*, images: List[str] | None = None, email: str | None = None, **fields) -> Dict[str, Any]:
    missing = [f for f in REPORT_FIELDS if not text(fields.get(f))]
    if missing:
        raise ValidationError(f"missing required fields: {', '.join(missing)}")
    with transaction() as cur:
        emergency = create_emergency(
            cur,
            email=email,
            images=images,
            **{f: text(fields[f]) for f in REPORT_FIELDS},
        )
    logger.info("emergency %s reported (%s)", emergency["id"], emergency["animal_type"])
    return emergency


def list_for(role: str | None, status: str | None = None):
    """Public callers get no contact details; welfare users only see open reports."""
    with transaction() as cur:
        if role is None:
            return list_emergencies(cur, status=status, public=True)
        return list_emergencies(cur, status=status, open_only=(role == "welfare"))


def get_one(emergency_id: str) -> Dict[str, Any]:
    with transaction() as cur:
        emergency = get_emergency(cur, emergency_id)
    if not emergency:
        raise NotFoundError("emergency not found")
    return emergency


def triage(*, welfare_id: str, emergency_id: str, **fields) -> Dict[str, Any]:
    status = fields.get("status")
    if status is not None and status not in STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(STATUSES)}")
    if fields.get("estimated_cost") not in (None, ""):
        fields["estimated_cost"] = number(fields["estimated_cost"], "estimatedCost")
    else:
        fields.pop("estimated_cost", None)

    with transaction() as cur:
        emergency = get_emergency(cur, emergency_id, for_update=True)
        if not emergency:
            raise NotFoundError("emergency not found")
        assigned = emergency.get("assigned_to")
        if assigned and str(assigned) != str(welfare_id):
            raise ForbiddenError("emergency is handled by another organization")
        if emergency["converted_to_case"]:
            raise ConflictError("emergency was already converted to a case")
        updated = update_emergency(cur, emergency_id, assigned_to=welfare_id, **fields)
        if updated is None:
            raise ConflictError("emergency was already converted to a case")
    logger.info(
        "emergency %s triaged by welfare %s: %s -> %s",
        emergency_id,
        welfare_id,
        emergency["status"],
        updated["status"],
    )
    return updated


def convert_to_case(
    *,
    welfare_id: str,
    emergency_id: str,
    title: str | None,
    description: str | None,
    target_amount: Any = None,
    cost_breakdown: Any = None,
) -> Dict[str, Any]:
    """
    Consume the emergency and open a Case for it. Both writes share one
    transaction; a second attempt fails the guard and creates nothing.
    """
    with transaction() as cur:
        emergency = get_emergency(cur, emergency_id, for_update=True)
        if not emergency:
            raise NotFoundError("emergency not found")
        if emergency["converted_to_case"]:
            raise ConflictError("emergency was already converted to a case")
        if emergency["status"] == RESOLVED:
            raise ConflictError("emergency is already resolved")

        welfare = get_welfare(cur, welfare_id)
        if not welfare:
            raise NotFoundError("welfare organization not found")
        if not welfare.get("blockchain_address"):
            raise ValidationError(
                "register a blockchain address before converting emergencies to cases"
            )
        if not text(title) or not text(description):
            raise ValidationError("title and description are required")
        breakdown = parse_cost_breakdown(cost_breakdown)
        target = resolve_target_amount(target_amount, breakdown)

        images = emergency.get("images") or []
        case = create_case(
            cur,
            title=text(title),
            description=text(description),
            target_amount=target,
            created_by=welfare_id,
            welfare_address=welfare["blockchain_address"],
            image_urls=images[:1],
            medical_issue=emergency.get("medical_issue"),
            cost_breakdown=breakdown,
            emergency_id=emergency_id,
        )
        converted = mark_converted(
            cur,
            emergency_id,
            case_id=case["id"],
            welfare_id=welfare_id,
            treatment_plan=f"Converted to case: {case['id']}",
        )
        if converted is None:
            raise ConflictError("emergency was already converted to a case")

    logger.info("emergency %s converted to case %s by welfare %s", emergency_id, case["id"], welfare_id)
    return {"case": case, "emergency": converted}
