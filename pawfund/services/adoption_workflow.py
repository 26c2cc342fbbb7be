"""
Adoption request state machine.

    pending --approve--> approved
    pending --reject--> rejected
    approved | payment pending --proof/payment--> under review
    under review --verify(true)--> completed   (listing adopted, donor notified)
    under review --verify(false)--> payment pending   (donor notified)

``rejected`` and ``completed`` are terminal. Each transition is one database
transaction; the donor's inbox Message is written after it commits.
"""

from __future__ import annotations
import logging
import os
from typing import Any, Dict, Tuple

from psycopg2.errors import UniqueViolation

from pawfund.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from pawfund.models.adoption import get_adoption, mark_adopted
from pawfund.models.adoption_request import (
    APPROVED,
    COMPLETED,
    PAYMENT_PENDING,
    PENDING,
    REJECTED,
    UNDER_REVIEW,
    create_adoption_request,
    find_open_request,
    get_adoption_request,
    transition_request,
)
from pawfund.models.welfare import get_welfare
from pawfund.services.notification_service import (
    adoption_approved_message,
    adoption_rejected_message,
    notify,
    payment_proof_received_message,
    payment_received_message,
    payment_rejected_message,
    payment_verified_message,
)
from pawfund.utils.db import transaction
from pawfund.utils.payload import number, text

logger = logging.getLogger(__name__)

ADOPTION_FEE_USD = float(os.getenv("ADOPTION_FEE_USD", "30"))
ADOPTION_PAYMENT_ADDRESS = os.getenv("ADOPTION_PAYMENT_ADDRESS", "")

# action -> (allowed source statuses, target status)
TRANSITIONS: Dict[str, Tuple[Tuple[str, ...], str]] = {
    "approve": ((PENDING,), APPROVED),
    "reject": ((PENDING,), REJECTED),
    "submit_payment": ((APPROVED, PAYMENT_PENDING), UNDER_REVIEW),
    "confirm_payment": ((UNDER_REVIEW,), COMPLETED),
    "refuse_payment": ((UNDER_REVIEW,), PAYMENT_PENDING),
}

REQUIRED_FIELDS = ("donor_name", "contact_number", "email", "reason", "preferred_contact")


def _transition(cur, req: Dict[str, Any], action: str, **payment) -> Dict[str, Any]:
    sources, target = TRANSITIONS[action]
    if req["status"] not in sources:
        raise ConflictError(f"cannot {action.replace('_', ' ')} a request that is {req['status']}")
    updated = transition_request(
        cur, req["id"], from_statuses=sources, to_status=target, **payment
    )
    if updated is None:
        # lost a race with another transition
        raise ConflictError("adoption request changed concurrently, reload and retry")
    logger.info(
        "adoption request %s: %s -> %s (%s)", req["id"], req["status"], target, action
    )
    return updated


def _load(cur, request_id: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    req = get_adoption_request(cur, request_id, for_update=True)
    if not req:
        raise NotFoundError("adoption request not found")
    adoption = get_adoption(cur, req["adoption_id"], for_update=True)
    if not adoption:
        raise NotFoundError("adoption listing not found")
    return req, adoption


def _ensure_adoptable(adoption: Dict[str, Any]) -> None:
    if adoption["status"] == "adopted":
        raise ConflictError("this animal has already been adopted")


def _load_for_welfare(cur, request_id: str, welfare_id: str):
    req, adoption = _load(cur, request_id)
    if str(adoption["posted_by"]) != str(welfare_id):
        raise ForbiddenError("not authorized to manage this adoption request")
    return req, adoption


def _load_for_donor(cur, request_id: str, donor_id: str):
    req, adoption = _load(cur, request_id)
    if str(req["donor_id"]) != str(donor_id):
        raise ForbiddenError("not authorized to pay for this adoption request")
    return req, adoption


def create_request(*, donor_id: str, adoption_id: str, **fields) -> Dict[str, Any]:
    missing = [f for f in REQUIRED_FIELDS if not text(fields.get(f))]
    if missing:
        raise ValidationError(f"missing required fields: {', '.join(missing)}")

    try:
        with transaction() as cur:
            adoption = get_adoption(cur, adoption_id)
            if not adoption:
                raise NotFoundError("adoption listing not found")
            _ensure_adoptable(adoption)
            if find_open_request(cur, adoption_id, donor_id):
                raise ConflictError("you already have an open request for this animal")
            req = create_adoption_request(
                cur,
                adoption_id=adoption_id,
                donor_id=donor_id,
                **{f: text(fields[f]) for f in REQUIRED_FIELDS},
            )
    except UniqueViolation:
        raise ConflictError("you already have an open request for this animal")
    logger.info("adoption request %s filed for listing %s", req["id"], adoption_id)
    return req


def approve(request_id: str, welfare_id: str) -> Dict[str, Any]:
    with transaction() as cur:
        req, adoption = _load_for_welfare(cur, request_id, welfare_id)
        _ensure_adoptable(adoption)
        updated = _transition(cur, req, "approve")
        welfare = get_welfare(cur, welfare_id) or {}
    wallet = welfare.get("blockchain_address") or ADOPTION_PAYMENT_ADDRESS
    title, content = adoption_approved_message(adoption["name"], ADOPTION_FEE_USD, wallet)
    notified = notify(from_id=welfare_id, to_id=req["donor_id"], title=title, content=content)
    return {"request": updated, "notified": notified}


def reject(request_id: str, welfare_id: str) -> Dict[str, Any]:
    with transaction() as cur:
        req, adoption = _load_for_welfare(cur, request_id, welfare_id)
        updated = _transition(cur, req, "reject")
    title, content = adoption_rejected_message(adoption["name"])
    notified = notify(from_id=welfare_id, to_id=req["donor_id"], title=title, content=content)
    return {"request": updated, "notified": notified}


def decide(request_id: str, welfare_id: str, status: str | None) -> Dict[str, Any]:
    if status == APPROVED:
        return approve(request_id, welfare_id)
    if status == REJECTED:
        return reject(request_id, welfare_id)
    raise ValidationError("status must be 'approved' or 'rejected'")


def submit_payment_proof(request_id: str, donor_id: str, proof: str) -> Dict[str, Any]:
    if not proof:
        raise ValidationError("no payment proof uploaded")
    with transaction() as cur:
        req, adoption = _load_for_donor(cur, request_id, donor_id)
        _ensure_adoptable(adoption)
        updated = _transition(cur, req, "submit_payment", payment_proof=proof)
    title, content = payment_proof_received_message(adoption["name"])
    notified = notify(
        from_id=adoption["posted_by"], to_id=donor_id, title=title, content=content
    )
    return {"request": updated, "notified": notified}


def submit_payment(
    request_id: str, donor_id: str, amount: Any, from_address: str | None
) -> Dict[str, Any]:
    amount = number(amount, "amount")
    from_address = text(from_address)
    if not from_address:
        raise ValidationError("fromAddress is required")

    with transaction() as cur:
        req, adoption = _load_for_donor(cur, request_id, donor_id)
        _ensure_adoptable(adoption)
        if amount < ADOPTION_FEE_USD:
            raise ValidationError(
                f"payment amount is less than the required {ADOPTION_FEE_USD:g} USDT"
            )
        updated = _transition(
            cur,
            req,
            "submit_payment",
            payment_proof=from_address,
            payment_amount=amount,
        )
    title, content = payment_received_message(adoption["name"], amount, from_address)
    notified = notify(
        from_id=adoption["posted_by"], to_id=donor_id, title=title, content=content
    )
    return {"request": updated, "notified": notified}


def verify_payment(request_id: str, welfare_id: str, verified: bool) -> Dict[str, Any]:
    with transaction() as cur:
        req, adoption = _load_for_welfare(cur, request_id, welfare_id)
        if verified:
            updated = _transition(cur, req, "confirm_payment")
            adopted = mark_adopted(cur, adoption["id"], req["donor_id"])
            if adopted is None:
                raise ConflictError("this animal has already been adopted")
            adoption = adopted
            logger.info("adoption %s adopted by donor %s", adoption["id"], req["donor_id"])
            title, content = payment_verified_message(adoption["name"])
        else:
            updated = _transition(cur, req, "refuse_payment")
            title, content = payment_rejected_message(adoption["name"])

    notified = notify(from_id=welfare_id, to_id=req["donor_id"], title=title, content=content)
    return {"request": updated, "adoption": adoption, "notified": notified}
