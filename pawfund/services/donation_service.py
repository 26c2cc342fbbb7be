"""
Donation recording.

Inserting the Donation and bumping ``cases.amount_raised`` happen in one
transaction. The USD figure is computed here from the server-side ETH/USD
rate; whatever the client claims is only compared for a drift warning.
Cache invalidation, the realtime event and the inbox Message run after the
commit and can only fail softly.
"""

from __future__ import annotations
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from psycopg2.errors import UniqueViolation
from redis import RedisError

from pawfund.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from pawfund.models.case import get_case, increment_amount_raised
from pawfund.models.doctor import get_doctor
from pawfund.models.donation import (
    get_donation_by_tx_hash,
    insert_donation,
    list_donations_by_donor,
    list_donations_by_welfare,
    list_donations_for_case,
)
from pawfund.models.donor import get_donor
from pawfund.realtime import case_room, socketio
from pawfund.services.notification_service import (
    donation_received_message,
    notify,
    thank_you_message,
)
from pawfund.services.rate_service import eth_to_usd, get_eth_usd_rate
from pawfund.utils.cache import case_progress_key, r
from pawfund.utils.db import transaction
from pawfund.utils.payload import number, text

logger = logging.getLogger(__name__)

DRIFT_TOLERANCE = 0.05
RECENT_DAYS = 30


def _mask_address(addr: str | None) -> str | None:
    if not addr:
        return None
    if len(addr) <= 10:
        return addr[:2] + "***"
    return f"{addr[:6]}...{addr[-4:]}"


def _parse_amount(amount: Any) -> float:
    value = number(amount, "amount")
    if value <= 0:
        raise ValidationError("amount must be > 0")
    return value


def _check_drift(client_usd: Any, server_usd: float, tx_hash: str) -> None:
    if client_usd in (None, ""):
        return
    try:
        claimed = float(client_usd)
    except (TypeError, ValueError):
        logger.warning("donation %s: unparseable client amountUsd %r", tx_hash, client_usd)
        return
    if server_usd and abs(claimed - server_usd) / server_usd > DRIFT_TOLERANCE:
        logger.warning(
            "donation %s: client amountUsd %.2f differs from server %.2f",
            tx_hash,
            claimed,
            server_usd,
        )


def _after_commit(donation: Dict[str, Any], case: Dict[str, Any]) -> None:
    cid = case["id"]
    try:
        r().delete(case_progress_key(cid))
    except RedisError as e:
        logger.warning("progress cache invalidation for case %s failed: %s", cid, e)

    payload = {
        "case_id": cid,
        "amount": float(donation["amount"]),
        "amount_usd": float(donation["amount_usd"]),
        "donor": _mask_address(donation.get("donor_address")),
        "amount_raised": float(case["amount_raised"]),
        "target_amount": float(case["target_amount"]),
    }
    try:
        socketio.emit("donation", payload, to=case_room(cid))
    except Exception:
        logger.warning("donation event for case %s not emitted", cid, exc_info=True)


def record_donation(
    *,
    donor_id: str,
    case_id: str,
    amount: Any,
    tx_hash: str | None,
    donor_address: str | None = None,
    message: str | None = None,
    client_amount_usd: Any = None,
    acting_welfare: str | None = None,
) -> Dict[str, Any]:
    """
    Insert a Confirmed donation and credit the case.

    ``acting_welfare`` is set when a welfare records the donation on the
    donor's behalf; the case must then belong to it.
    Returns ``{"donation", "case"}``.
    """
    amount_eth = _parse_amount(amount)
    tx_hash = text(tx_hash)
    if not tx_hash:
        raise ValidationError("txHash is required")
    if not case_id:
        raise ValidationError("caseId is required")

    # outside the transaction: a price feed failure must not leave a write behind
    rate = get_eth_usd_rate()
    amount_usd = eth_to_usd(amount_eth, rate)
    _check_drift(client_amount_usd, amount_usd, tx_hash)

    try:
        with transaction() as cur:
            case = get_case(cur, case_id, for_update=True)
            if not case:
                raise NotFoundError("case not found")
            if acting_welfare and str(case["created_by"]) != str(acting_welfare):
                raise ForbiddenError("case belongs to another organization")
            if not get_donor(cur, donor_id):
                raise NotFoundError("donor not found")
            if get_donation_by_tx_hash(cur, tx_hash):
                raise ConflictError("donation with this txHash already recorded")

            donation = insert_donation(
                cur,
                donor_id=donor_id,
                case_id=case_id,
                welfare_id=case["created_by"],
                amount=amount_eth,
                amount_usd=amount_usd,
                eth_usd_rate=rate,
                tx_hash=tx_hash,
                donor_address=donor_address,
                organization_address=case["welfare_address"],
                message=message,
            )
            case = increment_amount_raised(cur, case_id, amount_usd)
    except UniqueViolation:
        raise ConflictError("donation with this txHash already recorded")

    logger.info(
        "donation %s: %.6f ETH (%.2f USD @ %.2f) to case %s, raised now %s",
        donation["id"],
        amount_eth,
        amount_usd,
        rate,
        case_id,
        case["amount_raised"],
    )
    _after_commit(donation, case)
    return {"donation": donation, "case": case}


def donate(*, donor_id: str, **fields) -> Dict[str, Any]:
    """Donor-initiated donation; the owning welfare gets an inbox Message."""
    out = record_donation(donor_id=donor_id, **fields)
    case = out["case"]
    with transaction() as cur:
        donor = get_donor(cur, donor_id) or {}
    title, content = donation_received_message(
        case["title"], donor.get("name") or "A donor", float(out["donation"]["amount"])
    )
    out["welfareNotified"] = notify(
        from_id=donor_id,
        to_id=case["created_by"],
        title=title,
        content=content,
        related_case=case["id"],
    )
    return out


def process_donation(*, welfare_id: str, donor_id: str, **fields) -> Dict[str, Any]:
    """Welfare-side recording for one of its cases, followed by a thank-you."""
    out = record_donation(donor_id=donor_id, acting_welfare=welfare_id, **fields)
    case = out["case"]
    title, content = thank_you_message(case["title"], float(out["donation"]["amount"]))
    out["thankYouMessageSent"] = notify(
        from_id=welfare_id,
        to_id=donor_id,
        title=title,
        content=content,
        related_case=case["id"],
    )
    return out


def donor_history(donor_id: str):
    with transaction() as cur:
        return list_donations_by_donor(cur, donor_id)


def donor_stats(donor_id: str, now: datetime | None = None) -> Dict[str, Any]:
    """
    Dashboard totals for a donor: lifetime USD, distinct cases and welfares
    supported, the last 30 days, and USD per welfare (largest first).
    """
    with transaction() as cur:
        rows = list_donations_by_donor(cur, donor_id)
    since = (now or datetime.now(timezone.utc)) - timedelta(days=RECENT_DAYS)
    recent = [d for d in rows if d["created_at"] >= since]

    by_welfare: Dict[str, Dict[str, Any]] = {}
    for d in rows:
        wid = str(d["welfare_id"])
        entry = by_welfare.setdefault(
            wid, {"welfare_id": wid, "name": d.get("welfare_name") or "Unknown", "value": 0.0}
        )
        entry["value"] += float(d["amount_usd"])
    for entry in by_welfare.values():
        entry["value"] = round(entry["value"], 2)

    return {
        "totalDonatedUsd": round(sum(float(d["amount_usd"]) for d in rows), 2),
        "donationCount": len(rows),
        "casesSupported": len({str(d["case_id"]) for d in rows}),
        "welfaresSupported": len(by_welfare),
        "lastThirtyDays": {
            "totalUsd": round(sum(float(d["amount_usd"]) for d in recent), 2),
            "count": len(recent),
            "welfares": len({str(d["welfare_id"]) for d in recent}),
        },
        "byWelfare": sorted(by_welfare.values(), key=lambda e: e["value"], reverse=True),
    }


def welfare_donations(welfare_id: str) -> Dict[str, Any]:
    with transaction() as cur:
        rows = list_donations_by_welfare(cur, welfare_id)
    total_usd = round(sum(float(d["amount_usd"]) for d in rows), 2)
    return {
        "donations": rows,
        "totals": {
            "totalUsd": total_usd,
            "count": len(rows),
            "uniqueDonors": len({str(d["donor_id"]) for d in rows}),
        },
    }


def case_donations_for_doctor(case_id: str, doctor_id: str):
    with transaction() as cur:
        case = get_case(cur, case_id)
        if not case:
            raise NotFoundError("case not found")
        if not get_doctor(cur, doctor_id):
            raise NotFoundError("doctor not found")
        if str(case.get("assigned_doctor")) != str(doctor_id):
            raise ForbiddenError("case is not assigned to you")
        return list_donations_for_case(cur, case_id)
