from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt_identity

from pawfund.errors import NotFoundError
from pawfund.models.message import list_messages_to, mark_read
from pawfund.services import donation_service, donor_service
from pawfund.utils.authz import require_role
from pawfund.utils.db import transaction
from pawfund.utils.payload import json_body, pick

donor = Blueprint("donor", __name__)


# POST /api/donor/donate
# { caseId, amount (ETH), txHash, donorAddress?, message?, amountUsd? }
@donor.post("/donate")
@require_role("donor")
def donate():
    body = json_body()
    out = donation_service.donate(
        donor_id=get_jwt_identity(),
        case_id=pick(body, "caseId"),
        amount=body.get("amount"),
        tx_hash=pick(body, "txHash"),
        donor_address=pick(body, "donorAddress"),
        message=body.get("message"),
        client_amount_usd=pick(body, "amountUsd"),
    )
    return jsonify(out), 201


@donor.get("/donations/history")
@require_role("donor")
def history():
    return jsonify(donation_service.donor_history(get_jwt_identity())), 200


@donor.get("/donations/stats")
@require_role("donor")
def stats():
    return jsonify(donation_service.donor_stats(get_jwt_identity())), 200


@donor.get("/saved-welfares")
@require_role("donor")
def saved_welfares():
    return jsonify(donor_service.saved_welfares(get_jwt_identity())), 200


# POST /api/donor/save-welfare  { welfareId }
@donor.post("/save-welfare")
@require_role("donor")
def save_welfare():
    saved = donor_service.save(get_jwt_identity(), pick(json_body(), "welfareId"))
    return jsonify(saved), 201


@donor.delete("/unsave-welfare/<welfare_id>")
@require_role("donor")
def unsave_welfare(welfare_id):
    donor_service.unsave(get_jwt_identity(), welfare_id)
    return jsonify({"ok": True}), 200


@donor.get("/messages")
@require_role("donor")
def inbox():
    with transaction() as cur:
        items = list_messages_to(cur, get_jwt_identity())
    return jsonify(items), 200


@donor.put("/messages/<message_id>/read")
@require_role("donor")
def read(message_id):
    with transaction() as cur:
        ok = mark_read(cur, message_id, get_jwt_identity())
    if not ok:
        raise NotFoundError("message not found")
    return jsonify({"ok": True}), 200
