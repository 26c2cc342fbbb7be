from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity

from pawfund.errors import ApiError, NotFoundError
from pawfund.models.message import list_messages_from
from pawfund.models.welfare import get_welfare
from pawfund.services import auth_service, case_service, donation_service
from pawfund.utils import s3_helpers
from pawfund.utils.authz import require_role
from pawfund.utils.db import transaction
from pawfund.utils.payload import form_body, json_body, pick

welfare = Blueprint("welfare", __name__)


@welfare.get("/profile")
@require_role("welfare")
def profile():
    with transaction() as cur:
        org = get_welfare(cur, get_jwt_identity())
    if not org:
        raise NotFoundError("welfare organization not found")
    return jsonify(org), 200


# PUT /api/welfare/profile  { name?, email?, phone?, address?, description?, website? }
@welfare.put("/profile")
@welfare.put("/profile/update")
@require_role("welfare")
def update_profile():
    return jsonify(auth_service.update_profile(get_jwt_identity(), json_body())), 200


# PUT /api/welfare/blockchain-address  { blockchainAddress }
@welfare.put("/blockchain-address")
@require_role("welfare")
def blockchain_address():
    body = json_body()
    org = case_service.update_blockchain_address(
        get_jwt_identity(), pick(body, "blockchainAddress")
    )
    return jsonify(org), 200


# POST /api/welfare/process-donation
# { donorId, caseId, amount, txHash, donorAddress?, message? }
@welfare.post("/process-donation")
@require_role("welfare")
def process_donation():
    body = json_body()
    out = donation_service.process_donation(
        welfare_id=get_jwt_identity(),
        donor_id=pick(body, "donorId"),
        case_id=pick(body, "caseId"),
        amount=body.get("amount"),
        tx_hash=pick(body, "txHash"),
        donor_address=pick(body, "donorAddress"),
        message=body.get("message"),
        client_amount_usd=pick(body, "amountUsd"),
    )
    return jsonify(out), 201


@welfare.get("/donations")
@require_role("welfare")
def donations():
    return jsonify(donation_service.welfare_donations(get_jwt_identity())), 200


@welfare.get("/cases")
@require_role("welfare")
def my_cases():
    return jsonify(case_service.welfare_cases(get_jwt_identity())), 200


# POST /api/welfare/cases  multipart (fields + images[]) or JSON
# { title, description, targetAmount | costBreakdown, blockchainAddress?, medicalIssue? }
@welfare.post("/cases")
@require_role("welfare")
def create_case():
    body = form_body()
    images = s3_helpers.store_uploads(request.files.getlist("images"), "cases")
    try:
        case = case_service.create_case(
            welfare_id=get_jwt_identity(),
            title=body.get("title"),
            description=body.get("description"),
            target_amount=pick(body, "targetAmount"),
            cost_breakdown=pick(body, "costBreakdown"),
            blockchain_address=pick(body, "blockchainAddress"),
            image_urls=images or body.get("images"),
            medical_issue=pick(body, "medicalIssue"),
        )
    except ApiError:
        s3_helpers.discard_uploads(images)
        raise
    return jsonify(case), 201


@welfare.delete("/cases/<case_id>")
@require_role("welfare")
def delete_case(case_id):
    return jsonify(case_service.delete_case(welfare_id=get_jwt_identity(), case_id=case_id)), 200


@welfare.get("/messages")
@require_role("welfare")
def sent_messages():
    with transaction() as cur:
        items = list_messages_from(cur, get_jwt_identity())
    return jsonify(items), 200
