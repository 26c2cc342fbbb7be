from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity

from pawfund.errors import ApiError, ValidationError
from pawfund.models.adoption_request import list_requests_by_donor, list_requests_for_welfare
from pawfund.services import adoption_service, adoption_workflow
from pawfund.utils import s3_helpers
from pawfund.utils.authz import require_role
from pawfund.utils.db import transaction
from pawfund.utils.payload import as_bool, json_body, pick

adoption_requests = Blueprint("adoption_requests", __name__)


# POST /api/adoption-request
# { adoptionId, donorName, contactNumber, email, reason, preferredContact }
@adoption_requests.post("/")
@require_role("donor")
def create():
    body = json_body()
    req = adoption_workflow.create_request(
        donor_id=get_jwt_identity(),
        adoption_id=pick(body, "adoptionId"),
        donor_name=pick(body, "donorName"),
        contact_number=pick(body, "contactNumber"),
        email=pick(body, "email"),
        reason=pick(body, "reason"),
        preferred_contact=pick(body, "preferredContact"),
    )
    return jsonify(req), 201


@adoption_requests.get("/my")
@require_role("donor")
def mine():
    with transaction() as cur:
        items = list_requests_by_donor(cur, get_jwt_identity())
    return jsonify(items), 200


@adoption_requests.get("/welfare")
@require_role("welfare")
def for_welfare():
    with transaction() as cur:
        items = list_requests_for_welfare(cur, get_jwt_identity())
    return jsonify(items), 200


@adoption_requests.get("/adoption/<adoption_id>")
@require_role("welfare")
def for_listing(adoption_id):
    items = adoption_service.requests_for_listing(
        welfare_id=get_jwt_identity(), adoption_id=adoption_id
    )
    return jsonify(items), 200


# PATCH /api/adoption-request/<id>  { status: approved|rejected }
@adoption_requests.patch("/<request_id>")
@require_role("welfare")
def decide(request_id):
    body = json_body()
    out = adoption_workflow.decide(request_id, get_jwt_identity(), body.get("status"))
    return jsonify(out), 200


# POST /api/adoption-request/<id>/payment-proof  multipart: paymentProof
@adoption_requests.post("/<request_id>/payment-proof")
@require_role("donor")
def payment_proof(request_id):
    f = request.files.get("paymentProof")
    if not f or not f.filename:
        raise ValidationError("No payment proof uploaded")
    url = s3_helpers.store_upload(f, "payment-proofs", "proof")
    try:
        out = adoption_workflow.submit_payment_proof(request_id, get_jwt_identity(), url)
    except ApiError:
        s3_helpers.discard_uploads([url])
        raise
    return jsonify(out), 200


# POST /api/adoption-request/<id>/payment  { amount, fromAddress }
@adoption_requests.post("/<request_id>/payment")
@require_role("donor")
def payment(request_id):
    body = json_body()
    out = adoption_workflow.submit_payment(
        request_id,
        get_jwt_identity(),
        body.get("amount"),
        pick(body, "fromAddress"),
    )
    return jsonify(out), 200


# POST /api/adoption-request/<id>/verify-payment  { verified: bool }
@adoption_requests.post("/<request_id>/verify-payment")
@require_role("welfare")
def verify_payment(request_id):
    body = json_body()
    if "verified" not in body:
        raise ValidationError("verified is required")
    out = adoption_workflow.verify_payment(
        request_id, get_jwt_identity(), as_bool(body["verified"])
    )
    return jsonify(out), 200
