from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt, get_jwt_identity, jwt_required

from pawfund.errors import ApiError
from pawfund.services import emergency_service
from pawfund.utils import s3_helpers
from pawfund.utils.authz import require_role
from pawfund.utils.payload import form_body, json_body, pick

emergency = Blueprint("emergency", __name__)


# POST /api/emergency  multipart, no auth
# { name, phone, email?, animalType, condition, location, description } + images[]
@emergency.post("/")
def report():
    body = form_body()
    images = s3_helpers.store_uploads(request.files.getlist("images"), "emergencies")
    try:
        item = emergency_service.report(
            name=body.get("name"),
            phone=body.get("phone"),
            email=body.get("email"),
            animal_type=pick(body, "animalType"),
            condition=body.get("condition"),
            location=body.get("location"),
            description=body.get("description"),
            images=images,
        )
    except ApiError:
        s3_helpers.discard_uploads(images)
        raise
    return jsonify(item), 201


@emergency.get("/public")
def public_list():
    return jsonify(emergency_service.list_for(None, request.args.get("status"))), 200


@emergency.get("/")
@jwt_required()
def list_all():
    role = get_jwt().get("role")
    return jsonify(emergency_service.list_for(role, request.args.get("status"))), 200


@emergency.get("/<emergency_id>")
@jwt_required()
def get_one(emergency_id):
    return jsonify(emergency_service.get_one(emergency_id)), 200


# PUT /api/emergency/<id>  { status?, medicalIssue?, estimatedCost?, treatmentPlan? }
@emergency.put("/<emergency_id>")
@require_role("welfare")
def triage(emergency_id):
    body = json_body()
    item = emergency_service.triage(
        welfare_id=get_jwt_identity(),
        emergency_id=emergency_id,
        status=body.get("status"),
        medical_issue=pick(body, "medicalIssue"),
        estimated_cost=pick(body, "estimatedCost"),
        treatment_plan=pick(body, "treatmentPlan"),
    )
    return jsonify(item), 200


# POST /api/emergency/<id>/convert-to-case
# { title, description, targetAmount | costBreakdown }
@emergency.post("/<emergency_id>/convert-to-case")
@require_role("welfare")
def convert(emergency_id):
    body = json_body()
    out = emergency_service.convert_to_case(
        welfare_id=get_jwt_identity(),
        emergency_id=emergency_id,
        title=body.get("title"),
        description=body.get("description"),
        target_amount=pick(body, "targetAmount"),
        cost_breakdown=pick(body, "costBreakdown"),
    )
    return jsonify(out), 201
