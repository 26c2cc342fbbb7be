from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt_identity

from pawfund.models.doctor import list_doctors_for_welfare
from pawfund.services import auth_service, case_service, case_update_service, donation_service
from pawfund.utils.authz import require_role
from pawfund.utils.db import transaction
from pawfund.utils.payload import json_body, pick

doctors = Blueprint("doctors", __name__)


# POST /api/doctors  { name, email, password, specialization }
@doctors.post("/")
@require_role("welfare")
def create():
    return jsonify(auth_service.register_doctor(get_jwt_identity(), json_body())), 201


@doctors.get("/")
@require_role("welfare")
def list_mine():
    with transaction() as cur:
        items = list_doctors_for_welfare(cur, get_jwt_identity())
    return jsonify(items), 200


# PUT /api/doctors/<id>  { name?, email?, specialization? }
@doctors.put("/<doctor_id>")
@require_role("welfare")
def update(doctor_id):
    return jsonify(auth_service.update_doctor(get_jwt_identity(), doctor_id, json_body())), 200


@doctors.delete("/<doctor_id>")
@require_role("welfare")
def deactivate(doctor_id):
    return jsonify(auth_service.deactivate_doctor(get_jwt_identity(), doctor_id)), 200


# POST /api/doctors/<id>/assign-case  { caseId }
@doctors.post("/<doctor_id>/assign-case")
@require_role("welfare")
def assign_case(doctor_id):
    body = json_body()
    case = case_service.assign_doctor(
        welfare_id=get_jwt_identity(),
        case_id=pick(body, "caseId"),
        doctor_id=doctor_id,
    )
    return jsonify(case), 200


@doctors.get("/me/cases")
@require_role("doctor")
def my_cases():
    return jsonify(case_service.doctor_cases(get_jwt_identity())), 200


# POST /api/doctors/cases/<case_id>/diagnosis  { medicalIssue, notes? }
@doctors.post("/cases/<case_id>/diagnosis")
@require_role("doctor")
def diagnosis(case_id):
    body = json_body()
    update = case_update_service.post_diagnosis(
        doctor_id=get_jwt_identity(),
        case_id=case_id,
        medical_issue=pick(body, "medicalIssue"),
        notes=body.get("notes"),
    )
    return jsonify(update), 201


@doctors.get("/cases/<case_id>/donations")
@require_role("doctor")
def case_donations(case_id):
    items = donation_service.case_donations_for_doctor(case_id, get_jwt_identity())
    return jsonify(items), 200
