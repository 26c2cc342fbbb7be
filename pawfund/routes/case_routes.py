from flask import Blueprint, jsonify

from pawfund.services import case_service, case_update_service
from pawfund.utils.payload import limit_arg

cases = Blueprint("cases", __name__)


@cases.get("/")
def list_active():
    limit = limit_arg()
    return jsonify(case_service.active_cases(limit)), 200


@cases.get("/<case_id>")
def get_one(case_id):
    return jsonify(case_service.get_case_or_404(case_id)), 200


@cases.get("/<case_id>/progress")
def progress(case_id):
    return jsonify(case_service.case_progress(case_id)), 200


@cases.get("/<case_id>/updates")
def updates(case_id):
    return jsonify(case_update_service.public_updates(case_id)), 200
