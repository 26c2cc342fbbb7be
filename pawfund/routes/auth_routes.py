from flask import Blueprint, jsonify
from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity, jwt_required

from pawfund.services.auth_service import login, signup_donor, signup_welfare
from pawfund.utils.payload import json_body
from pawfund.utils.rate_limit import AUTH_PER_MINUTE, rate_limit_decorator

auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/donor/register")
@rate_limit_decorator(AUTH_PER_MINUTE, "register")
def register_donor():
    return jsonify(signup_donor(json_body())), 201


@auth_bp.post("/welfare/register")
@rate_limit_decorator(AUTH_PER_MINUTE, "register")
def register_welfare():
    return jsonify(signup_welfare(json_body())), 201


# POST /api/auth/login  { email, password, role }
@auth_bp.post("/login")
@rate_limit_decorator(AUTH_PER_MINUTE, "login")
def login_route():
    return jsonify(login(json_body())), 200


@auth_bp.post("/refresh")
@jwt_required(refresh=True)
def refresh():
    new_access = create_access_token(
        identity=get_jwt_identity(), additional_claims={"role": get_jwt().get("role")}
    )
    return jsonify({"access_token": new_access}), 200
