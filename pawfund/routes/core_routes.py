from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, jwt_required

core = Blueprint("core", __name__)


@core.get("/")
def root():
    return jsonify({"service": "pawfund-api", "ok": True})


@core.get("/api")
def api_index():
    return jsonify(
        {
            "endpoints": {
                "auth": ["/api/auth/login (POST)", "/api/auth/donor/register (POST)"],
                "cases": ["/api/cases", "/api/cases/<id>/progress"],
                "adoptions": ["/api/adoptions", "/api/adoption-request"],
                "emergency": ["/api/emergency (POST)", "/api/emergency/public"],
            }
        }
    )


@core.get("/api/me")
@jwt_required()
def me():
    return jsonify({"id": get_jwt_identity(), "role": get_jwt().get("role")})
