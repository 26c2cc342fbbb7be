from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity

from pawfund.errors import ApiError
from pawfund.services import adoption_service
from pawfund.utils import s3_helpers
from pawfund.utils.authz import require_role
from pawfund.utils.payload import form_body, json_body

adoptions = Blueprint("adoptions", __name__)

LISTING_FIELDS = (
    "name",
    "type",
    "breed",
    "age",
    "gender",
    "size",
    "description",
    "location",
    "health",
    "behavior",
)


# GET /api/adoptions?status=available
@adoptions.get("/")
def list_all():
    return jsonify(adoption_service.browse(request.args.get("status"))), 200


@adoptions.get("/<adoption_id>")
def get_one(adoption_id):
    return jsonify(adoption_service.get_listing(adoption_id)), 200


# POST /api/adoptions  multipart (fields + images[]) or JSON
@adoptions.post("/")
@require_role("welfare")
def create():
    body = form_body()
    images = s3_helpers.store_uploads(request.files.getlist("images"), "adoptions")
    try:
        adoption = adoption_service.create_listing(
            welfare_id=get_jwt_identity(),
            images=images,
            **{f: body.get(f) for f in LISTING_FIELDS},
        )
    except ApiError:
        s3_helpers.discard_uploads(images)
        raise
    return jsonify(adoption), 201


# PATCH /api/adoptions/<id>  { name?, ..., status? (available|reserved) }
@adoptions.patch("/<adoption_id>")
@require_role("welfare")
def patch(adoption_id):
    body = json_body()
    fields = {f: body.get(f) for f in LISTING_FIELDS + ("status",)}
    adoption = adoption_service.edit_listing(
        welfare_id=get_jwt_identity(), adoption_id=adoption_id, **fields
    )
    return jsonify(adoption), 200
