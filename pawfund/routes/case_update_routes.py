from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt_identity

from pawfund.services import case_update_service
from pawfund.utils.authz import require_role
from pawfund.utils.payload import as_bool, json_body, limit_arg, pick

case_updates = Blueprint("case_updates", __name__)


@case_updates.get("/success-stories")
def success_stories():
    limit = limit_arg()
    return jsonify(case_update_service.success_stories(limit)), 200


# POST /api/case-updates
# { caseId, title, content, imageUrls?, isSuccessStory?, isPublished? }
@case_updates.post("/")
@require_role("welfare")
def create():
    body = json_body()
    update = case_update_service.post_update(
        welfare_id=get_jwt_identity(),
        case_id=pick(body, "caseId"),
        title=body.get("title"),
        content=body.get("content"),
        image_urls=pick(body, "imageUrls"),
        is_success_story=as_bool(pick(body, "isSuccessStory")),
        is_published=as_bool(pick(body, "isPublished"), default=True),
    )
    return jsonify(update), 201


@case_updates.put("/<update_id>")
@require_role("welfare")
def edit(update_id):
    body = json_body()
    flags = {}
    for camel, field in (("isSuccessStory", "is_success_story"), ("isPublished", "is_published")):
        if pick(body, camel) is not None:
            flags[field] = as_bool(pick(body, camel))
    update = case_update_service.edit_update(
        welfare_id=get_jwt_identity(),
        update_id=update_id,
        title=body.get("title"),
        content=body.get("content"),
        image_urls=pick(body, "imageUrls"),
        **flags,
    )
    return jsonify(update), 200


@case_updates.delete("/<update_id>")
@require_role("welfare")
def delete(update_id):
    out = case_update_service.remove_update(
        welfare_id=get_jwt_identity(), update_id=update_id
    )
    return jsonify(out), 200
