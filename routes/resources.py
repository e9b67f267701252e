from flask import Blueprint, request, jsonify, g

from security.identity import ADMIN
from security.rbac import require_roles
from services.registry import resource_catalog
from routes.helpers import page_args, page_json
from utils.audit import log_event

resource_bp = Blueprint("resources", __name__, url_prefix="/resources")


def resource_json(r):
    return {
        "id": r.id,
        "name": r.name,
        "description": r.description,
        "created_at": r.created_at.isoformat() if r.created_at else None,
    }


# ---------- public catalog ----------
@resource_bp.get("")
def list_resources():
    page, size = page_args()
    return jsonify(page_json(resource_catalog().list(page, size), resource_json)), 200


@resource_bp.get("/search")
def search_resources():
    query = request.args.get("query") or ""
    page, size = page_args()
    return jsonify(page_json(resource_catalog().search(query, page, size), resource_json)), 200


@resource_bp.get("/<int:resource_id>")
def get_resource(resource_id: int):
    return jsonify(resource_json(resource_catalog().get(resource_id))), 200


# ---------- ADMIN: manage catalog ----------
@resource_bp.post("")
@require_roles(ADMIN)
def create_resource():
    data = request.get_json(silent=True) or {}
    resource = resource_catalog().create(data.get("name"), data.get("description"))

    log_event("RESOURCE_CREATE", user_id=g.identity.owner_id, entity="resource", entity_id=resource.id)
    return jsonify(resource_json(resource)), 201


@resource_bp.put("/<int:resource_id>")
@require_roles(ADMIN)
def update_resource(resource_id: int):
    data = request.get_json(silent=True) or {}
    resource = resource_catalog().update(resource_id, data.get("name"), data.get("description"))

    log_event("RESOURCE_UPDATE", user_id=g.identity.owner_id, entity="resource", entity_id=resource.id)
    return jsonify(resource_json(resource)), 200


@resource_bp.delete("/<int:resource_id>")
@require_roles(ADMIN)
def delete_resource(resource_id: int):
    resource_catalog().delete(resource_id)

    log_event("RESOURCE_DELETE", user_id=g.identity.owner_id, entity="resource", entity_id=resource_id)
    return "", 204
