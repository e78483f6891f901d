# Overview: Stand-in tenant settings routes (list, read, create, update, delete, initialize).

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_tenant
from ..state import get_state


settings_bp = Blueprint("settings", __name__, url_prefix="/api")


@settings_bp.get("/settings")
@require_auth
@require_tenant
def list_settings():
    category = request.args.get("category")
    rows = get_state().tenant_settings(g.tenant_id).values()
    if category:
        rows = [r for r in rows if r["category"] == category]
    return jsonify(sorted(rows, key=lambda r: r["key"])), 200


@settings_bp.get("/settings/<key>")
@require_auth
@require_tenant
def get_setting(key: str):
    entry = get_state().tenant_settings(g.tenant_id).get(key)
    if entry is None:
        return jsonify({"message": f"Setting {key} not found"}), 404
    return jsonify(entry), 200


@settings_bp.post("/settings")
@require_auth
@require_tenant
def create_setting():
    data = request.get_json(silent=True) or {}
    key = data.get("key")
    category = data.get("category")
    if not key or not category:
        return jsonify({"message": "key and category required"}), 400
    if key in get_state().tenant_settings(g.tenant_id):
        return jsonify({"message": f"Setting {key} already exists"}), 409

    entry = get_state().put_setting(
        g.tenant_id, key, data.get("value"), category=category, description=data.get("description"),
    )
    return jsonify(entry), 201


@settings_bp.patch("/settings/<key>")
@require_auth
@require_tenant
def update_setting(key: str):
    existing = get_state().tenant_settings(g.tenant_id).get(key)
    if existing is None:
        return jsonify({"message": f"Setting {key} not found"}), 404

    data = request.get_json(silent=True) or {}
    entry = get_state().put_setting(
        g.tenant_id, key, data.get("value", existing["value"]), description=data.get("description"),
    )
    return jsonify(entry), 200


@settings_bp.delete("/settings/<key>")
@require_auth
@require_tenant
def delete_setting(key: str):
    settings = get_state().tenant_settings(g.tenant_id)
    if settings.pop(key, None) is None:
        return jsonify({"message": f"Setting {key} not found"}), 404
    return "", 204


@settings_bp.post("/settings/initialize")
@require_auth
@require_tenant
def initialize_settings():
    created = get_state().initialize_defaults(g.tenant_id)
    return jsonify({"created": created}), 200
