# Overview: Flask API routes for user administration; parses input and returns JSON responses.

# backend/portray/routes/users.py
"""
User management routes (SystemAdmin only).

Every change is recorded in the user audit log with the acting admin,
client IP and user agent.
"""

from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth, require_role
from ..roles import SYSTEM_ADMIN
from ..services import audit_service, user_service

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _actor_kwargs() -> dict:
    return {
        "performed_by": g.current_user.id,
        "ip_address": request.remote_addr,
        "user_agent": request.headers.get("User-Agent"),
    }


@users_bp.get("")
@require_auth
@require_role(SYSTEM_ADMIN)
def list_users():
    """Query params: include_inactive (bool, default true)."""
    include_inactive = request.args.get("include_inactive", "true").lower() == "true"
    users = user_service.list_users(include_inactive=include_inactive)
    return jsonify({"users": [u.to_dict() for u in users], "count": len(users)})


@users_bp.post("")
@require_auth
@require_role(SYSTEM_ADMIN)
def create_user():
    user = user_service.create_user(request.get_json(silent=True), **_actor_kwargs())
    return jsonify({"user": user.to_dict()}), 201


@users_bp.get("/<int:user_id>")
@require_auth
@require_role(SYSTEM_ADMIN)
def get_user(user_id: int):
    return jsonify({"user": user_service.get_user(user_id).to_dict()})


@users_bp.put("/<int:user_id>")
@require_auth
@require_role(SYSTEM_ADMIN)
def update_user(user_id: int):
    user = user_service.update_user(user_id, request.get_json(silent=True), **_actor_kwargs())
    return jsonify({"user": user.to_dict()})


@users_bp.patch("/<int:user_id>/toggle-status")
@require_auth
@require_role(SYSTEM_ADMIN)
def toggle_user_status(user_id: int):
    user = user_service.toggle_user_status(user_id, **_actor_kwargs())
    return jsonify({"user": user.to_dict()})


@users_bp.delete("/<int:user_id>")
@require_auth
@require_role(SYSTEM_ADMIN)
def delete_user(user_id: int):
    user_service.delete_user(user_id, **_actor_kwargs())
    return jsonify({"message": "User deleted"})


@users_bp.get("/<int:user_id>/audit-logs")
@require_auth
@require_role(SYSTEM_ADMIN)
def user_audit_logs(user_id: int):
    entries = audit_service.list_user_audit(user_id)
    return jsonify({"logs": [e.to_dict() for e in entries], "count": len(entries)})
