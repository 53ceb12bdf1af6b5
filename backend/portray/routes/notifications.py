from __future__ import annotations

from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth
from ..services import notification_service

notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.route("", methods=["GET"])
@require_auth
def list_notifications():
    unread_only = request.args.get("unread_only", "false").lower() == "true"
    notifications = notification_service.list_for_user(g.current_user.id, unread_only=unread_only)
    return jsonify({"notifications": [n.to_dict() for n in notifications], "count": len(notifications)})


@notifications_bp.route("/unread-count", methods=["GET"])
@require_auth
def unread_count():
    return jsonify({"count": notification_service.unread_count(g.current_user.id)})


@notifications_bp.route("/<int:notification_id>/read", methods=["PATCH"])
@require_auth
def mark_read(notification_id: int):
    notification = notification_service.mark_read(notification_id, g.current_user.id)
    return jsonify({"notification": notification.to_dict()})


@notifications_bp.route("/mark-all-read", methods=["PATCH"])
@require_auth
def mark_all_read():
    updated = notification_service.mark_all_read(g.current_user.id)
    return jsonify({"updated": updated})


@notifications_bp.route("/<int:notification_id>", methods=["DELETE"])
@require_auth
def delete_notification(notification_id: int):
    notification_service.delete_notification(notification_id, g.current_user.id)
    return jsonify({"message": "Notification deleted"})
