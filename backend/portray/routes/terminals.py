# Overview: Flask API routes for terminal queries and lifecycle transitions.

# backend/portray/routes/terminals.py
"""
Terminal API routes

Creation lives under /api/ports/<port_id>/terminals. Activation and status
overrides are SystemAdmin-only; the role check happens in the service so
the same rule holds for every caller.
"""

from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth, require_role
from ..errors import ValidationError
from ..roles import SYSTEM_ADMIN
from ..services import audit_service, terminal_service
from ..validation import json_object

terminals_bp = Blueprint("terminals", __name__, url_prefix="/api/terminals")
subscription_types_bp = Blueprint("subscription_types", __name__, url_prefix="/api/subscription-types")


@terminals_bp.get("")
@require_auth
def list_terminals():
    port_id = request.args.get("port_id", type=int)
    terminals = terminal_service.list_terminals(g.current_user, port_id=port_id)
    return jsonify({"terminals": [t.to_dict() for t in terminals], "count": len(terminals)})


@terminals_bp.get("/pending-activation")
@require_auth
@require_role(SYSTEM_ADMIN)
def pending_activation():
    terminals = terminal_service.list_pending_activation()
    return jsonify({"terminals": terminals, "count": len(terminals)})


@terminals_bp.get("/active-subscribed")
@require_auth
def active_subscribed():
    terminals = terminal_service.list_active_subscribed(g.current_user)
    return jsonify({"terminals": [t.to_dict() for t in terminals], "count": len(terminals)})


@terminals_bp.get("/<int:terminal_id>")
@require_auth
def get_terminal(terminal_id: int):
    terminal = terminal_service.get_terminal_for(g.current_user, terminal_id)
    return jsonify({"terminal": terminal.to_dict()})


@terminals_bp.put("/<int:terminal_id>")
@require_auth
def update_terminal(terminal_id: int):
    """
    Update a terminal.

    While the terminal is Active only the descriptive fields are applied;
    the names of dropped fields come back in "ignored_fields".
    """
    result = terminal_service.update_terminal(terminal_id, request.get_json(silent=True), g.current_user)
    return jsonify({"terminal": result.terminal.to_dict(), "ignored_fields": result.ignored_fields})


@terminals_bp.put("/<int:terminal_id>/activate")
@require_auth
def activate_terminal(terminal_id: int):
    """
    Activate a terminal for a subscription period.

    Body: {"activation_start_date": "YYYY-MM-DD", "subscription_type_id",
           "work_order_no"?, "work_order_date"?}
    """
    data = json_object(request.get_json(silent=True))
    terminal = terminal_service.activate_terminal(
        terminal_id,
        g.current_user,
        activation_start_date=data.get("activation_start_date"),
        subscription_type_id=data.get("subscription_type_id"),
        work_order_no=data.get("work_order_no"),
        work_order_date=data.get("work_order_date"),
    )
    return jsonify({"terminal": terminal.to_dict(), "message": "Terminal activated"})


@terminals_bp.put("/<int:terminal_id>/status")
@require_auth
def set_terminal_status(terminal_id: int):
    data = json_object(request.get_json(silent=True))
    status = data.get("status")
    if not status:
        raise ValidationError("status is required", field="status")
    terminal = terminal_service.set_terminal_status(terminal_id, status, g.current_user, reason=data.get("reason"))
    return jsonify({"terminal": terminal.to_dict()})


@terminals_bp.get("/<int:terminal_id>/activation-log")
@require_auth
def activation_log(terminal_id: int):
    terminal_service.get_terminal_for(g.current_user, terminal_id)
    entries = audit_service.list_activation_log(terminal_id)
    return jsonify({"logs": [e.to_dict() for e in entries], "count": len(entries)})


@subscription_types_bp.get("")
@require_auth
def list_subscription_types():
    types = terminal_service.list_subscription_types()
    return jsonify({"subscription_types": [t.to_dict() for t in types]})
