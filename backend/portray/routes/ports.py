# Overview: Flask API routes for ports and the terminals/contacts nested under them.

from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth, require_role
from ..roles import SYSTEM_ADMIN
from ..services import contact_service, port_service, terminal_service

ports_bp = Blueprint("ports", __name__, url_prefix="/api/ports")


@ports_bp.get("")
@require_auth
def list_ports():
    organization_id = request.args.get("organization_id", type=int)
    ports = port_service.list_ports(g.current_user, organization_id=organization_id)
    return jsonify({"ports": [p.to_dict() for p in ports], "count": len(ports)})


@ports_bp.post("")
@require_auth
@require_role(SYSTEM_ADMIN)
def create_port():
    port = port_service.create_port(request.get_json(silent=True))
    return jsonify({"port": port.to_dict()}), 201


@ports_bp.get("/<int:port_id>")
@require_auth
def get_port(port_id: int):
    port = port_service.get_port(port_id)
    port_service.ensure_port_access(g.current_user, port.id)
    return jsonify({"port": port.to_dict()})


@ports_bp.put("/<int:port_id>")
@require_auth
@require_role(SYSTEM_ADMIN)
def update_port(port_id: int):
    port = port_service.update_port(port_id, request.get_json(silent=True))
    return jsonify({"port": port.to_dict()})


@ports_bp.patch("/<int:port_id>/toggle-status")
@require_auth
@require_role(SYSTEM_ADMIN)
def toggle_port_status(port_id: int):
    port = port_service.toggle_port_status(port_id)
    return jsonify({"port": port.to_dict()})


# =============================================================================
# TERMINALS OF A PORT
# =============================================================================

@ports_bp.get("/<int:port_id>/terminals")
@require_auth
def list_port_terminals(port_id: int):
    port_service.get_port(port_id)
    terminals = terminal_service.list_terminals(g.current_user, port_id=port_id)
    return jsonify({"terminals": [t.to_dict() for t in terminals], "count": len(terminals)})


@ports_bp.post("/<int:port_id>/terminals")
@require_auth
def submit_terminal(port_id: int):
    terminal = terminal_service.submit_terminal(port_id, request.get_json(silent=True), g.current_user)
    return jsonify({"terminal": terminal.to_dict()}), 201


# =============================================================================
# CONTACTS OF A PORT
# =============================================================================

@ports_bp.get("/<int:port_id>/contacts")
@require_auth
def list_port_contacts(port_id: int):
    port_service.get_port(port_id)
    port_service.ensure_port_access(g.current_user, port_id)
    contacts = contact_service.list_contacts(port_id=port_id)
    return jsonify({"contacts": [c.to_dict() for c in contacts], "count": len(contacts)})


@ports_bp.post("/<int:port_id>/contacts")
@require_auth
@require_role(SYSTEM_ADMIN)
def create_port_contact(port_id: int):
    contact, email_sent = contact_service.create_contact(port_id, request.get_json(silent=True))
    return jsonify({"contact": contact.to_dict(), "email_sent": email_sent}), 201
