# Overview: Flask API routes for port admin contacts; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth, require_role
from ..errors import NotFoundError
from ..roles import SYSTEM_ADMIN
from ..services import contact_service, port_service

contacts_bp = Blueprint("contacts", __name__, url_prefix="/api/contacts")


@contacts_bp.get("")
@require_auth
def list_contacts():
    port_id = request.args.get("port_id", type=int)
    allowed = port_service.accessible_port_ids(g.current_user)

    if port_id is not None:
        port_service.ensure_port_access(g.current_user, port_id)
        contacts = contact_service.list_contacts(port_id=port_id)
    else:
        contacts = contact_service.list_contacts()
        if allowed is not None:
            contacts = [c for c in contacts if c.port_id in allowed]

    return jsonify({"contacts": [c.to_dict() for c in contacts], "count": len(contacts)})


@contacts_bp.get("/my-contact")
@require_auth
def my_contact():
    """Contact record linked to the signed-in port admin."""
    contact = contact_service.get_contact_for_user(g.current_user.id)
    if not contact:
        raise NotFoundError("No contact is linked to this account")
    return jsonify({"contact": contact.to_dict()})


@contacts_bp.get("/<int:contact_id>")
@require_auth
def get_contact(contact_id: int):
    contact = contact_service.get_contact(contact_id)
    port_service.ensure_port_access(g.current_user, contact.port_id)
    return jsonify({"contact": contact.to_dict()})


@contacts_bp.patch("/<int:contact_id>")
@require_auth
@require_role(SYSTEM_ADMIN)
def update_contact(contact_id: int):
    contact = contact_service.update_contact(contact_id, request.get_json(silent=True))
    return jsonify({"contact": contact.to_dict()})


@contacts_bp.delete("/<int:contact_id>")
@require_auth
@require_role(SYSTEM_ADMIN)
def delete_contact(contact_id: int):
    contact_service.delete_contact(contact_id)
    return jsonify({"message": "Contact deleted"})


@contacts_bp.post("/<int:contact_id>/resend-verification")
@require_auth
@require_role(SYSTEM_ADMIN)
def resend_verification(contact_id: int):
    email_sent = contact_service.resend_verification(contact_id)
    return jsonify({"message": "Verification re-issued", "email_sent": email_sent})


@contacts_bp.patch("/<int:contact_id>/toggle-status")
@require_auth
@require_role(SYSTEM_ADMIN)
def toggle_contact_status(contact_id: int):
    contact = contact_service.toggle_contact_status(contact_id)
    return jsonify({"contact": contact.to_dict()})
