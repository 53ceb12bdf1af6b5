# Overview: Flask API routes for organization operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_role
from ..roles import SYSTEM_ADMIN
from ..services import organization_service

organizations_bp = Blueprint("organizations", __name__, url_prefix="/api/organizations")


@organizations_bp.get("")
@require_auth
def list_organizations():
    include_inactive = request.args.get("include_inactive", "true").lower() == "true"
    organizations = organization_service.list_organizations(include_inactive=include_inactive)
    return jsonify({"organizations": [o.to_dict() for o in organizations], "count": len(organizations)})


@organizations_bp.post("")
@require_auth
@require_role(SYSTEM_ADMIN)
def create_organization():
    organization = organization_service.create_organization(request.get_json(silent=True))
    return jsonify({"organization": organization.to_dict()}), 201


@organizations_bp.get("/<int:organization_id>")
@require_auth
def get_organization(organization_id: int):
    organization = organization_service.get_organization(organization_id)
    return jsonify({"organization": organization.to_dict()})


@organizations_bp.put("/<int:organization_id>")
@require_auth
@require_role(SYSTEM_ADMIN)
def update_organization(organization_id: int):
    organization = organization_service.update_organization(organization_id, request.get_json(silent=True))
    return jsonify({"organization": organization.to_dict()})


@organizations_bp.patch("/<int:organization_id>/toggle-status")
@require_auth
@require_role(SYSTEM_ADMIN)
def toggle_organization_status(organization_id: int):
    organization = organization_service.toggle_organization_status(organization_id)
    return jsonify({"organization": organization.to_dict()})


@organizations_bp.get("/<int:organization_id>/ports")
@require_auth
def list_organization_ports(organization_id: int):
    ports = organization_service.list_organization_ports(organization_id)
    return jsonify({"ports": [p.to_dict() for p in ports], "count": len(ports)})
