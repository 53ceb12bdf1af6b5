# Overview: Service-layer operations for ports; CRUD and per-user port access checks.

"""
Ports and port scoping.

SystemAdmins see every port. Everyone else is confined to the ports they
are attached to: the port on their user record plus the ports of any
verified contact linked to them. accessible_port_ids() returns None for
"no restriction" and a (possibly empty) set otherwise.
"""

from __future__ import annotations

from ..errors import ForbiddenError, NotFoundError
from ..extensions import db
from ..models import Organization, Port, PortAdminContact, User
from ..roles import SYSTEM_ADMIN
from ..validation import ModelValidationPolicy, validate_payload


PORT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"port_name", "display_name", "organization_id", "address", "country", "state"}),
    required_on_create=frozenset({"port_name", "display_name", "organization_id", "address", "country", "state"}),
)


def accessible_port_ids(user: User) -> set[int] | None:
    if user.role == SYSTEM_ADMIN:
        return None

    port_ids = {
        port_id for (port_id,) in db.session.query(PortAdminContact.port_id).filter(
            PortAdminContact.user_id == user.id,
            PortAdminContact.is_verified.is_(True),
        ).all()
    }
    if user.port_id:
        port_ids.add(user.port_id)
    return port_ids


def ensure_port_access(user: User, port_id: int) -> None:
    allowed = accessible_port_ids(user)
    if allowed is not None and port_id not in allowed:
        raise ForbiddenError("You do not have access to this port")


def list_ports(user: User | None = None, organization_id: int | None = None) -> list[Port]:
    query = db.session.query(Port)
    if organization_id is not None:
        query = query.filter_by(organization_id=organization_id)
    if user is not None:
        allowed = accessible_port_ids(user)
        if allowed is not None:
            if not allowed:
                return []
            query = query.filter(Port.id.in_(allowed))
    return query.order_by(Port.port_name).all()


def get_port(port_id: int) -> Port:
    port = db.session.get(Port, port_id)
    if not port:
        raise NotFoundError("Port not found")
    return port


def _ensure_organization(organization_id: int) -> None:
    if not db.session.get(Organization, organization_id):
        raise NotFoundError("Organization not found")


def create_port(data: dict) -> Port:
    patch = validate_payload(model=Port, payload=data, policy=PORT_POLICY, partial=False)
    _ensure_organization(patch["organization_id"])

    port = Port(is_active=True, **patch)
    db.session.add(port)
    db.session.commit()
    return port


def update_port(port_id: int, data: dict) -> Port:
    port = get_port(port_id)
    patch = validate_payload(model=Port, payload=data, policy=PORT_POLICY, partial=True)
    if "organization_id" in patch:
        _ensure_organization(patch["organization_id"])

    for key, value in patch.items():
        setattr(port, key, value)
    db.session.commit()
    return port


def toggle_port_status(port_id: int) -> Port:
    port = get_port(port_id)
    port.is_active = not port.is_active
    db.session.commit()
    return port
