# Overview: Service-layer operations for organizations; CRUD with uniqueness checks.

from __future__ import annotations

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Organization, Port
from ..validation import ModelValidationPolicy, validate_payload


ORGANIZATION_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "organization_name", "display_name", "organization_code",
        "register_office", "country", "telephone", "fax", "website", "logo_url",
    }),
    required_on_create=frozenset({
        "organization_name", "display_name", "organization_code", "register_office", "country",
    }),
)

# column -> human label used in conflict messages
UNIQUE_FIELDS = {
    "organization_name": "Organization name",
    "display_name": "Display name",
    "organization_code": "Organization code",
}


def _ensure_unique(patch: dict, exclude_id: int | None = None) -> None:
    for field, label in UNIQUE_FIELDS.items():
        if field not in patch:
            continue
        query = db.session.query(Organization).filter(getattr(Organization, field) == patch[field])
        if exclude_id is not None:
            query = query.filter(Organization.id != exclude_id)
        if query.first():
            raise ConflictError(f"{label} already exists", code="DuplicateOrganization", field=field)


def list_organizations(include_inactive: bool = True) -> list[Organization]:
    query = db.session.query(Organization)
    if not include_inactive:
        query = query.filter_by(is_active=True)
    return query.order_by(Organization.organization_name).all()


def get_organization(organization_id: int) -> Organization:
    organization = db.session.get(Organization, organization_id)
    if not organization:
        raise NotFoundError("Organization not found")
    return organization


def create_organization(data: dict) -> Organization:
    patch = validate_payload(model=Organization, payload=data, policy=ORGANIZATION_POLICY, partial=False)
    _ensure_unique(patch)

    organization = Organization(is_active=True, **patch)
    db.session.add(organization)
    db.session.commit()
    return organization


def update_organization(organization_id: int, data: dict) -> Organization:
    organization = get_organization(organization_id)
    patch = validate_payload(model=Organization, payload=data, policy=ORGANIZATION_POLICY, partial=True)
    _ensure_unique(patch, exclude_id=organization.id)

    for key, value in patch.items():
        setattr(organization, key, value)
    db.session.commit()
    return organization


def toggle_organization_status(organization_id: int) -> Organization:
    organization = get_organization(organization_id)
    organization.is_active = not organization.is_active
    db.session.commit()
    return organization


def list_organization_ports(organization_id: int) -> list[Port]:
    get_organization(organization_id)
    return (
        db.session.query(Port)
        .filter_by(organization_id=organization_id)
        .order_by(Port.port_name)
        .all()
    )
