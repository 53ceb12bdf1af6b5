from __future__ import annotations

from ..extensions import db
from portray.time_utils import to_utc_z


class Organization(db.Model):
    """
    Port operator organization.

    Organizations own ports; ports own terminals and port admin contacts.
    Names, display names and codes are unique across the installation.
    """
    __tablename__ = "organizations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    organization_name = db.Column(db.String(255), nullable=False, unique=True)
    display_name = db.Column(db.String(120), nullable=False, unique=True)
    organization_code = db.Column(db.String(32), nullable=False, unique=True, index=True)

    register_office = db.Column(db.Text, nullable=False)
    country = db.Column(db.String(120), nullable=False)
    telephone = db.Column(db.String(32), nullable=True)
    fax = db.Column(db.String(32), nullable=True)
    website = db.Column(db.String(255), nullable=True)
    logo_url = db.Column(db.String(512), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Organization id={self.id} code={self.organization_code!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organization_name": self.organization_name,
            "display_name": self.display_name,
            "organization_code": self.organization_code,
            "register_office": self.register_office,
            "country": self.country,
            "telephone": self.telephone,
            "fax": self.fax,
            "website": self.website,
            "logo_url": self.logo_url,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Port(db.Model):
    """Port belonging to an organization."""
    __tablename__ = "ports"
    __table_args__ = (
        db.Index("ix_ports_org_active", "organization_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    port_name = db.Column(db.String(255), nullable=False)
    display_name = db.Column(db.String(6), nullable=False)  # short label shown on terminal screens

    address = db.Column(db.Text, nullable=False)
    country = db.Column(db.String(120), nullable=False)
    state = db.Column(db.String(120), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    organization = db.relationship("Organization", backref=db.backref("ports", lazy=True))

    def __repr__(self) -> str:
        return f"<Port id={self.id} name={self.port_name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "port_name": self.port_name,
            "display_name": self.display_name,
            "address": self.address,
            "country": self.country,
            "state": self.state,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PortAdminContact(db.Model):
    """
    Administrative contact for a port.

    LIFECYCLE:
    1. Created unverified with a pending verification token
    2. Token consumed -> is_verified=True, status=active, token cleared
    3. Linked to exactly one User (provisioned on verification if needed)

    A consumed or expired token never verifies. Resending replaces any
    pending token.
    """
    __tablename__ = "port_admin_contacts"
    __table_args__ = (
        db.Index("ix_port_admin_contacts_port_status", "port_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    port_id = db.Column(db.Integer, db.ForeignKey("ports.id"), nullable=False, index=True)

    contact_name = db.Column(db.String(255), nullable=False)
    designation = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    mobile_number = db.Column(db.String(32), nullable=False)

    status = db.Column(db.String(16), nullable=False, default="inactive")  # active, inactive
    is_verified = db.Column(db.Boolean, nullable=False, default=False)

    verification_token = db.Column(db.String(128), nullable=True, unique=True)
    verification_token_expires = db.Column(db.DateTime(timezone=True), nullable=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    port = db.relationship("Port", backref=db.backref("contacts", lazy=True))
    user = db.relationship("User", backref=db.backref("port_contacts", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        # The token itself is only ever delivered by email
        return {
            "id": self.id,
            "port_id": self.port_id,
            "contact_name": self.contact_name,
            "designation": self.designation,
            "email": self.email,
            "mobile_number": self.mobile_number,
            "status": self.status,
            "is_verified": self.is_verified,
            "verification_pending": self.verification_token is not None,
            "verification_token_expires": to_utc_z(self.verification_token_expires),
            "user_id": self.user_id,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
