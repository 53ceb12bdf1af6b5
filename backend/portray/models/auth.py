from __future__ import annotations

from ..extensions import db
from ..roles import USER
from portray.time_utils import to_utc_z


class User(db.Model):
    """
    User accounts for authentication and attribution.

    Accounts are either created by a SystemAdmin or provisioned when a port
    admin contact verifies its email. Provisioned accounts carry the
    PENDING_SETUP sentinel hash and stay inactive until password setup.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_role", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password (or the PENDING_SETUP sentinel)
    password_hash = db.Column(db.String(255), nullable=False)

    first_name = db.Column(db.String(120), nullable=False, default="")
    last_name = db.Column(db.String(120), nullable=False, default="")
    role = db.Column(db.String(32), nullable=False, default=USER)

    # Optional assignment details shown on the user screens
    user_type = db.Column(db.String(64), nullable=True)
    port_id = db.Column(db.Integer, db.ForeignKey("ports.id"), nullable=True, index=True)
    terminal_ids = db.Column(db.JSON, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    port = db.relationship("Port", backref=db.backref("assigned_users", lazy=True))

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role!r}>"

    def audit_values(self) -> dict:
        """Fields tracked by the user audit log."""
        return {
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "user_type": self.user_type,
            "role": self.role,
            "port_id": self.port_id,
            "terminal_ids": list(self.terminal_ids) if self.terminal_ids else [],
            "is_active": self.is_active,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "user_type": self.user_type,
            "port_id": self.port_id,
            "terminal_ids": list(self.terminal_ids) if self.terminal_ids else [],
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class UserSession(db.Model):
    """
    Bearer session tokens.

    Only the SHA-256 of the token is stored. Rows are hard-deleted on
    logout; expired rows are treated as absent and removed lazily.
    """
    __tablename__ = "sessions"
    __table_args__ = (
        db.Index("ix_sessions_user_expires", "user_id", "expires_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    remember_me = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    # Client information (for security monitoring)
    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)  # IPv6 max length

    user = db.relationship("User", backref=db.backref("sessions", lazy=True, cascade="all, delete-orphan"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "remember_me": self.remember_me,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
        }


class UserAuditLog(db.Model):
    """
    Account lifecycle audit trail.

    IMMUTABLE: Never update or delete. Append-only for audit integrity.
    target_user_id is a plain column so the trail survives user deletion.
    """
    __tablename__ = "user_audit_logs"
    __table_args__ = (
        db.Index("ix_user_audit_logs_target_created", "target_user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    target_user_id = db.Column(db.Integer, nullable=False, index=True)
    performed_by = db.Column(db.Integer, nullable=True, index=True)

    # created, updated, status_changed, role_changed, verified, password_setup, deleted, login
    action = db.Column(db.String(32), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False)

    # JSON snapshots
    old_values = db.Column(db.Text, nullable=True)
    new_values = db.Column(db.Text, nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "target_user_id": self.target_user_id,
            "performed_by": self.performed_by,
            "action": self.action,
            "description": self.description,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "ip_address": self.ip_address,
            "created_at": to_utc_z(self.created_at),
        }
