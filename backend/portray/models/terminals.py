from __future__ import annotations

from ..extensions import db
from portray.time_utils import to_iso_date, to_utc_z


# Terminal status values (stored verbatim, shown in the UI)
STATUS_PROCESSING = "Processing for activation"
STATUS_ACTIVE = "Active"
STATUS_REJECTED = "Rejected"

TERMINAL_STATUSES = (STATUS_PROCESSING, STATUS_ACTIVE, STATUS_REJECTED)


class SubscriptionType(db.Model):
    """Subscription plan lengths offered at activation (1/12/24/48 months)."""
    __tablename__ = "subscription_types"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True)
    months = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "months": self.months}


class Terminal(db.Model):
    """
    Terminal within a port.

    LIFECYCLE:
    1. Submitted -> "Processing for activation" (SystemAdmins notified)
    2. Activated by a SystemAdmin -> "Active" with a subscription window
       (activation_end_date = activation_start_date + N calendar months)
    3. Or rejected -> "Rejected"

    While Active, updates only reach the descriptive fields; activation
    columns are written exclusively by activation.
    """
    __tablename__ = "terminals"
    __table_args__ = (
        db.Index("ix_terminals_port_status", "port_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    port_id = db.Column(db.Integer, db.ForeignKey("ports.id"), nullable=False, index=True)

    terminal_name = db.Column(db.String(255), nullable=False, unique=True)
    short_code = db.Column(db.String(6), nullable=False, unique=True, index=True)
    gst = db.Column(db.String(32), nullable=True)
    pan = db.Column(db.String(32), nullable=True)
    currency = db.Column(db.String(8), nullable=False, default="INR")
    timezone = db.Column(db.String(64), nullable=False, default="Asia/Kolkata")

    # Billing address
    billing_address = db.Column(db.Text, nullable=False)
    billing_city = db.Column(db.String(120), nullable=False)
    billing_pin_code = db.Column(db.String(16), nullable=False)
    billing_phone = db.Column(db.String(32), nullable=False)
    billing_fax = db.Column(db.String(32), nullable=True)

    # Shipping address
    shipping_address = db.Column(db.Text, nullable=False)
    shipping_city = db.Column(db.String(120), nullable=False)
    shipping_pin_code = db.Column(db.String(16), nullable=False)
    shipping_phone = db.Column(db.String(32), nullable=False)
    shipping_fax = db.Column(db.String(32), nullable=True)

    same_as_billing = db.Column(db.Boolean, nullable=False, default=False)

    status = db.Column(db.String(32), nullable=False, default=STATUS_PROCESSING, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=False)

    # Activation (written only by activate_terminal)
    subscription_type_id = db.Column(db.Integer, db.ForeignKey("subscription_types.id"), nullable=True)
    activation_start_date = db.Column(db.Date, nullable=True)
    activation_end_date = db.Column(db.Date, nullable=True)
    work_order_no = db.Column(db.String(64), nullable=True)
    work_order_date = db.Column(db.Date, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    port = db.relationship("Port", backref=db.backref("terminals", lazy=True))
    subscription_type = db.relationship("SubscriptionType")
    creator = db.relationship("User", foreign_keys=[created_by])
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Terminal id={self.id} short_code={self.short_code!r} status={self.status!r}>"

    def snapshot(self) -> dict:
        """Plain values stored alongside activation log entries."""
        return {
            "terminal_name": self.terminal_name,
            "short_code": self.short_code,
            "status": self.status,
            "is_active": self.is_active,
            "subscription_type_id": self.subscription_type_id,
            "activation_start_date": to_iso_date(self.activation_start_date),
            "activation_end_date": to_iso_date(self.activation_end_date),
            "work_order_no": self.work_order_no,
            "work_order_date": to_iso_date(self.work_order_date),
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "port_id": self.port_id,
            "terminal_name": self.terminal_name,
            "short_code": self.short_code,
            "gst": self.gst,
            "pan": self.pan,
            "currency": self.currency,
            "timezone": self.timezone,
            "billing_address": self.billing_address,
            "billing_city": self.billing_city,
            "billing_pin_code": self.billing_pin_code,
            "billing_phone": self.billing_phone,
            "billing_fax": self.billing_fax,
            "shipping_address": self.shipping_address,
            "shipping_city": self.shipping_city,
            "shipping_pin_code": self.shipping_pin_code,
            "shipping_phone": self.shipping_phone,
            "shipping_fax": self.shipping_fax,
            "same_as_billing": self.same_as_billing,
            "status": self.status,
            "is_active": self.is_active,
            "subscription_type_id": self.subscription_type_id,
            "activation_start_date": to_iso_date(self.activation_start_date),
            "activation_end_date": to_iso_date(self.activation_end_date),
            "work_order_no": self.work_order_no,
            "work_order_date": to_iso_date(self.work_order_date),
            "created_by": self.created_by,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ActivationLog(db.Model):
    """
    Terminal lifecycle trail (submitted, updated, activated, renewed,
    status_changed, rejected).

    IMMUTABLE: Never update or delete.
    """
    __tablename__ = "activation_logs"
    __table_args__ = (
        db.Index("ix_activation_logs_terminal_created", "terminal_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    terminal_id = db.Column(db.Integer, db.ForeignKey("terminals.id"), nullable=False, index=True)
    action = db.Column(db.String(32), nullable=False)
    description = db.Column(db.Text, nullable=False)
    performed_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    data = db.Column(db.Text, nullable=True)  # JSON snapshot

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "terminal_id": self.terminal_id,
            "action": self.action,
            "description": self.description,
            "performed_by": self.performed_by,
            "data": self.data,
            "created_at": to_utc_z(self.created_at),
        }
