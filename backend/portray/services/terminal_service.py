# Overview: Service-layer operations for terminals; submission, activation, status changes and narrowed updates.

"""
Terminal lifecycle.

LIFECYCLE:
1. "Processing for activation": submitted, waiting for a SystemAdmin
2. "Active": activated with a subscription window
3. "Rejected": turned down by a SystemAdmin

Activating an Active terminal is a renewal (logged as "renewed").

RULES:
- Only SystemAdmins activate, reject or override status.
- activation_end_date = activation_start_date + subscription months
  (calendar months, clamped to month end), computed only at activation.
- While Active, update_terminal narrows the payload to the descriptive
  fields in UPDATABLE_FIELDS; everything else is dropped and reported
  back as ignored_fields rather than rejected.
- Activation columns are never written by update_terminal.
- Terminals become Active only through activate_terminal.

Each state change commits first; the ActivationLog entry and the
notifications that follow are best-effort side channels.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from flask import current_app

from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Organization, Port, SubscriptionType, Terminal, User
from ..models.terminals import STATUS_ACTIVE, STATUS_PROCESSING, STATUS_REJECTED, TERMINAL_STATUSES
from ..roles import SYSTEM_ADMIN
from ..validation import ModelValidationPolicy, json_object, validate_payload
from . import audit_service, notification_service, port_service
from .concurrency import lock_for_update, run_with_retry
from portray.time_utils import add_months, parse_iso_date, to_iso_date


# Descriptive fields: the only ones an Active terminal accepts
UPDATABLE_FIELDS = frozenset({
    "terminal_name", "short_code", "gst", "pan", "currency", "timezone",
    "billing_address", "billing_city", "billing_pin_code", "billing_phone", "billing_fax",
    "shipping_address", "shipping_city", "shipping_pin_code", "shipping_phone", "shipping_fax",
    "same_as_billing",
})

# Seeded in this order so ids 1..4 map to 1/12/24/48 months on a fresh database
DEFAULT_SUBSCRIPTION_TYPES = (
    ("1 Month", 1),
    ("12 Months", 12),
    ("24 Months", 24),
    ("48 Months", 48),
)

ADDRESS_PAIRS = (
    ("billing_address", "shipping_address"),
    ("billing_city", "shipping_city"),
    ("billing_pin_code", "shipping_pin_code"),
    ("billing_phone", "shipping_phone"),
    ("billing_fax", "shipping_fax"),
)

SUBMIT_POLICY = ModelValidationPolicy(
    writable_fields=UPDATABLE_FIELDS | {"status"},
    required_on_create=frozenset({
        "terminal_name", "short_code",
        "billing_address", "billing_city", "billing_pin_code", "billing_phone",
        "shipping_address", "shipping_city", "shipping_pin_code", "shipping_phone",
    }),
    ignore_unknown=True,
)


class InvalidSubscriptionType(ValidationError):
    default_code = "InvalidSubscriptionType"


class InvalidStatus(ValidationError):
    default_code = "InvalidStatus"


@dataclass
class UpdateResult:
    terminal: Terminal
    ignored_fields: list[str] = field(default_factory=list)


def _require_admin(actor: User, action: str) -> None:
    if actor is None or actor.role != SYSTEM_ADMIN:
        raise ForbiddenError(f"Only a SystemAdmin can {action} terminals")


def _copy_billing_to_shipping(data: dict) -> dict:
    if not data.get("same_as_billing"):
        return data
    data = dict(data)
    for billing, shipping in ADDRESS_PAIRS:
        if billing in data:
            data[shipping] = data[billing]
    return data


def _subscription_type_id(value) -> int | None:
    # Whole numbers only: 2.9 or "2.0" must not resolve to plan 2
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        return int(value.strip())
    return None


def _ensure_unique(patch: dict, exclude_id: int | None = None) -> None:
    checks = (
        ("short_code", "Short code already exists"),
        ("terminal_name", "Terminal name already exists"),
    )
    for column, message in checks:
        if column not in patch:
            continue
        query = db.session.query(Terminal).filter(getattr(Terminal, column) == patch[column])
        if exclude_id is not None:
            query = query.filter(Terminal.id != exclude_id)
        if query.first():
            raise ConflictError(message, code="DuplicateTerminal", field=column)


def _check_requested_status(status: str, actor: User) -> None:
    if status not in TERMINAL_STATUSES:
        raise InvalidStatus(f"Unknown terminal status: {status}", field="status")
    if status == STATUS_ACTIVE:
        raise InvalidStatus("Terminals become Active only through activation", field="status")
    if status != STATUS_PROCESSING and actor.role != SYSTEM_ADMIN:
        raise ForbiddenError("Only a SystemAdmin can set this status")


def _notify_admins_of_submission(terminal: Terminal, resubmitted: bool = False) -> None:
    verb = "resubmitted" if resubmitted else "submitted"
    notification_service.notify_role(
        SYSTEM_ADMIN,
        "terminal_submitted",
        "Terminal awaiting activation",
        f"Terminal {terminal.terminal_name} ({terminal.short_code}) was {verb} for activation.",
        {"terminal_id": terminal.id, "port_id": terminal.port_id},
    )


def _notify_creator(terminal: Terminal, type: str, title: str, message: str) -> None:
    notification_service.notify(
        terminal.created_by,
        type,
        title,
        message,
        {"terminal_id": terminal.id, "port_id": terminal.port_id, "status": terminal.status},
    )


# =============================================================================
# QUERIES
# =============================================================================

def get_terminal(terminal_id: int) -> Terminal:
    terminal = db.session.get(Terminal, terminal_id)
    if not terminal:
        raise NotFoundError("Terminal not found")
    return terminal


def get_terminal_for(actor: User, terminal_id: int) -> Terminal:
    terminal = get_terminal(terminal_id)
    port_service.ensure_port_access(actor, terminal.port_id)
    return terminal


def list_terminals(actor: User, port_id: int | None = None) -> list[Terminal]:
    query = db.session.query(Terminal)
    if port_id is not None:
        port_service.ensure_port_access(actor, port_id)
        query = query.filter(Terminal.port_id == port_id)
    else:
        allowed = port_service.accessible_port_ids(actor)
        if allowed is not None:
            if not allowed:
                return []
            query = query.filter(Terminal.port_id.in_(allowed))
    return query.order_by(Terminal.terminal_name).all()


def list_pending_activation() -> list[dict]:
    """Terminals waiting for review, with their port and organization names."""
    rows = (
        db.session.query(Terminal, Port.port_name, Organization.organization_name)
        .join(Port, Terminal.port_id == Port.id)
        .join(Organization, Port.organization_id == Organization.id)
        .filter(Terminal.status == STATUS_PROCESSING)
        .order_by(Terminal.created_at, Terminal.id)
        .all()
    )
    result = []
    for terminal, port_name, organization_name in rows:
        item = terminal.to_dict()
        item["port_name"] = port_name
        item["organization_name"] = organization_name
        result.append(item)
    return result


def list_active_subscribed(actor: User, today: date | None = None) -> list[Terminal]:
    """Active terminals whose subscription window contains today."""
    today = today or date.today()
    query = db.session.query(Terminal).filter(
        Terminal.status == STATUS_ACTIVE,
        Terminal.subscription_type_id.isnot(None),
        Terminal.activation_start_date <= today,
        Terminal.activation_end_date >= today,
    )
    allowed = port_service.accessible_port_ids(actor)
    if allowed is not None:
        if not allowed:
            return []
        query = query.filter(Terminal.port_id.in_(allowed))
    return query.order_by(Terminal.terminal_name).all()


def list_subscription_types() -> list[SubscriptionType]:
    return db.session.query(SubscriptionType).order_by(SubscriptionType.months).all()


def ensure_subscription_types() -> int:
    """Create any missing default subscription types. Returns how many were added."""
    existing = {name for (name,) in db.session.query(SubscriptionType.name).all()}
    created = 0
    for name, months in DEFAULT_SUBSCRIPTION_TYPES:
        if name not in existing:
            db.session.add(SubscriptionType(name=name, months=months))
            created += 1
    db.session.commit()
    return created


# =============================================================================
# STATE CHANGES
# =============================================================================

def submit_terminal(port_id: int, data: dict, actor: User) -> Terminal:
    """
    Create a terminal under a port.

    Status defaults to "Processing for activation"; every SystemAdmin is
    notified when (and only when) the terminal is created in that status.
    """
    if not db.session.get(Port, port_id):
        raise NotFoundError("Port not found")
    port_service.ensure_port_access(actor, port_id)

    data = _copy_billing_to_shipping(json_object(data))
    patch = validate_payload(model=Terminal, payload=data, policy=SUBMIT_POLICY, partial=False)

    status = patch.pop("status", None) or STATUS_PROCESSING
    _check_requested_status(status, actor)
    _ensure_unique(patch)

    terminal = Terminal(
        port_id=port_id,
        status=status,
        is_active=False,
        created_by=actor.id,
        **patch,
    )
    db.session.add(terminal)
    db.session.commit()

    audit_service.log_terminal_event(
        terminal,
        "submitted",
        f"Terminal {terminal.terminal_name} ({terminal.short_code}) submitted with status '{terminal.status}'",
        actor.id,
    )
    if terminal.status == STATUS_PROCESSING:
        _notify_admins_of_submission(terminal)

    current_app.logger.info("Terminal %s submitted for port %s by user %s", terminal.id, port_id, actor.id)
    return terminal


def activate_terminal(
    terminal_id: int,
    actor: User,
    activation_start_date,
    subscription_type_id,
    work_order_no: str | None = None,
    work_order_date=None,
) -> Terminal:
    """
    Activate (or renew) a terminal for a subscription period.

    Raises:
        ForbiddenError: actor is not a SystemAdmin (terminal untouched)
        NotFoundError: unknown terminal
        InvalidSubscriptionType: unknown subscription type
        ValidationError: malformed dates
    """
    _require_admin(actor, "activate")

    try:
        start = parse_iso_date(activation_start_date)
    except ValueError:
        raise ValidationError("activation_start_date must be a YYYY-MM-DD date", field="activation_start_date")
    if start is None:
        raise ValidationError("activation_start_date is required", field="activation_start_date")

    try:
        wo_date = parse_iso_date(work_order_date)
    except ValueError:
        raise ValidationError("work_order_date must be a YYYY-MM-DD date", field="work_order_date")

    get_terminal(terminal_id)

    subscription = None
    type_id = _subscription_type_id(subscription_type_id)
    if type_id is not None:
        subscription = db.session.get(SubscriptionType, type_id)
    if subscription is None:
        raise InvalidSubscriptionType("Invalid subscription type", field="subscription_type_id")

    try:
        end = add_months(start, subscription.months)
    except ValueError:
        raise ValidationError(
            "activation_start_date is too late for this subscription period", field="activation_start_date"
        )

    def _op():
        terminal = lock_for_update(db.session.query(Terminal).filter_by(id=terminal_id)).first()
        if not terminal:
            raise NotFoundError("Terminal not found")

        was_active = terminal.status == STATUS_ACTIVE
        terminal.subscription_type_id = subscription.id
        terminal.activation_start_date = start
        terminal.activation_end_date = end
        terminal.work_order_no = work_order_no or None
        terminal.work_order_date = wo_date
        terminal.status = STATUS_ACTIVE
        terminal.is_active = True
        db.session.commit()
        return terminal, was_active

    terminal, was_active = run_with_retry(_op)

    action = "renewed" if was_active else "activated"
    months_label = "month" if subscription.months == 1 else "months"
    description = (
        f"Terminal {terminal.terminal_name} ({terminal.short_code}) {action} with "
        f"{subscription.months} {months_label} subscription from {to_iso_date(start)} to {to_iso_date(end)}"
    )
    if terminal.work_order_no:
        description += f" (work order {terminal.work_order_no})"

    audit_service.log_terminal_event(terminal, action, description, actor.id)
    _notify_creator(
        terminal,
        "terminal_activated",
        "Terminal activated",
        f"Terminal {terminal.terminal_name} is active until {to_iso_date(end)}.",
    )
    current_app.logger.info("Terminal %s %s until %s by user %s", terminal.id, action, end, actor.id)
    return terminal


def set_terminal_status(terminal_id: int, status: str, actor: User, reason: str | None = None) -> Terminal:
    """Administrative status override. is_active follows the new status."""
    _require_admin(actor, "change the status of")
    if status not in TERMINAL_STATUSES:
        raise InvalidStatus(f"Unknown terminal status: {status}", field="status")

    def _op():
        terminal = lock_for_update(db.session.query(Terminal).filter_by(id=terminal_id)).first()
        if not terminal:
            raise NotFoundError("Terminal not found")
        previous = terminal.status
        terminal.status = status
        terminal.is_active = status == STATUS_ACTIVE
        db.session.commit()
        return terminal, previous

    terminal, previous = run_with_retry(_op)

    action = "rejected" if status == STATUS_REJECTED else "status_changed"
    description = f"Status changed from '{previous}' to '{status}'"
    if reason:
        description += f": {reason}"
    audit_service.log_terminal_event(terminal, action, description, actor.id)
    _notify_creator(
        terminal,
        "terminal_status_changed",
        f"Terminal {status.lower()}" if status == STATUS_REJECTED else "Terminal status changed",
        f"Terminal {terminal.terminal_name} is now '{status}'.",
    )
    return terminal


def reject_terminal(terminal_id: int, actor: User, reason: str | None = None) -> Terminal:
    return set_terminal_status(terminal_id, STATUS_REJECTED, actor, reason=reason)


def update_terminal(terminal_id: int, fields: dict, actor: User) -> UpdateResult:
    """
    Update a terminal.

    Active terminals accept only UPDATABLE_FIELDS; anything else is dropped
    and returned in ignored_fields. Otherwise status is writable too: a
    non-admin may only (re)submit it as "Processing for activation",
    which notifies the SystemAdmins again.
    """
    fields = json_object(fields)

    terminal = get_terminal_for(actor, terminal_id)
    was_active = terminal.status == STATUS_ACTIVE
    allowed = UPDATABLE_FIELDS if was_active else UPDATABLE_FIELDS | {"status"}

    ignored = sorted(k for k in fields if k not in allowed)
    if ignored and was_active:
        current_app.logger.info("Terminal %s is Active; ignoring fields: %s", terminal_id, ", ".join(ignored))

    data = _copy_billing_to_shipping({k: v for k, v in fields.items() if k in allowed})
    policy = ModelValidationPolicy(writable_fields=frozenset(allowed))
    patch = validate_payload(model=Terminal, payload=data, policy=policy, partial=True)

    new_status = patch.pop("status", None)
    if new_status is not None:
        _check_requested_status(new_status, actor)
    _ensure_unique(patch, exclude_id=terminal_id)

    def _op():
        row = lock_for_update(db.session.query(Terminal).filter_by(id=terminal_id)).first()
        if not row:
            raise NotFoundError("Terminal not found")
        previous = row.status
        for key, value in patch.items():
            setattr(row, key, value)
        if new_status is not None:
            row.status = new_status
            row.is_active = False
        db.session.commit()
        return row, previous

    terminal, previous_status = run_with_retry(_op)

    changed = sorted(patch) + (["status"] if new_status is not None else [])
    if was_active:
        description = (
            f"Active terminal {terminal.terminal_name} updated; only descriptive fields were applied"
            f" ({', '.join(changed) or 'none'})"
        )
        if ignored:
            description += f"; ignored: {', '.join(ignored)}"
    else:
        description = f"Terminal {terminal.terminal_name} updated ({', '.join(changed) or 'no changes'})"
    audit_service.log_terminal_event(terminal, "updated", description, actor.id)

    if new_status == STATUS_PROCESSING and previous_status != STATUS_PROCESSING:
        _notify_admins_of_submission(terminal, resubmitted=True)

    return UpdateResult(terminal=terminal, ignored_fields=ignored)
