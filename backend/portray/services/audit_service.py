# Overview: Service-layer operations for audit trails; user lifecycle and terminal activation logs.

"""
Append-only audit logging.

Two trails are kept:
- UserAuditLog: account lifecycle (created, updated, status_changed,
  role_changed, verified, password_setup, deleted, login)
- ActivationLog: terminal lifecycle (submitted, updated, activated,
  renewed, status_changed, rejected)

Audit writes happen after the primary change has been committed. A failed
audit write is rolled back and logged; it never fails the operation it
describes, so every function here returns None instead of raising.
"""

from __future__ import annotations

import json

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import ActivationLog, Terminal, User, UserAuditLog


# Fields compared by log_user_update, in description order
TRACKED_USER_FIELDS = (
    ("email", "Email"),
    ("first_name", "First name"),
    ("last_name", "Last name"),
    ("user_type", "User type"),
    ("role", "Role"),
    ("port_id", "Port"),
    ("terminal_ids", "Terminals"),
)


def _dumps(values) -> str | None:
    if values is None:
        return None
    return json.dumps(values, default=str, sort_keys=True)


def _append(row, what: str):
    try:
        db.session.add(row)
        db.session.commit()
        return row
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to write %s", what)
        return None


def log_user_event(
    target_user_id: int,
    action: str,
    description: str,
    performed_by: int | None = None,
    old_values: dict | None = None,
    new_values: dict | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> UserAuditLog | None:
    """Append one UserAuditLog entry (best effort)."""
    entry = UserAuditLog(
        target_user_id=target_user_id,
        performed_by=performed_by,
        action=action,
        description=description,
        old_values=_dumps(old_values),
        new_values=_dumps(new_values),
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return _append(entry, f"user audit entry ({action})")


def _normalize(field: str, value):
    if field == "terminal_ids":
        return sorted(value or [])
    if value == "":
        return None
    return value


def diff_user_values(old: dict, new: dict) -> list[str]:
    """Return the tracked fields whose values differ between old and new."""
    changed = []
    for field, _label in TRACKED_USER_FIELDS:
        if field not in old and field not in new:
            continue
        if _normalize(field, old.get(field)) != _normalize(field, new.get(field)):
            changed.append(field)
    return changed


def log_user_update(
    target: User,
    performed_by: int | None,
    old: dict,
    new: dict,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> UserAuditLog | None:
    """
    Diff the tracked user fields and write a single "updated" entry.

    The description is a comma-joined list of the changes, e.g.
    "First name changed from 'Ann' to 'Anna', Role changed from 'user' to
    'PortAdmin'". When nothing tracked changed no entry is written and
    None is returned.
    """
    changed = diff_user_values(old, new)
    if not changed:
        return None

    labels = dict(TRACKED_USER_FIELDS)
    parts = [
        f"{labels[field]} changed from {old.get(field)!r} to {new.get(field)!r}"
        for field in changed
    ]
    return log_user_event(
        target_user_id=target.id,
        action="updated",
        description=", ".join(parts),
        performed_by=performed_by,
        old_values={f: old.get(f) for f in changed},
        new_values={f: new.get(f) for f in changed},
        ip_address=ip_address,
        user_agent=user_agent,
    )


def log_terminal_event(
    terminal: Terminal,
    action: str,
    description: str,
    performed_by: int | None,
) -> ActivationLog | None:
    """Append one ActivationLog entry with a JSON snapshot of the terminal (best effort)."""
    entry = ActivationLog(
        terminal_id=terminal.id,
        action=action,
        description=description,
        performed_by=performed_by,
        data=_dumps(terminal.snapshot()),
    )
    return _append(entry, f"activation log entry ({action})")


def list_user_audit(target_user_id: int) -> list[UserAuditLog]:
    return (
        db.session.query(UserAuditLog)
        .filter_by(target_user_id=target_user_id)
        .order_by(UserAuditLog.created_at.desc(), UserAuditLog.id.desc())
        .all()
    )


def list_activation_log(terminal_id: int) -> list[ActivationLog]:
    return (
        db.session.query(ActivationLog)
        .filter_by(terminal_id=terminal_id)
        .order_by(ActivationLog.created_at.desc(), ActivationLog.id.desc())
        .all()
    )
