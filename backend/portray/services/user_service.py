# Overview: Service-layer operations for user administration; CRUD with audit trail and session revocation.

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import ActivationLog, Notification, Port, PortAdminContact, Terminal, User
from ..roles import USER, VALID_ROLES
from ..validation import ModelValidationPolicy, validate_email, validate_payload
from . import audit_service, auth_service, session_service


USER_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "email", "first_name", "last_name", "role", "user_type", "port_id", "terminal_ids",
    }),
    required_on_create=frozenset({"email"}),
)


def _clean(data: dict, partial: bool) -> dict:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    payload = {k: v for k, v in data.items() if k != "password"}
    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=partial)

    if "email" in patch:
        patch["email"] = validate_email(patch["email"])
    if "role" in patch and patch["role"] not in VALID_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(sorted(VALID_ROLES))}", field="role")
    if patch.get("port_id") is not None and not db.session.get(Port, patch["port_id"]):
        raise NotFoundError("Port not found")
    if "terminal_ids" in patch:
        ids = patch["terminal_ids"] or []
        if not isinstance(ids, list) or any(isinstance(i, bool) or not isinstance(i, int) for i in ids):
            raise ValidationError("terminal_ids must be a list of integers", field="terminal_ids")
        patch["terminal_ids"] = ids
    return patch


def _ensure_email_available(email: str, exclude_id: int | None = None) -> None:
    query = db.session.query(User).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first():
        raise ConflictError("A user with this email already exists", code="DuplicateEmail", field="email")


def list_users(include_inactive: bool = True) -> list[User]:
    query = db.session.query(User)
    if not include_inactive:
        query = query.filter_by(is_active=True)
    return query.order_by(User.email).all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def create_user(data: dict, performed_by: int | None = None, ip_address: str | None = None,
                user_agent: str | None = None) -> User:
    """
    Create an active user with a password.

    Password must meet strength requirements or PasswordValidationError
    will be raised. Email must be unique (ConflictError).
    """
    patch = _clean(data, partial=False)
    password = (data or {}).get("password")
    if not password:
        raise ValidationError("password is required", field="password")
    _ensure_email_available(patch["email"])

    patch.setdefault("role", USER)
    user = User(
        password_hash=auth_service.hash_password(password),
        is_active=True,
        **patch,
    )
    db.session.add(user)
    db.session.commit()

    audit_service.log_user_event(
        target_user_id=user.id,
        action="created",
        description=f"User {user.email} created with role {user.role}",
        performed_by=performed_by,
        new_values=user.audit_values(),
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return user


def update_user(user_id: int, data: dict, performed_by: int | None = None,
                ip_address: str | None = None, user_agent: str | None = None) -> User:
    user = get_user(user_id)
    patch = _clean(data, partial=True)
    if "email" in patch:
        _ensure_email_available(patch["email"], exclude_id=user.id)

    password = (data or {}).get("password")
    before = user.audit_values()

    for key, value in patch.items():
        setattr(user, key, value)
    if password:
        user.password_hash = auth_service.hash_password(password)
    db.session.commit()

    after = user.audit_values()
    audit_service.log_user_update(user, performed_by, before, after, ip_address=ip_address, user_agent=user_agent)
    if before["role"] != after["role"]:
        audit_service.log_user_event(
            target_user_id=user.id,
            action="role_changed",
            description=f"Role changed from {before['role']} to {after['role']}",
            performed_by=performed_by,
            old_values={"role": before["role"]},
            new_values={"role": after["role"]},
            ip_address=ip_address,
            user_agent=user_agent,
        )
    if password:
        # New password: every existing login has to authenticate again
        session_service.revoke_all_user_sessions(user.id)
    return user


def toggle_user_status(user_id: int, performed_by: int | None = None,
                       ip_address: str | None = None, user_agent: str | None = None) -> User:
    """Flip is_active. Deactivation deletes every session of the user."""
    user = get_user(user_id)
    if performed_by == user.id and user.is_active:
        raise ConflictError("You cannot deactivate your own account")

    user.is_active = not user.is_active
    db.session.commit()

    revoked = 0
    if not user.is_active:
        revoked = session_service.revoke_all_user_sessions(user.id)

    state = "activated" if user.is_active else "deactivated"
    audit_service.log_user_event(
        target_user_id=user.id,
        action="status_changed",
        description=f"User {user.email} {state}" + (f"; {revoked} session(s) revoked" if revoked else ""),
        performed_by=performed_by,
        old_values={"is_active": not user.is_active},
        new_values={"is_active": user.is_active},
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return user


def delete_user(user_id: int, performed_by: int | None = None,
                ip_address: str | None = None, user_agent: str | None = None) -> None:
    """
    Delete a user.

    Sessions and notifications go with the account and linked contacts are
    unlinked. Users who appear in the terminal trail (creator or performer)
    cannot be deleted; deactivate them instead.
    """
    user = get_user(user_id)
    if performed_by == user.id:
        raise ConflictError("You cannot delete your own account")

    referenced = (
        db.session.query(Terminal.id).filter(Terminal.created_by == user.id).first()
        or db.session.query(ActivationLog.id).filter(ActivationLog.performed_by == user.id).first()
    )
    if referenced:
        raise ConflictError("User is referenced by terminal records; deactivate the account instead",
                            code="UserInUse")

    snapshot = user.audit_values()
    email = user.email

    for contact in db.session.query(PortAdminContact).filter_by(user_id=user.id).all():
        contact.user_id = None
    db.session.query(Notification).filter_by(user_id=user.id).delete(synchronize_session=False)
    # sessions cascade with the user row
    db.session.delete(user)
    db.session.commit()

    audit_service.log_user_event(
        target_user_id=user_id,
        action="deleted",
        description=f"User {email} deleted",
        performed_by=performed_by,
        old_values=snapshot,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    current_app.logger.info("User %s deleted by %s", user_id, performed_by)
