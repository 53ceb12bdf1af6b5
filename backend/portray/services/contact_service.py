# Overview: Service-layer operations for port admin contacts; CRUD and the email verification flow.

"""
Port admin contact lifecycle.

STATES:
1. created: is_verified=False, status=inactive, token pending (24h)
2. verified: is_verified=True, status=active, token cleared, user linked

An expired token leaves the contact pending until a new one is issued.
Issuing replaces any pending token, so only the newest link works.

Verification is a single conditional UPDATE (token matches, not expired,
not yet verified). Two requests racing on the same token cannot both
succeed: the loser's UPDATE matches zero rows and it gets
InvalidOrExpiredToken.

On success the contact is linked to a User in the same transaction. A new
account is provisioned (role PortAdmin, inactive, PENDING_SETUP) when
none exists for the email; otherwise the existing account is linked and
CONTACT_PROFILE_MERGE_POLICY decides whether its profile is refreshed
from the contact ("overwrite") or left alone ("preserve"). Profile
changes are always written to the user audit log.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..errors import ConflictError, NotFoundError, PortRayError
from ..extensions import db
from ..models import Port, PortAdminContact, User
from ..roles import PORT_ADMIN
from ..validation import ModelValidationPolicy, validate_email, validate_payload
from . import audit_service, email_service
from .auth_service import PENDING_SETUP
from .concurrency import run_with_retry
from portray.time_utils import utcnow


CONTACT_ACTIVE = "active"
CONTACT_INACTIVE = "inactive"

MERGE_OVERWRITE = "overwrite"
MERGE_PRESERVE = "preserve"

CONTACT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"contact_name", "designation", "email", "mobile_number"}),
    required_on_create=frozenset({"contact_name", "designation", "email", "mobile_number"}),
)


class InvalidOrExpiredToken(PortRayError):
    status_code = 400
    default_code = "InvalidOrExpiredToken"


class AlreadyVerified(ConflictError):
    default_code = "AlreadyVerified"


@dataclass
class VerificationResult:
    contact: PortAdminContact
    user: User
    user_created: bool


def generate_verification_token() -> str:
    return secrets.token_urlsafe(32)


def split_contact_name(contact_name: str) -> tuple[str, str]:
    """'Asha Rao Menon' -> ('Asha', 'Rao Menon'); a single word has no last name."""
    parts = (contact_name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def get_contact(contact_id: int) -> PortAdminContact:
    contact = db.session.get(PortAdminContact, contact_id)
    if not contact:
        raise NotFoundError("Contact not found")
    return contact


def list_contacts(port_id: int | None = None) -> list[PortAdminContact]:
    query = db.session.query(PortAdminContact)
    if port_id is not None:
        query = query.filter_by(port_id=port_id)
    return query.order_by(PortAdminContact.contact_name, PortAdminContact.id).all()


def get_contact_for_user(user_id: int) -> PortAdminContact | None:
    return (
        db.session.query(PortAdminContact)
        .filter_by(user_id=user_id)
        .order_by(PortAdminContact.id)
        .first()
    )


def _ensure_email_available(email: str, exclude_id: int | None = None) -> None:
    query = db.session.query(PortAdminContact).filter(PortAdminContact.email == email)
    if exclude_id is not None:
        query = query.filter(PortAdminContact.id != exclude_id)
    if query.first():
        raise ConflictError("A contact with this email already exists", code="DuplicateEmail", field="email")


def _assign_token(contact: PortAdminContact) -> str:
    token = generate_verification_token()
    hours = current_app.config.get("VERIFICATION_TOKEN_TTL_HOURS", 24)
    contact.verification_token = token
    contact.verification_token_expires = utcnow() + timedelta(hours=hours)
    return token


def _send_verification(contact: PortAdminContact, token: str) -> bool:
    sent = email_service.send_verification_email(contact.email, contact.contact_name, token)
    if not sent:
        current_app.logger.warning("Verification email for contact %s was not delivered", contact.id)
    return sent


def create_contact(port_id: int, data: dict) -> tuple[PortAdminContact, bool]:
    """
    Create an unverified contact and send its verification email.

    Returns (contact, email_sent). Email is best effort: the contact is
    committed even if delivery fails.
    """
    patch = validate_payload(model=PortAdminContact, payload=data, policy=CONTACT_POLICY, partial=False)
    patch["email"] = validate_email(patch["email"])

    if not db.session.get(Port, port_id):
        raise NotFoundError("Port not found")
    _ensure_email_available(patch["email"])

    contact = PortAdminContact(
        port_id=port_id,
        status=CONTACT_INACTIVE,
        is_verified=False,
        **patch,
    )
    token = _assign_token(contact)
    db.session.add(contact)
    db.session.commit()

    current_app.logger.info("Created port admin contact %s for port %s", contact.id, port_id)
    return contact, _send_verification(contact, token)


def update_contact(contact_id: int, data: dict) -> PortAdminContact:
    patch = validate_payload(model=PortAdminContact, payload=data, policy=CONTACT_POLICY, partial=True)

    def _op():
        contact = get_contact(contact_id)
        if "email" in patch:
            patch["email"] = validate_email(patch["email"])
            _ensure_email_available(patch["email"], exclude_id=contact.id)
        for key, value in patch.items():
            setattr(contact, key, value)
        db.session.commit()
        return contact

    return run_with_retry(_op)


def toggle_contact_status(contact_id: int) -> PortAdminContact:
    def _op():
        contact = get_contact(contact_id)
        contact.status = CONTACT_INACTIVE if contact.status == CONTACT_ACTIVE else CONTACT_ACTIVE
        db.session.commit()
        return contact

    return run_with_retry(_op)


def delete_contact(contact_id: int) -> None:
    contact = get_contact(contact_id)
    db.session.delete(contact)
    db.session.commit()


def issue_verification(contact_id: int) -> str:
    """
    Issue a fresh 24h token, replacing any pending one.

    Raises AlreadyVerified for a verified contact.
    """
    def _op():
        contact = get_contact(contact_id)
        if contact.is_verified:
            raise AlreadyVerified("Contact is already verified")
        token = _assign_token(contact)
        db.session.commit()
        return token

    return run_with_retry(_op)


def resend_verification(contact_id: int) -> bool:
    """Issue a new token and email it. Returns whether the email went out."""
    token = issue_verification(contact_id)
    return _send_verification(get_contact(contact_id), token)


def _merge_profile(user: User, contact: PortAdminContact) -> bool:
    """Apply CONTACT_PROFILE_MERGE_POLICY to an existing user. Returns True if anything changed."""
    policy = current_app.config.get("CONTACT_PROFILE_MERGE_POLICY", MERGE_OVERWRITE)
    if policy == MERGE_PRESERVE:
        return False

    first_name, last_name = split_contact_name(contact.contact_name)
    before = user.audit_values()
    user.first_name = first_name
    user.last_name = last_name
    user.role = PORT_ADMIN
    user.port_id = contact.port_id
    changed = audit_service.diff_user_values(before, user.audit_values())
    if changed:
        current_app.logger.info(
            "Contact %s verification overwrote %s on user %s", contact.id, ", ".join(changed), user.id
        )
    return bool(changed)


def consume_verification(token: str) -> VerificationResult:
    """
    Verify a contact by token and link (or provision) its user account.

    Raises InvalidOrExpiredToken when the token is unknown, expired or
    already consumed.
    """
    if not token:
        raise InvalidOrExpiredToken("Invalid or expired verification token")

    def _op():
        now = utcnow()
        contact_id = (
            db.session.query(PortAdminContact.id)
            .filter(PortAdminContact.verification_token == token)
            .scalar()
        )
        if contact_id is None:
            raise InvalidOrExpiredToken("Invalid or expired verification token")

        # Check-and-set in one statement; version_id is bumped so stale
        # in-memory copies of the row fail on their next flush.
        claimed = db.session.query(PortAdminContact).filter(
            PortAdminContact.id == contact_id,
            PortAdminContact.verification_token == token,
            PortAdminContact.verification_token_expires > now,
            PortAdminContact.is_verified.is_(False),
        ).update(
            {
                PortAdminContact.is_verified: True,
                PortAdminContact.status: CONTACT_ACTIVE,
                PortAdminContact.verification_token: None,
                PortAdminContact.verification_token_expires: None,
                PortAdminContact.version_id: PortAdminContact.version_id + 1,
            },
            synchronize_session=False,
        )
        if claimed != 1:
            db.session.rollback()
            raise InvalidOrExpiredToken("Invalid or expired verification token")

        contact = db.session.query(PortAdminContact).populate_existing().filter_by(id=contact_id).one()

        user = db.session.query(User).filter_by(email=contact.email).first()
        before = user.audit_values() if user else None
        user_created = False
        profile_changed = False

        if user is None:
            first_name, last_name = split_contact_name(contact.contact_name)
            user = User(
                email=contact.email,
                password_hash=PENDING_SETUP,
                first_name=first_name,
                last_name=last_name,
                role=PORT_ADMIN,
                port_id=contact.port_id,
                is_active=False,
            )
            db.session.add(user)
            db.session.flush()
            user_created = True
        else:
            profile_changed = _merge_profile(user, contact)

        contact.user_id = user.id
        db.session.commit()
        return contact, user, user_created, before, profile_changed

    contact, user, user_created, before, profile_changed = run_with_retry(_op)

    if user_created:
        audit_service.log_user_event(
            target_user_id=user.id,
            action="created",
            description=f"Account provisioned from verified contact {contact.email}",
            new_values=user.audit_values(),
        )
    elif profile_changed:
        audit_service.log_user_update(user, None, before, user.audit_values())

    audit_service.log_user_event(
        target_user_id=user.id,
        action="verified",
        description=f"Contact {contact.id} ({contact.email}) verified for port {contact.port_id}",
    )
    current_app.logger.info("Contact %s verified; linked to user %s", contact.id, user.id)
    return VerificationResult(contact=contact, user=user, user_created=user_created)
