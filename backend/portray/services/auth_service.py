# Overview: Service-layer operations for credentials; password hashing, login and password setup.

"""
Authentication Service

WHY: Every action must be attributable. Uses bcrypt for secure password
hashing and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor BCRYPT_ROUNDS, 12 by default)
- Minimum 8 characters, with uppercase, lowercase, digit and special char
- Login failures are generic: unknown email, wrong password, inactive
  account and pending setup all look the same to the caller
- Accounts provisioned from a verified contact carry the PENDING_SETUP
  sentinel until the owner chooses a password
- Session tokens managed separately (see session_service.py)
- There is no hard-coded superuser: the first SystemAdmin is seeded from
  SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD by the CLI
"""

from __future__ import annotations

import re

import bcrypt
from flask import current_app

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import User, UserSession
from ..roles import SYSTEM_ADMIN
from . import audit_service, session_service
from portray.time_utils import utcnow


# Sentinel stored in password_hash until password setup completes.
# It is not a bcrypt hash, so verify_password can never accept it.
PENDING_SETUP = "PENDING_SETUP"


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    default_code = "WeakPassword"


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long", field="password")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter", field="password")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter", field="password")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit", field="password")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character", field="password")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing. The cost factor
    comes from BCRYPT_ROUNDS so tests can run with a cheaper setting.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise.
    bcrypt.checkpw() compares in constant time.
    """
    if not password or not password_hash or password_hash == PENDING_SETUP:
        return False

    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        current_app.logger.warning("Unreadable password hash encountered during login")
        return False


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise. Email comparison is
    exact (case-sensitive). Updates last_login_at on success.
    """
    if not email or not password:
        return None

    user = db.session.query(User).filter(User.email == email).first()
    if not user or not user.is_active:
        return None

    if not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def setup_password(
    user_id: int,
    password: str,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[User, UserSession, str]:
    """
    Set the first password of a contact-provisioned account and log it in.

    Allowed only while the account still carries PENDING_SETUP, so this can
    never overwrite an established password. In one commit the password
    is hashed, the account activated, last_login_at stamped and a 24h
    session issued.

    Raises:
        NotFoundError: unknown user
        ConflictError: password already set
        PasswordValidationError: weak password
    """
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    if user.password_hash != PENDING_SETUP:
        raise ConflictError("Password has already been set for this account", code="PasswordAlreadySet")

    user.password_hash = hash_password(password)
    user.is_active = True
    user.last_login_at = utcnow()

    session, token = session_service.create_session(
        user.id,
        remember_me=False,
        user_agent=user_agent,
        ip_address=ip_address,
        commit=False,
    )
    db.session.commit()

    audit_service.log_user_event(
        target_user_id=user.id,
        action="password_setup",
        description=f"Password set up for {user.email}",
        performed_by=user.id,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return user, session, token


def ensure_seed_admin() -> tuple[User | None, bool]:
    """
    Provision the initial SystemAdmin from SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD.

    Returns (user, created). (None, False) when the settings are absent.
    An existing account with that email is left untouched.
    """
    email = current_app.config.get("SEED_ADMIN_EMAIL")
    password = current_app.config.get("SEED_ADMIN_PASSWORD")
    if not email or not password:
        return None, False

    existing = db.session.query(User).filter_by(email=email).first()
    if existing:
        return existing, False

    user = User(
        email=email,
        password_hash=hash_password(password),
        first_name="System",
        last_name="Admin",
        role=SYSTEM_ADMIN,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()

    audit_service.log_user_event(
        target_user_id=user.id,
        action="created",
        description=f"Seed administrator {email} created",
        new_values=user.audit_values(),
    )
    current_app.logger.info("Seeded SystemAdmin %s", email)
    return user, True
