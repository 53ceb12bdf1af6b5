# Overview: Service-layer operations for bearer sessions; issue, resolve, rotate and revoke tokens.

"""
Session Token Management Service

WHY: Every authenticated request carries a bearer token. Tokens are
cryptographically secure, hashed in the database and time-limited.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- 24-hour lifetime, 30 days with "remember me" (SESSION_TTL_HOURS,
  REMEMBER_ME_TTL_DAYS)
- Logout hard-deletes the row: a revoked token can never resolve again
- Expired rows are treated as absent and deleted on lookup
- Tracks client IP and user agent for security monitoring
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import UserSession, User
from portray.time_utils import utcnow


@dataclass
class SessionContext:
    """Session context returned by resolve_session."""
    user: User
    session: UserSession


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    WHY SHA-256 not bcrypt: Tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def session_lifetime(remember_me: bool) -> timedelta:
    if remember_me:
        return timedelta(days=current_app.config.get("REMEMBER_ME_TTL_DAYS", 30))
    return timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 24))


def create_session(
    user_id: int,
    remember_me: bool = False,
    user_agent: str | None = None,
    ip_address: str | None = None,
    commit: bool = True,
) -> tuple[UserSession, str]:
    """
    Create new session token for a user.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.

    commit=False leaves the row in the current transaction so callers
    (password setup) can make the session part of a larger unit of work.
    """
    user = db.session.get(User, user_id)
    if not user:
        raise ValueError("User not found")

    plaintext_token = generate_token()
    now = utcnow()

    session = UserSession(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        remember_me=bool(remember_me),
        created_at=now,
        expires_at=now + session_lifetime(bool(remember_me)),
        user_agent=user_agent,
        ip_address=ip_address,
    )

    db.session.add(session)
    if commit:
        db.session.commit()
    else:
        db.session.flush()

    return session, plaintext_token


def resolve_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token into its SessionContext.

    Returns None if:
    - Token is unknown (never issued, or revoked)
    - Session has expired (the row is deleted)
    - User account is deactivated

    A session is valid only while expires_at is strictly in the future.
    """
    if not token:
        return None

    session = db.session.query(UserSession).filter_by(token_hash=hash_token(token)).first()
    if not session:
        return None

    if session.expires_at <= utcnow():
        db.session.delete(session)
        db.session.commit()
        return None

    user = session.user
    if not user or not user.is_active:
        return None

    return SessionContext(user=user, session=session)


def refresh_session(
    token: str,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[UserSession, str] | None:
    """
    Rotate a still-valid token: issue a new session with the same
    remember-me lifetime and delete the old row in one commit.
    """
    context = resolve_session(token)
    if not context:
        return None

    old = context.session
    new_session, new_token = create_session(
        context.user.id,
        remember_me=old.remember_me,
        user_agent=user_agent or old.user_agent,
        ip_address=ip_address or old.ip_address,
        commit=False,
    )
    db.session.delete(old)
    db.session.commit()
    return new_session, new_token


def revoke_session(token: str) -> bool:
    """
    Delete the session for this token.

    Returns True if a session was deleted, False if not found.
    """
    deleted = db.session.query(UserSession).filter_by(token_hash=hash_token(token)).delete()
    db.session.commit()
    return deleted > 0


def revoke_all_user_sessions(user_id: int) -> int:
    """
    Delete all sessions for a user (deactivation, deletion).

    Returns count of sessions deleted.
    """
    deleted = db.session.query(UserSession).filter_by(user_id=user_id).delete()
    db.session.commit()
    return deleted


def cleanup_expired_sessions() -> int:
    """
    Delete every expired session.

    Returns count of sessions deleted. Run periodically
    (`flask sessions cleanup`).
    """
    deleted = db.session.query(UserSession).filter(
        UserSession.expires_at <= utcnow()
    ).delete()
    db.session.commit()
    return deleted
