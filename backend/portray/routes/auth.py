# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/portray/routes/auth.py
"""
Authentication API routes

- POST /api/auth/login           credentials -> bearer token
- POST /api/auth/logout          delete the current session
- GET  /api/auth/me              signed-in user
- POST /api/auth/refresh         rotate the bearer token
- POST /api/auth/setup-password  first password for a provisioned account

Login failures are deliberately generic ("Invalid credentials") whether
the email is unknown, the password wrong, or the account inactive.
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth
from ..errors import AuthError, ValidationError
from ..roles import redirect_path_for
from ..services import audit_service, auth_service, contact_service, session_service
from ..validation import json_object
from portray.time_utils import to_utc_z


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(user, session, token) -> dict:
    return {
        "user": user.to_dict(),
        "token": token,
        "expires_at": to_utc_z(session.expires_at),
        "redirect_path": redirect_path_for(user.role),
    }


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Body: {"email", "password", "remember_me"?}
    Token must be included in Authorization header for protected routes.
    """
    data = json_object(request.get_json(silent=True))
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        raise ValidationError("email and password required")

    user_agent = request.headers.get("User-Agent")
    ip_address = request.remote_addr

    user = auth_service.authenticate(email, password)
    if not user:
        raise AuthError("Invalid credentials", code="InvalidCredentials")

    session, token = session_service.create_session(
        user_id=user.id,
        remember_me=bool(data.get("remember_me")),
        user_agent=user_agent,
        ip_address=ip_address,
    )
    audit_service.log_user_event(
        target_user_id=user.id,
        action="login",
        description=f"{user.email} signed in",
        performed_by=user.id,
        ip_address=ip_address,
        user_agent=user_agent,
    )

    return jsonify({**_session_payload(user, session, token), "message": "Login successful"}), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Delete the current session; the token stops working immediately."""
    session_service.revoke_session(g.token)
    return jsonify({"message": "Logout successful"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    contact = contact_service.get_contact_for_user(user.id)
    return jsonify({
        "user": user.to_dict(),
        "session": g.session_context.session.to_dict(),
        "contact": contact.to_dict() if contact else None,
        "redirect_path": redirect_path_for(user.role),
    })


@auth_bp.post("/refresh")
@require_auth
def refresh_route():
    """Issue a new token with the same lifetime policy; the old one is deleted."""
    rotated = session_service.refresh_session(
        g.token,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    if not rotated:
        raise AuthError("Invalid or expired token")
    session, token = rotated
    return jsonify(_session_payload(g.current_user, session, token))


@auth_bp.post("/setup-password")
def setup_password_route():
    """
    Set the first password of an account provisioned by contact verification.

    Body: {"user_id", "password"}. Logs the user in on success.
    """
    data = json_object(request.get_json(silent=True))
    user_id = data.get("user_id")
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        raise ValidationError("user_id must be an integer", field="user_id")

    user, session, token = auth_service.setup_password(
        user_id,
        data.get("password"),
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return jsonify({**_session_payload(user, session, token), "message": "Password set successfully"}), 200
