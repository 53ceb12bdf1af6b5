# Overview: Public routes for contact email verification and the password setup alias.

from flask import Blueprint, jsonify, request

from ..errors import ValidationError
from ..services import contact_service
from ..services.auth_service import PENDING_SETUP
from .auth import setup_password_route

verification_bp = Blueprint("verification", __name__, url_prefix="/api")


@verification_bp.get("/verify")
def verify_route():
    """
    Consume a contact verification token (link from the welcome email).

    The response tells the client whether the linked account still needs
    a password (needs_password_setup) and for which user_id.
    """
    token = request.args.get("token")
    if not token:
        raise ValidationError("token is required", field="token")

    result = contact_service.consume_verification(token)
    return jsonify({
        "message": "Email verified successfully",
        "contact": result.contact.to_dict(),
        "user_id": result.user.id,
        "user_created": result.user_created,
        "needs_password_setup": result.user.password_hash == PENDING_SETUP,
    })


verification_bp.add_url_rule(
    "/setup-password",
    endpoint="setup_password",
    view_func=setup_password_route,
    methods=["POST"],
)
