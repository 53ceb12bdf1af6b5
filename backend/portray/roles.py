"""
Role names recognised by the API.

SystemAdmin reviews and activates terminals and manages users/menus.
PortAdmin is provisioned from a verified port admin contact and manages
the terminals of its own port. "user" is the default for accounts created
without an explicit role.
"""

SYSTEM_ADMIN = "SystemAdmin"
PORT_ADMIN = "PortAdmin"
USER = "user"

VALID_ROLES = {SYSTEM_ADMIN, PORT_ADMIN, USER}


def redirect_path_for(role: str) -> str:
    """Landing page returned by the login endpoint."""
    if role == SYSTEM_ADMIN:
        return "/portal/welcome"
    return "/dashboard"
