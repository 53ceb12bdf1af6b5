# backend/portray/routes/system.py
"""
System health endpoint.

Reports database connectivity and the bootstrap state (subscription types
seeded, at least one SystemAdmin present) for deployment debugging.
"""

import time

from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import SubscriptionType, User, UserSession
from ..roles import SYSTEM_ADMIN
from portray.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Count rows in the core tables; any failure marks the database unhealthy."""
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        active_sessions = db.session.query(UserSession).filter(UserSession.expires_at > utcnow()).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "users": user_count,
                "active_sessions": active_sessions,
            }
        }
    except SQLAlchemyError:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_bootstrap_health() -> dict:
    """Degraded until `flask system init` has seeded lookups and an admin."""
    try:
        subscription_types = db.session.query(SubscriptionType).count()
        admins = db.session.query(User).filter_by(role=SYSTEM_ADMIN, is_active=True).count()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Bootstrap health check failed")
        return {"status": "unhealthy", "error": "Database error"}

    missing = []
    if not subscription_types:
        missing.append("subscription types")
    if not admins:
        missing.append("SystemAdmin user")

    if missing:
        return {"status": "degraded", "warning": f"Missing: {', '.join(missing)}"}
    return {"status": "healthy", "details": {"subscription_types": subscription_types, "system_admins": admins}}


@system_bp.get("/health")
def health():
    """
    Liveness and dependency check.

    Returns:
    - 200: healthy or degraded (still operational)
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    bootstrap_health = check_bootstrap_health()

    all_checks = [database_health, bootstrap_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status, http_status = "unhealthy", 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": {
            "database": database_health,
            "bootstrap": bootstrap_health,
        }
    }

    return response, http_status
