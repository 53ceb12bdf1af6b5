# backend/portray/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/portray.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///portray.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # bcrypt cost factor; tests lower this to keep hashing fast
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Session lifetimes
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))
    REMEMBER_ME_TTL_DAYS = int(os.environ.get("REMEMBER_ME_TTL_DAYS", "30"))

    # Contact verification links
    VERIFICATION_TOKEN_TTL_HOURS = int(os.environ.get("VERIFICATION_TOKEN_TTL_HOURS", "24"))
    APP_BASE_URL = os.environ.get("APP_BASE_URL", "http://localhost:5000")

    # "overwrite": refresh name/role of an existing user from the contact on verification
    # "preserve": only link the contact to the existing user
    CONTACT_PROFILE_MERGE_POLICY = os.environ.get("CONTACT_PROFILE_MERGE_POLICY", "overwrite")

    # Initial SystemAdmin, provisioned by `flask system init` / `flask users seed-admin`
    SEED_ADMIN_EMAIL = os.environ.get("SEED_ADMIN_EMAIL")
    SEED_ADMIN_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD")

    # Outbound mail; when MAIL_SERVER is unset, links are only logged
    MAIL_SERVER = os.environ.get("MAIL_SERVER")
    MAIL_PORT = int(os.environ.get("MAIL_PORT", "587"))
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", True)
    MAIL_FROM = os.environ.get("MAIL_FROM", "no-reply@portray.local")
    MAIL_FROM_NAME = os.environ.get("MAIL_FROM_NAME", "PortRay")

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    }
