# backend/fieldvisit/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Signing key for bearer tokens; falls back to SECRET_KEY
    JWT_SECRET = os.environ.get("JWT_SECRET", SECRET_KEY)
    JWT_ALGORITHM = "HS256"
    TOKEN_TTL_HOURS = int(os.environ.get("TOKEN_TTL_HOURS", "12"))

    # SQLite DB stored in backend/instance/fieldvisit.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///fieldvisit.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Connection pool bounds (ignored for SQLite)
    DB_POOL_SIZE = int(os.environ.get("DB_POOL_SIZE", "10"))
    DB_POOL_TIMEOUT = int(os.environ.get("DB_POOL_TIMEOUT", "30"))

    # Printed in the title block of every visit report
    ORGANIZATION_NAME = os.environ.get("ORGANIZATION_NAME", "Field Inspection Services")

    # Optional TrueType fonts for reports (e.g. a DejaVu or Noto file for
    # non-Latin branch names and notes); unset means the built-in Helvetica.
    # The bold face falls back to the regular file.
    REPORT_FONT_PATH = os.environ.get("REPORT_FONT_PATH")
    REPORT_BOLD_FONT_PATH = os.environ.get("REPORT_BOLD_FONT_PATH")

    # Outbound mail
    MAIL_HOST = os.environ.get("MAIL_HOST", "localhost")
    MAIL_PORT = int(os.environ.get("MAIL_PORT", "587"))
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", True)
    MAIL_SENDER = os.environ.get("MAIL_SENDER", "reports@fieldvisit.local")
    MAIL_TIMEOUT = int(os.environ.get("MAIL_TIMEOUT", "30"))
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND", False)

    # When enabled, visit transitions must follow VISIT_TRANSITIONS and
    # cash/inventory/notes may only be written while a visit is open.
    STRICT_VISIT_TRANSITIONS = _env_bool("STRICT_VISIT_TRANSITIONS", False)


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    JWT_SECRET = "test-jwt-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    ORGANIZATION_NAME = "Test Inspection Co"
    MAIL_SUPPRESS_SEND = True
    STRICT_VISIT_TRANSITIONS = False
