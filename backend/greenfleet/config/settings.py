"""
Environment-driven settings.

Values are read on every call so tests and deployments can change the
environment without re-importing modules.

Environment variables:
- DATABASE_URL: SQLAlchemy URL of the primary database (required for DB access)
- SESSION_COOKIE_NAME: cookie carrying the session token
- SESSION_TTL_HOURS: lifetime of newly created sessions
- LOG_LEVEL: root log level used by main.py
- FEATURE_CONFIG_PATH: override for config/tenant_features.yml
"""

import os
from typing import Optional

DEFAULT_SESSION_COOKIE_NAME = "greenfleet.session_token"
DEFAULT_SESSION_TTL_HOURS = 168


def get_database_url() -> str:
    """
    Get and normalize the database URL from environment.

    Handles the postgres:// URL format by converting to postgresql://.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL environment variable is not set")

    # SQLAlchemy requires postgresql://
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)

    return database_url


def get_session_cookie_name() -> str:
    return os.getenv("SESSION_COOKIE_NAME", DEFAULT_SESSION_COOKIE_NAME)


def get_session_ttl_hours() -> int:
    raw = os.getenv("SESSION_TTL_HOURS")
    if not raw:
        return DEFAULT_SESSION_TTL_HOURS
    try:
        return max(1, int(raw))
    except ValueError:
        return DEFAULT_SESSION_TTL_HOURS


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_feature_config_path() -> Optional[str]:
    return os.getenv("FEATURE_CONFIG_PATH") or None
