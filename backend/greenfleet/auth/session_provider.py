"""
Session provider: "who is calling, and which tenant are they working in?"

Resolves the current AuthSession from request headers.

Token sources, in order:
1. Session cookie (web)
2. Authorization: Bearer <token> header (API clients)

Only the SHA-256 hash of a token is stored, so a leaked database does not
leak usable sessions. Expired sessions are treated exactly like missing ones.
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from http.cookies import SimpleCookie
from typing import Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from greenfleet.config.settings import get_session_cookie_name, get_session_ttl_hours
from greenfleet.models.auth_session import AuthSession

logger = logging.getLogger(__name__)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    # Starlette Headers are case-insensitive; plain dicts in tests may not be
    value = headers.get(name)
    if value is None:
        value = headers.get(name.lower())
    return value


def extract_session_token(headers: Mapping[str, str]) -> Optional[str]:
    """Return the raw session token carried by the request, if any."""
    cookie_header = _header(headers, "Cookie")
    if cookie_header:
        cookie = SimpleCookie()
        cookie.load(cookie_header)
        morsel = cookie.get(get_session_cookie_name())
        if morsel and morsel.value:
            return morsel.value

    auth = _header(headers, "Authorization")
    if auth and auth.startswith("Bearer "):
        token = auth[len("Bearer "):].strip()
        if token:
            return token

    return None


def get_current_session(db: Session, headers: Mapping[str, str]) -> Optional[AuthSession]:
    """
    Look up the session for these request headers.

    Returns None when no token is present, the token is unknown, or the
    session has expired.
    """
    token = extract_session_token(headers)
    if not token:
        return None

    auth_session = db.query(AuthSession).filter(
        AuthSession.token_hash == hash_token(token)
    ).first()

    if auth_session is None:
        logger.debug("Unknown session token presented")
        return None

    if auth_session.is_expired():
        logger.info(
            "Expired session presented",
            extra={"session_id": auth_session.id, "user_id": auth_session.user_id},
        )
        return None

    return auth_session


def create_session(
    db: Session,
    user_id: str,
    active_organization_id: Optional[str] = None,
    ttl_hours: Optional[int] = None,
) -> Tuple[str, AuthSession]:
    """
    Create and persist a new session.

    Returns:
        (raw_token, AuthSession); the raw token is never stored.
    """
    token = secrets.token_urlsafe(32)
    hours = ttl_hours if ttl_hours is not None else get_session_ttl_hours()

    auth_session = AuthSession(
        user_id=user_id,
        token_hash=hash_token(token),
        active_organization_id=active_organization_id,
        expires_at=datetime.now(timezone.utc) + timedelta(hours=hours),
    )
    db.add(auth_session)
    db.commit()
    db.refresh(auth_session)

    logger.info(
        "Session created",
        extra={"session_id": auth_session.id, "user_id": user_id},
    )
    return token, auth_session
