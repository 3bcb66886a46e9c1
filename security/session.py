import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Optional

from flask import request, current_app
from sqlalchemy import update

from models import db
from models.session import LoginSession


def cookie_name() -> str:
    return current_app.config.get("AUTH_COOKIE_NAME", "stayslot_session")


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _client_fingerprint():
    ip = request.headers.get("X-Forwarded-For", request.remote_addr)
    user_agent = (request.headers.get("User-Agent") or "")[:255] or None
    return ip, user_agent


def start_session(user_id: int) -> str:
    """
    Revoke the user's other logins, open a new one and return the raw token
    for the cookie. Only its hash is stored.
    """
    db.session.execute(
        update(LoginSession)
        .where(LoginSession.user_id == user_id, LoginSession.revoked.is_(False))
        .values(revoked=True)
    )

    raw_token = secrets.token_urlsafe(32)
    lifetime = current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60)
    ip, user_agent = _client_fingerprint()

    db.session.add(LoginSession(
        user_id=user_id,
        token_hash=_hash_token(raw_token),
        expires_at=datetime.utcnow() + timedelta(seconds=lifetime),
        ip=ip,
        user_agent=user_agent,
    ))
    db.session.commit()
    return raw_token


def session_from_request() -> Optional[LoginSession]:
    """Resolve the cookie to a usable login and mark it as seen."""
    raw_token = request.cookies.get(cookie_name())
    if not raw_token:
        return None

    sess = LoginSession.query.filter_by(token_hash=_hash_token(raw_token)).first()
    now = datetime.utcnow()
    idle_seconds = current_app.config.get("IDLE_TIMEOUT_SECONDS", 20 * 60)
    if not sess or not sess.is_usable(now, idle_seconds):
        return None

    sess.last_seen_at = now
    db.session.commit()
    return sess


def end_session(raw_token: Optional[str]) -> bool:
    if not raw_token:
        return False
    result = db.session.execute(
        update(LoginSession)
        .where(LoginSession.token_hash == _hash_token(raw_token))
        .values(revoked=True)
    )
    db.session.commit()
    return bool(result.rowcount)
