# Overview: Bearer-token sessions for cashiers and managers at the till.

"""
Sessions

A login hands the client one opaque token. The database only ever sees
sha256(token), so a leaked table cannot be replayed against the API.

Lifetime:
- SESSION_ABSOLUTE_TIMEOUT after creation the token is dead regardless of use.
- SESSION_IDLE_TIMEOUT without a request revokes it (a till left unattended).
- Deactivating a user revokes their sessions the next time one is presented.
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..errors import NotFoundError
from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)
REVOKED_RETENTION = timedelta(days=30)


@dataclass
class SessionContext:
    user: User
    session: SessionToken


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _find_live(token: str | None) -> SessionToken | None:
    if not token:
        return None
    return (
        db.session.query(SessionToken)
        .filter(SessionToken.token_hash == hash_token(token), SessionToken.is_revoked.is_(False))
        .first()
    )


def _revoke(session: SessionToken, reason: str, at: datetime | None = None) -> None:
    session.is_revoked = True
    session.revoked_at = at or utcnow()
    session.revoked_reason = reason


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """Open a session for user_id. Returns (row, plaintext token)."""
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found", details={"user_id": user_id})

    token = generate_token()
    opened = utcnow()
    row = SessionToken(
        user_id=user.id,
        token_hash=hash_token(token),
        created_at=opened,
        last_used_at=opened,
        expires_at=opened + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=user_agent[:512] if user_agent else None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(row)
    db.session.commit()
    return row, token


def validate_session(token: str | None) -> SessionContext | None:
    row = _find_live(token)
    if row is None:
        return None

    now = utcnow()
    if row.expires_at < now:
        return None

    reason = None
    if now - row.last_used_at > SESSION_IDLE_TIMEOUT:
        reason = "Idle timeout"
    elif row.user is None or not row.user.is_active:
        reason = "User account deactivated"

    if reason:
        _revoke(row, reason, now)
        db.session.commit()
        return None

    row.last_used_at = now
    db.session.commit()
    return SessionContext(user=row.user, session=row)


def revoke_session(token: str | None, reason: str = "User logout") -> bool:
    row = _find_live(token)
    if row is None:
        return False
    _revoke(row, reason)
    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions") -> int:
    now = utcnow()
    rows = (
        db.session.query(SessionToken)
        .filter(SessionToken.user_id == user_id, SessionToken.is_revoked.is_(False))
        .all()
    )
    for row in rows:
        _revoke(row, reason, now)
    db.session.commit()
    return len(rows)


def cleanup_expired_sessions() -> int:
    """Purge dead session rows older than REVOKED_RETENTION."""
    now = utcnow()
    deleted = (
        db.session.query(SessionToken)
        .filter(
            db.or_(SessionToken.expires_at < now, SessionToken.is_revoked.is_(True)),
            SessionToken.created_at < now - REVOKED_RETENTION,
        )
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return deleted
