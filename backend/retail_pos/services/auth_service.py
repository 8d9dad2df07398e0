# Overview: Service-layer operations for auth; password hashing, user accounts and sign-in.

"""
Authentication Service

Every sale and stock adjustment is attributed to the signed-in user, so
there are no shared accounts. Passwords are hashed with bcrypt; session
tokens are handled by session_service.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, with uppercase, lowercase, digit and special char
- sign_in never says whether the username or the password was wrong
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import bcrypt

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import ROLES, User
from ..time_utils import utcnow
from . import session_service


INVALID_CREDENTIALS = "Invalid username or password"


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    code = "weak_password"


@dataclass
class AuthResult:
    ok: bool
    principal: User | None = None
    token: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if not self.ok:
            return {"ok": False, "error": self.error}
        return {"ok": True, "user": self.principal.to_dict(), "token": self.token}


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")
    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")
    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")
    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")
    if not re.search(r"[!@#$%^&*(),.'\":{}|<>?_\-]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt (cost factor 12)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


def create_user(
    username: str,
    email: str,
    password: str,
    role: str = "cashier",
    display_name: str | None = None,
) -> User:
    """
    Create a user account.

    Raises ValidationError for missing fields, an unknown role or a weak
    password, and ConflictError if the username or email is taken.
    """
    username = (username or "").strip()
    email = (email or "").strip().lower()
    if not username or not email:
        raise ValidationError("username and email are required")
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")

    existing = db.session.query(User).filter(
        db.or_(User.username == username, User.email == email)
    ).first()
    if existing:
        raise ConflictError("Username or email already exists")

    user = User(
        username=username,
        email=email,
        display_name=(display_name or "").strip() or None,
        password_hash=hash_password(password),
        role=role,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(identifier: str, password: str) -> User | None:
    """Return the active user matching username/email and password, else None."""
    identifier = (identifier or "").strip()
    if not identifier:
        return None

    user = db.session.query(User).filter(
        db.or_(User.username == identifier, User.email == identifier.lower()),
        User.is_active.is_(True),
    ).first()
    if not user or not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def sign_in(identifier: str, secret: str, user_agent: str | None = None, ip_address: str | None = None) -> AuthResult:
    user = authenticate(identifier, secret)
    if user is None:
        return AuthResult(ok=False, error=INVALID_CREDENTIALS)

    _, token = session_service.create_session(user.id, user_agent=user_agent, ip_address=ip_address)
    return AuthResult(ok=True, principal=user, token=token)


def sign_up(
    username: str,
    email: str,
    password: str,
    display_name: str | None = None,
    role: str = "cashier",
) -> AuthResult:
    """Create an account and sign it in. Validation problems come back as ok=False."""
    try:
        user = create_user(username, email, password, role=role, display_name=display_name)
    except (ValidationError, ConflictError) as e:
        return AuthResult(ok=False, error=e.message)

    _, token = session_service.create_session(user.id)
    return AuthResult(ok=True, principal=user, token=token)


def sign_out(token: str) -> bool:
    return session_service.revoke_session(token, reason="User logout")


def set_role(user_id: int, role: str) -> User:
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found", details={"user_id": user_id})
    user.role = role
    db.session.commit()
    return user
