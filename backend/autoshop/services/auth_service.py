# Overview: Service-layer operations for auth; password hashing, user creation and login checks.

"""
Authentication Service

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters, with uppercase, lowercase, digit and special char
- Session tokens managed separately (see session_service.py)
- Inactive users cannot authenticate
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User, VALID_ROLES, ROLE_MECHANIC
from ..validation import ConflictError, ValidationError, issue
from autoshop.time_utils import utcnow


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt at the configured cost."""
    validate_password_strength(password)
    rounds = int(current_app.config.get("BCRYPT_ROUNDS", 12))
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is constant-time. Malformed hashes verify as False.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def create_user(
    email: str,
    password: str,
    full_name: str,
    role: str = ROLE_MECHANIC,
    phone: str | None = None,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ValidationError: bad email, name or role
        PasswordValidationError: password doesn't meet requirements
        ConflictError: email already registered
    """
    email = normalize_email(email)
    full_name = (full_name or "").strip()

    issues = []
    if not _EMAIL_RE.match(email):
        issues.append(issue("email", "A valid email is required"))
    if not full_name:
        issues.append(issue("full_name", "full_name is required"))
    if role not in VALID_ROLES:
        issues.append(issue("role", f"role must be one of: {', '.join(sorted(VALID_ROLES))}"))
    if issues:
        raise ValidationError("Validation failed", issues)

    existing = db.session.query(User).filter(User.email == email).first()
    if existing:
        raise ConflictError("A user with this email already exists")

    user = User(
        email=email,
        full_name=full_name,
        role=role,
        phone=(phone or "").strip() or None,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()

    current_app.logger.info("Created %s user %s (%s)", role, user.id, email)
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Return the user when the credentials match an active account, else None.

    The caller decides how to report failures; no detail about which half
    was wrong is exposed.
    """
    user = db.session.query(User).filter(User.email == normalize_email(email)).first()
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def list_users(role: str | None = None) -> list[User]:
    query = db.session.query(User)
    if role:
        query = query.filter(User.role == role)
    return query.order_by(User.full_name.asc()).all()


def list_active_mechanics() -> list[User]:
    return (
        db.session.query(User)
        .filter(User.role == ROLE_MECHANIC, User.is_active.is_(True))
        .order_by(User.full_name.asc())
        .all()
    )
