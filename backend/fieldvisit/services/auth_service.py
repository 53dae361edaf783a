# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every visit, approval and dispatch must be attributable. Uses bcrypt for
password hashing; credentials are checked only against active accounts.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, at least one letter and one digit
- There is no fallback or master password: a failed bcrypt check is final
- Unknown email, inactive account and wrong password are indistinguishable
"""

import re

import bcrypt
from flask import current_app

from ..errors import InvalidCredentials, ValidationError
from ..extensions import db
from ..models import User
from ..time_utils import utcnow


BCRYPT_ROUNDS = 12


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str | None) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str, *, rounds: int = BCRYPT_ROUNDS) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including
    malformed or missing hashes).
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def authenticate(email: str | None, password: str | None) -> User:
    """
    Authenticate an active user by email and password.

    Returns the User and stamps last_login_at on success.

    Raises:
        InvalidCredentials: for any failure, without saying which check failed
    """
    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        raise InvalidCredentials()

    user = db.session.query(User).filter(
        db.func.lower(User.email) == email.strip().lower(),
        User.is_active.is_(True),
    ).first()

    if not user or not verify_password(password, user.password_hash):
        current_app.logger.warning("Rejected login attempt")
        raise InvalidCredentials()

    user.last_login_at = utcnow()
    db.session.commit()
    current_app.logger.info("User %s logged in", user.id)
    return user
