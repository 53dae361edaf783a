# Overview: Service-layer operations for bearer tokens; issues and verifies signed credentials.

"""
Signed Session Credentials

WHY: Requests are authenticated without a server-side session table. The
token is an HS256 JWT carrying the user id, role and display name, so every
request can be authorized from the token alone.

- `exp` is exactly `iat + TOKEN_TTL_HOURS` (12 hours by default)
- Signature, expiry and required claims are verified on every request
- A token whose role is not a known Role is rejected as invalid
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from flask import current_app
from jose import JWTError, jwt

from ..models import User
from ..roles import Role


@dataclass(frozen=True)
class TokenClaims:
    """Identity decoded from a verified token."""
    user_id: int
    role: Role
    name: str
    issued_at: datetime
    expires_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "role": self.role.value,
            "name": self.name,
            "issued_at": self.issued_at.isoformat().replace("+00:00", "Z"),
            "expires_at": self.expires_at.isoformat().replace("+00:00", "Z"),
        }


def token_ttl() -> timedelta:
    return timedelta(hours=current_app.config["TOKEN_TTL_HOURS"])


def issue_token(user: User, *, now: datetime | None = None) -> tuple[str, datetime]:
    """
    Sign a token for `user`.

    Returns (token, expires_at). expires_at is timezone-aware UTC.
    """
    issued_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    expires_at = issued_at + token_ttl()
    claims = {
        "sub": str(user.id),
        "role": user.role,
        "name": user.full_name,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    token = jwt.encode(
        claims,
        current_app.config["JWT_SECRET"],
        algorithm=current_app.config["JWT_ALGORITHM"],
    )
    return token, expires_at


def decode_token(token: str | None) -> TokenClaims | None:
    """
    Verify and decode a bearer token.

    Returns None if the token is missing, malformed, badly signed, expired,
    or carries an unknown role.
    """
    if not token:
        return None

    try:
        payload = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"require_sub": True, "require_exp": True, "require_iat": True},
        )
    except JWTError:
        return None

    role = Role.parse(payload.get("role"))
    if role is None:
        return None

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        return None

    return TokenClaims(
        user_id=user_id,
        role=role,
        name=payload.get("name") or "",
        issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
