# Overview: Request authentication and role-gate decorators for API routes.

from functools import wraps

from flask import request, g

from .errors import unauthenticated, forbidden
from .services import token_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def require_auth(f):
    """
    Require a valid bearer token.

    Sets the following Flask g attributes:
    - g.current_user: TokenClaims decoded from the token
    - g.user_id: shorthand for g.current_user.user_id

    SECURITY: Returns 401 if:
    - No Authorization header, or not a Bearer credential
    - Bad signature, malformed token, or unknown role claim
    - Token expired
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return unauthenticated()

        token = auth_header.split(" ", 1)[1].strip()
        claims = token_service.decode_token(token)

        if claims is None:
            return unauthenticated("Invalid or expired token")

        g.current_user = claims
        g.user_id = claims.user_id

        return f(*args, **kwargs)

    return decorated_function


def require_roles(allowed_roles):
    """
    Admit only tokens whose role is a member of `allowed_roles`.

    Membership is exact: roles are not ranked, so each route lists every
    role it accepts (see roles.py).
    """
    allowed = frozenset(allowed_roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return unauthenticated()

            if g.current_user.role not in allowed:
                return forbidden(allowed)

            return f(*args, **kwargs)

        return decorated_function
    return decorator
