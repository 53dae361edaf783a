# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/fieldvisit/routes/auth.py
"""
Authentication API routes

- POST /api/auth/login: exchange email + password for a bearer token
- GET  /api/auth/me:    identity decoded from the presented token

SECURITY:
- Login failures all return the same 401 body (no account enumeration)
- Tokens expire TOKEN_TTL_HOURS after issue
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_roles
from ..errors import ApiError, error_response
from ..roles import ALL_ROLES
from ..services import auth_service, token_service
from ..time_utils import to_utc_z
from ..validation import require_json_object


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and issue a bearer token.

    Request body:
        {"email": str, "password": str}

    Response:
        {"token": str, "expires_at": iso, "user": {id, name, email, phone, role}}
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        user = auth_service.authenticate(data.get("email"), data.get("password"))
        token, expires_at = token_service.issue_token(user)

        return jsonify({
            "token": token,
            "expires_at": to_utc_z(expires_at),
            "user": user.to_profile(),
        }), 200

    except ApiError as exc:
        return error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "internal_error"}), 500


@auth_bp.get("/me")
@require_auth
@require_roles(ALL_ROLES)
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
