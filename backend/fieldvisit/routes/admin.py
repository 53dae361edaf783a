# Overview: Flask API routes for reference management; parses input and returns JSON responses.

# backend/fieldvisit/routes/admin.py
"""
Admin routes for reference data and staff accounts.

Provides endpoints for:
- Companies and branches (list, get, create, update, delete)
- Branch recipients (list, create, update, delete)
- Users (list, get, create, update, change password, delete)

Managers and admins may read and write; only admins may delete.
Deleting an id that does not exist is not an error.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_roles
from ..errors import ApiError, error_response
from ..roles import DELETE_REFERENCE, MANAGE_REFERENCE
from ..services import reference_service, user_service
from ..validation import require_json_object

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _body() -> dict:
    return require_json_object(request.get_json(silent=True))


def _internal_error(action: str):
    current_app.logger.exception("Failed to %s", action)
    return jsonify({"error": "internal_error"}), 500


# =============================================================================
# COMPANIES
# =============================================================================

@admin_bp.get("/companies")
@require_auth
@require_roles(MANAGE_REFERENCE)
def list_companies():
    companies = reference_service.list_companies(newest_first=True)
    return jsonify([c.to_dict() for c in companies]), 200


@admin_bp.get("/companies/<int:company_id>")
@require_auth
@require_roles(MANAGE_REFERENCE)
def get_company(company_id: int):
    try:
        return jsonify(reference_service.get_company(company_id).to_dict()), 200
    except ApiError as exc:
        return error_response(exc)


@admin_bp.post("/companies")
@require_auth
@require_roles(MANAGE_REFERENCE)
def create_company():
    try:
        company = reference_service.create_company(_body())
        return jsonify({"id": company.id}), 201
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("create company")


@admin_bp.put("/companies/<int:company_id>")
@require_auth
@require_roles(MANAGE_REFERENCE)
def update_company(company_id: int):
    try:
        company = reference_service.update_company(company_id, _body())
        return jsonify({"ok": True, "company": company.to_dict()}), 200
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("update company")


@admin_bp.delete("/companies/<int:company_id>")
@require_auth
@require_roles(DELETE_REFERENCE)
def delete_company(company_id: int):
    try:
        deleted = reference_service.delete_company(company_id)
        return jsonify({"ok": True, "deleted": deleted}), 200
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("delete company")


# =============================================================================
# BRANCHES
# =============================================================================

@admin_bp.get("/branches")
@require_auth
@require_roles(MANAGE_REFERENCE)
def list_branches():
    company_id = request.args.get("company_id", type=int)
    branches = reference_service.list_branches(company_id, newest_first=True)
    return jsonify([b.to_dict() for b in branches]), 200


@admin_bp.get("/branches/<int:branch_id>")
@require_auth
@require_roles(MANAGE_REFERENCE)
def get_branch(branch_id: int):
    try:
        return jsonify(reference_service.get_branch(branch_id).to_dict()), 200
    except ApiError as exc:
        return error_response(exc)


@admin_bp.post("/branches")
@require_auth
@require_roles(MANAGE_REFERENCE)
def create_branch():
    try:
        branch = reference_service.create_branch(_body())
        return jsonify({"id": branch.id}), 201
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("create branch")


@admin_bp.put("/branches/<int:branch_id>")
@require_auth
@require_roles(MANAGE_REFERENCE)
def update_branch(branch_id: int):
    try:
        branch = reference_service.update_branch(branch_id, _body())
        return jsonify({"ok": True, "branch": branch.to_dict()}), 200
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("update branch")


@admin_bp.delete("/branches/<int:branch_id>")
@require_auth
@require_roles(DELETE_REFERENCE)
def delete_branch(branch_id: int):
    try:
        deleted = reference_service.delete_branch(branch_id)
        return jsonify({"ok": True, "deleted": deleted}), 200
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("delete branch")


# =============================================================================
# RECIPIENTS
# =============================================================================

@admin_bp.get("/recipients")
@require_auth
@require_roles(MANAGE_REFERENCE)
def list_recipients():
    branch_id = request.args.get("branch_id", type=int)
    recipients = reference_service.list_recipients(branch_id)
    return jsonify([r.to_dict() for r in recipients]), 200


@admin_bp.post("/recipients")
@require_auth
@require_roles(MANAGE_REFERENCE)
def create_recipient():
    try:
        recipient = reference_service.create_recipient(_body())
        return jsonify({"id": recipient.id}), 201
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("create recipient")


@admin_bp.put("/recipients/<int:recipient_id>")
@require_auth
@require_roles(MANAGE_REFERENCE)
def update_recipient(recipient_id: int):
    try:
        recipient = reference_service.update_recipient(recipient_id, _body())
        return jsonify({"ok": True, "recipient": recipient.to_dict()}), 200
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("update recipient")


@admin_bp.delete("/recipients/<int:recipient_id>")
@require_auth
@require_roles(DELETE_REFERENCE)
def delete_recipient(recipient_id: int):
    try:
        deleted = reference_service.delete_recipient(recipient_id)
        return jsonify({"ok": True, "deleted": deleted}), 200
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("delete recipient")


# =============================================================================
# USER MANAGEMENT
# =============================================================================

@admin_bp.get("/users")
@require_auth
@require_roles(MANAGE_REFERENCE)
def list_users():
    """
    Query params:
    - include_inactive: bool (default true)
    - role: admin | manager | employee
    """
    try:
        include_inactive = request.args.get("include_inactive", "true").lower() == "true"
        users = user_service.list_users(
            include_inactive=include_inactive,
            role=request.args.get("role"),
        )
        return jsonify({"users": [u.to_dict() for u in users], "count": len(users)}), 200
    except ApiError as exc:
        return error_response(exc)


@admin_bp.get("/users/<int:user_id>")
@require_auth
@require_roles(MANAGE_REFERENCE)
def get_user(user_id: int):
    try:
        return jsonify({"user": user_service.get_user(user_id).to_dict()}), 200
    except ApiError as exc:
        return error_response(exc)


@admin_bp.post("/users")
@require_auth
@require_roles(MANAGE_REFERENCE)
def create_user():
    """
    Request body:
    - full_name: str (required)
    - email: str (required)
    - password: str (required)
    - phone: str (optional)
    - role: str (optional, default employee)
    - is_active: bool (optional, default true)
    """
    try:
        user = user_service.create_user(_body())
        current_app.logger.info("User %s created by user %s", user.id, g.user_id)
        return jsonify({"id": user.id, "user": user.to_dict()}), 201
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("create user")


@admin_bp.put("/users/<int:user_id>")
@require_auth
@require_roles(MANAGE_REFERENCE)
def update_user(user_id: int):
    try:
        user = user_service.update_user(user_id, _body())
        return jsonify({"ok": True, "user": user.to_dict()}), 200
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("update user")


@admin_bp.put("/users/<int:user_id>/password")
@require_auth
@require_roles(MANAGE_REFERENCE)
def change_password(user_id: int):
    try:
        user_service.set_password(user_id, _body().get("password"))
        current_app.logger.info("Password for user %s changed by user %s", user_id, g.user_id)
        return jsonify({"ok": True}), 200
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("change password")


@admin_bp.delete("/users/<int:user_id>")
@require_auth
@require_roles(DELETE_REFERENCE)
def delete_user(user_id: int):
    try:
        result = user_service.delete_user(user_id)
        return jsonify({"ok": True, **result}), 200
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("delete user")
