# Overview: Read-only reference lookups used by the field app when opening a visit.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_roles
from ..roles import VIEW_REFERENCE
from ..services import reference_service


reference_bp = Blueprint("reference", __name__, url_prefix="/api")


@reference_bp.get("/companies")
@require_auth
@require_roles(VIEW_REFERENCE)
def list_companies():
    companies = reference_service.list_companies()
    return jsonify([{"id": c.id, "name": c.name} for c in companies]), 200


@reference_bp.get("/branches")
@require_auth
@require_roles(VIEW_REFERENCE)
def list_branches():
    company_id = request.args.get("company_id", type=int)
    branches = reference_service.list_branches(company_id)
    return jsonify([
        {"id": b.id, "name": b.name, "company_id": b.company_id, "location": b.location}
        for b in branches
    ]), 200
