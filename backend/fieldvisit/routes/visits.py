# backend/fieldvisit/routes/visits.py
"""
Visit API routes

Capture (any staff role):
- POST /api/visits/start           open a visit at a branch
- POST /api/visits/:id/end         close the time window (owner only, silent otherwise)
- PUT  /api/visits/:id/cash        upsert the cash reconciliation
- POST /api/visits/:id/inventory   atomic bulk insert of counted items
- POST /api/visits/:id/notes       append a note

Lifecycle:
- POST /api/visits/:id/submit      employee -> submitted (owner only)
- POST /api/visits/:id/approve     manager/admin -> approved
- POST /api/visits/:id/send        manager/admin: email report, -> sent

Reading:
- GET /api/visits                  employees see their own visits
- GET /api/visits/:id              visit with cash, items, notes
- GET /api/visits/:id/pdf          rendered report, inline

SECURITY: The acting user always comes from the token (g.current_user),
never from the request body.
"""

from flask import Blueprint, Response, current_app, g, jsonify, request

from ..decorators import require_auth, require_roles
from ..errors import ApiError, error_response
from ..roles import (
    APPROVE_VISIT,
    CAPTURE_VISIT,
    SEND_REPORT,
    SUBMIT_VISIT,
    VIEW_REPORT,
    VIEW_VISIT,
    Role,
)
from ..services import notification_service, report_service, visit_service
from ..time_utils import to_utc_z
from ..validation import require_json_object


visits_bp = Blueprint("visits", __name__, url_prefix="/api/visits")


def _internal_error(action: str):
    current_app.logger.exception("Failed to %s", action)
    return jsonify({"error": "internal_error"}), 500


@visits_bp.get("")
@require_auth
@require_roles(VIEW_VISIT)
def list_visits_route():
    """
    Query params:
    - status: open | submitted | approved | sent
    - branch_id: int
    - limit: int (default 100, max 500)
    """
    try:
        employee_id = g.user_id if g.current_user.role == Role.EMPLOYEE else None
        visits = visit_service.list_visits(
            employee_id=employee_id,
            status=request.args.get("status"),
            branch_id=request.args.get("branch_id", type=int),
            limit=request.args.get("limit", default=100, type=int),
        )
        return jsonify({"visits": [v.to_dict() for v in visits], "count": len(visits)}), 200
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("list visits")


@visits_bp.get("/<int:visit_id>")
@require_auth
@require_roles(VIEW_VISIT)
def get_visit_route(visit_id: int):
    """Employees only see their own visits; other roles see any visit."""
    try:
        employee_id = g.user_id if g.current_user.role == Role.EMPLOYEE else None
        visit = visit_service.get_visit(visit_id, employee_id=employee_id)
        return jsonify({"visit": visit_service.visit_detail(visit)}), 200
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("load visit")


@visits_bp.post("/start")
@require_auth
@require_roles(CAPTURE_VISIT)
def start_visit_route():
    """
    Request body:
        {"branch_id": int}

    Response (201):
        {"visit_id": int, "started_at": iso}
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        visit = visit_service.start_visit(data.get("branch_id"), g.user_id)
        return jsonify({"visit_id": visit.id, "started_at": to_utc_z(visit.started_at)}), 201
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("start visit")


@visits_bp.post("/<int:visit_id>/end")
@require_auth
@require_roles(CAPTURE_VISIT)
def end_visit_route(visit_id: int):
    try:
        updated = visit_service.end_visit(visit_id, g.user_id)
        return jsonify({"ok": True, "updated": updated}), 200
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("end visit")


@visits_bp.put("/<int:visit_id>/cash")
@require_auth
@require_roles(CAPTURE_VISIT)
def record_cash_route(visit_id: int):
    """
    Request body (all optional, default 0, at most 2 decimal places):
        {"system_balance": number, "actual_balance": number, "sales_amount": number}
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        cash = visit_service.record_cash(visit_id, data)
        return jsonify({"ok": True, "cash": cash.to_dict()}), 200
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("record cash")


@visits_bp.post("/<int:visit_id>/inventory")
@require_auth
@require_roles(CAPTURE_VISIT)
def record_inventory_route(visit_id: int):
    """
    Request body:
        {"items": [{"item_name": str, "color": str?, "size": str?,
                    "system_qty": int, "actual_qty": int}, ...]}

    All items are stored or none are.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        rows = visit_service.record_inventory(visit_id, data.get("items"))
        return jsonify({"ok": True, "count": len(rows)}), 201
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("record inventory")


@visits_bp.post("/<int:visit_id>/notes")
@require_auth
@require_roles(CAPTURE_VISIT)
def add_note_route(visit_id: int):
    try:
        data = require_json_object(request.get_json(silent=True))
        note = visit_service.add_note(visit_id, data.get("note_text"))
        return jsonify({"ok": True, "note": note.to_dict()}), 201
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("add note")


@visits_bp.post("/<int:visit_id>/submit")
@require_auth
@require_roles(SUBMIT_VISIT)
def submit_visit_route(visit_id: int):
    try:
        updated = visit_service.submit_visit(visit_id, g.user_id)
        return jsonify({"ok": True, "updated": updated}), 200
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("submit visit")


@visits_bp.post("/<int:visit_id>/approve")
@require_auth
@require_roles(APPROVE_VISIT)
def approve_visit_route(visit_id: int):
    try:
        visit = visit_service.approve_visit(visit_id, g.user_id)
        return jsonify({"ok": True, "visit": visit.to_dict()}), 200
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("approve visit")


@visits_bp.get("/<int:visit_id>/pdf")
@require_auth
@require_roles(VIEW_REPORT)
def visit_pdf_route(visit_id: int):
    try:
        pdf = report_service.build_report(visit_id)
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("render visit report")

    return Response(
        pdf,
        mimetype="application/pdf",
        headers={"Content-Disposition": f'inline; filename="visit-{visit_id}.pdf"'},
    )


@visits_bp.post("/<int:visit_id>/send")
@require_auth
@require_roles(SEND_REPORT)
def send_report_route(visit_id: int):
    """
    Response:
        {"ok": true, "emails_sent": int}
    """
    try:
        result = notification_service.send_report(visit_id)
        return jsonify({"ok": True, **result}), 200
    except ApiError as exc:
        return error_response(exc)
    except Exception:
        return _internal_error("send visit report")
