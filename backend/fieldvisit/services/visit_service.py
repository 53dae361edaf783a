# backend/fieldvisit/services/visit_service.py
"""
Visit lifecycle service.

WHY: A visit is the unit of field work. The employee opens it at the branch,
captures cash, inventory counts and notes, then submits it; a manager approves
it and the report is emailed to the branch.

STATE MACHINE:
    open -> submitted -> approved -> sent
            submitted -> sent

    open:      Capture in progress (cash, inventory, notes, end time)
    submitted: Handed over by the owning employee
    approved:  Reviewed by a manager or admin
    sent:      Report dispatched to branch recipients

GUARDS:
By default no transition checks the prior status and captures are accepted in
any status, which is the behaviour the field app relies on today. With
STRICT_VISIT_TRANSITIONS enabled, transitions must follow VISIT_TRANSITIONS and
captures are only accepted while the visit is open.

CONCURRENCY:
There is no cross-request locking. Two concurrent submits or approvals on the
same visit both succeed and the last write wins.
"""
from __future__ import annotations

from flask import current_app

from ..errors import LifecycleError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Branch, Visit, VisitCash, VisitInventoryItem, VisitNote
from ..time_utils import utcnow
from ..validation import coerce_cents, coerce_int, coerce_text
from .transactions import atomic


# Visit status constants
VISIT_STATUS_OPEN = "open"
VISIT_STATUS_SUBMITTED = "submitted"
VISIT_STATUS_APPROVED = "approved"
VISIT_STATUS_SENT = "sent"

VISIT_STATUSES = (
    VISIT_STATUS_OPEN,
    VISIT_STATUS_SUBMITTED,
    VISIT_STATUS_APPROVED,
    VISIT_STATUS_SENT,
)

# target status -> statuses it may be entered from (enforced in strict mode)
VISIT_TRANSITIONS = {
    VISIT_STATUS_SUBMITTED: frozenset({VISIT_STATUS_OPEN}),
    VISIT_STATUS_APPROVED: frozenset({VISIT_STATUS_SUBMITTED}),
    VISIT_STATUS_SENT: frozenset({VISIT_STATUS_SUBMITTED, VISIT_STATUS_APPROVED}),
}

# Statuses in which cash, inventory and notes may be written (strict mode)
MUTABLE_STATUSES = frozenset({VISIT_STATUS_OPEN})

INVENTORY_TEXT_LIMITS = {"item_name": 255, "color": 64, "size": 64}


def strict_transitions() -> bool:
    return bool(current_app.config.get("STRICT_VISIT_TRANSITIONS", False))


def can_transition(from_status: str, to_status: str) -> bool:
    """
    Check a transition against VISIT_TRANSITIONS.

    Returns True for every pair when strict mode is off.
    """
    if to_status not in VISIT_TRANSITIONS:
        raise LifecycleError(f"Unknown target status '{to_status}'")
    if not strict_transitions():
        return True
    return from_status in VISIT_TRANSITIONS[to_status]


def ensure_transition(visit: Visit, to_status: str) -> None:
    if not can_transition(visit.status, to_status):
        raise LifecycleError(
            f"Cannot move visit {visit.id} from '{visit.status}' to '{to_status}'"
        )


def _require_mutable(visit: Visit) -> None:
    if strict_transitions() and visit.status not in MUTABLE_STATUSES:
        raise LifecycleError(f"Visit {visit.id} is {visit.status} and can no longer be edited")


def get_visit(visit_id: int, *, employee_id: int | None = None) -> Visit:
    """
    Load a visit by id.

    With employee_id set, a visit owned by anyone else is reported as not
    found, the same as an unknown id.
    """
    query = db.session.query(Visit).filter_by(id=visit_id)
    if employee_id is not None:
        query = query.filter(Visit.employee_id == employee_id)
    visit = query.first()
    if not visit:
        raise NotFoundError(f"Visit {visit_id} not found")
    return visit


def list_visits(
    *,
    employee_id: int | None = None,
    status: str | None = None,
    branch_id: int | None = None,
    limit: int = 100,
) -> list[Visit]:
    query = db.session.query(Visit)
    if employee_id is not None:
        query = query.filter(Visit.employee_id == employee_id)
    if status:
        if status not in VISIT_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(VISIT_STATUSES)}")
        query = query.filter(Visit.status == status)
    if branch_id is not None:
        query = query.filter(Visit.branch_id == branch_id)
    return query.order_by(Visit.id.desc()).limit(max(1, min(limit, 500))).all()


def visit_detail(visit: Visit) -> dict:
    """Visit with its captured data and derived discrepancies."""
    data = visit.to_dict()
    data["cash"] = visit.cash.to_dict() if visit.cash else None
    data["inventory_items"] = [item.to_dict() for item in visit.inventory_items]
    data["notes"] = [note.to_dict() for note in visit.notes]
    return data


# =============================================================================
# Capture
# =============================================================================

def start_visit(branch_id, employee_id: int) -> Visit:
    """
    Open a visit at a branch for the requesting employee.

    Raises:
        ValidationError: branch_id missing or not an integer
        NotFoundError: branch does not exist
    """
    branch_id = coerce_int(branch_id, "branch_id", required=True)
    if not db.session.query(Branch.id).filter_by(id=branch_id).first():
        raise NotFoundError(f"Branch {branch_id} not found")

    with atomic("start visit"):
        visit = Visit(
            branch_id=branch_id,
            employee_id=employee_id,
            started_at=utcnow(),
            status=VISIT_STATUS_OPEN,
        )
        db.session.add(visit)

    current_app.logger.info("Visit %s started at branch %s by user %s", visit.id, branch_id, employee_id)
    return visit


def end_visit(visit_id: int, employee_id: int) -> int:
    """
    Record the end of the visit window.

    Scoped to the owning employee: returns the number of visits updated,
    0 when the visit belongs to someone else (not an error).
    """
    visit = db.session.query(Visit).filter_by(id=visit_id, employee_id=employee_id).first()
    if not visit:
        return 0

    _require_mutable(visit)
    with atomic("end visit"):
        visit.ended_at = utcnow()
    return 1


def record_cash(visit_id: int, data: dict) -> VisitCash:
    """
    Insert or replace the visit's cash reconciliation.

    Figures arrive in currency units and are stored as cents; absent
    figures default to zero.
    """
    system_balance_cents = coerce_cents(data.get("system_balance"), "system_balance")
    actual_balance_cents = coerce_cents(data.get("actual_balance"), "actual_balance")
    sales_amount_cents = coerce_cents(data.get("sales_amount"), "sales_amount")

    visit = get_visit(visit_id)
    _require_mutable(visit)

    with atomic("record cash"):
        cash = db.session.query(VisitCash).filter_by(visit_id=visit_id).first()
        if cash is None:
            cash = VisitCash(visit_id=visit_id)
            db.session.add(cash)
        cash.system_balance_cents = system_balance_cents
        cash.actual_balance_cents = actual_balance_cents
        cash.sales_amount_cents = sales_amount_cents

    return cash


def _clean_inventory_item(position: int, item) -> dict:
    if not isinstance(item, dict):
        raise ValidationError(f"items[{position}] must be an object")

    cleaned = {}
    for field, limit in INVENTORY_TEXT_LIMITS.items():
        cleaned[field] = coerce_text(
            item.get(field),
            f"items[{position}].{field}",
            required=(field == "item_name"),
            max_length=limit,
        )
    for field in ("system_qty", "actual_qty"):
        cleaned[field] = coerce_int(item.get(field), f"items[{position}].{field}", default=0)
    return cleaned


def record_inventory(visit_id: int, items) -> list[VisitInventoryItem]:
    """
    Insert a batch of inventory lines in one transaction.

    Every line is validated before the transaction opens. Rows are then
    flushed one at a time; if any row fails the whole batch is rolled back
    and StorageError is raised, so readers see either every line or none.

    Raises:
        ValidationError: items is not a non-empty list of well-formed objects
        NotFoundError: visit does not exist
        StorageError: a row failed and the batch was rolled back
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    cleaned = [_clean_inventory_item(position, item) for position, item in enumerate(items)]

    visit = get_visit(visit_id)
    _require_mutable(visit)

    rows = []
    with atomic("record inventory"):
        for values in cleaned:
            row = VisitInventoryItem(visit_id=visit_id, **values)
            db.session.add(row)
            db.session.flush()
            rows.append(row)

    current_app.logger.info("Recorded %d inventory items for visit %s", len(rows), visit_id)
    return rows


def add_note(visit_id: int, text) -> VisitNote:
    note_text = coerce_text(text, "note_text", required=True)

    visit = get_visit(visit_id)
    _require_mutable(visit)

    with atomic("add note"):
        note = VisitNote(visit_id=visit_id, note_text=note_text, created_at=utcnow())
        db.session.add(note)
    return note


# =============================================================================
# Transitions
# =============================================================================

def submit_visit(visit_id: int, employee_id: int) -> int:
    """
    Hand the visit over for review (-> submitted).

    Scoped to the owning employee: returns the number of visits updated, 0
    when the visit belongs to someone else. Stamps ended_at if the employee
    never ended the visit explicitly.
    """
    visit = db.session.query(Visit).filter_by(id=visit_id, employee_id=employee_id).first()
    if not visit:
        return 0

    ensure_transition(visit, VISIT_STATUS_SUBMITTED)
    with atomic("submit visit"):
        visit.status = VISIT_STATUS_SUBMITTED
        if visit.ended_at is None:
            visit.ended_at = utcnow()

    current_app.logger.info("Visit %s submitted by user %s", visit_id, employee_id)
    return 1


def approve_visit(visit_id: int, approver_id: int) -> Visit:
    """Approve a visit (-> approved). Not scoped to ownership."""
    visit = get_visit(visit_id)
    ensure_transition(visit, VISIT_STATUS_APPROVED)

    with atomic("approve visit"):
        visit.status = VISIT_STATUS_APPROVED
        visit.approved_by_user_id = approver_id
        visit.approved_at = utcnow()

    current_app.logger.info("Visit %s approved by user %s", visit_id, approver_id)
    return visit


def mark_sent(visit_id: int) -> Visit:
    """Record that the report was dispatched (-> sent)."""
    visit = get_visit(visit_id)
    ensure_transition(visit, VISIT_STATUS_SENT)

    with atomic("mark visit sent"):
        visit.status = VISIT_STATUS_SENT
        visit.sent_at = utcnow()

    current_app.logger.info("Visit %s marked sent", visit_id)
    return visit
