from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from ..validation import cents_to_amount


class Visit(db.Model):
    """
    One employee's inspection session at a branch.

    LIFECYCLE:
    1. open: Created by the employee on arrival; cash, inventory and notes captured
    2. submitted: Employee finished and handed the visit over for review
    3. approved: Manager or admin reviewed the visit
    4. sent: Report emailed to the branch recipients

    Transition rules live in services/visit_service.py (VISIT_TRANSITIONS).
    """
    __tablename__ = "visits"
    __table_args__ = (
        db.Index("ix_visits_branch_id", "branch_id"),
        db.Index("ix_visits_employee_id", "employee_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=False)
    employee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    started_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    ended_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # open, submitted, approved, sent
    status = db.Column(db.String(16), nullable=False, default="open", index=True)

    approved_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    sent_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    branch = db.relationship("Branch", backref=db.backref("visits", lazy=True))
    employee = db.relationship("User", foreign_keys=[employee_id], backref=db.backref("visits", lazy=True))
    approved_by = db.relationship("User", foreign_keys=[approved_by_user_id])

    cash = db.relationship(
        "VisitCash",
        uselist=False,
        back_populates="visit",
        cascade="all, delete-orphan",
    )
    inventory_items = db.relationship(
        "VisitInventoryItem",
        back_populates="visit",
        order_by="VisitInventoryItem.id",
        cascade="all, delete-orphan",
    )
    notes = db.relationship(
        "VisitNote",
        back_populates="visit",
        order_by=lambda: (VisitNote.created_at, VisitNote.id),
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Visit id={self.id} branch_id={self.branch_id} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "branch_id": self.branch_id,
            "employee_id": self.employee_id,
            "status": self.status,
            "started_at": to_utc_z(self.started_at),
            "ended_at": to_utc_z(self.ended_at),
            "approved_by_user_id": self.approved_by_user_id,
            "approved_at": to_utc_z(self.approved_at),
            "sent_at": to_utc_z(self.sent_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class VisitCash(db.Model):
    """
    Cash reconciliation for a visit (at most one row per visit).

    Amounts are stored as integer cents and served as 2-decimal figures.
    The discrepancy is derived on read and has no column.
    """
    __tablename__ = "visit_cash"
    __table_args__ = (
        db.UniqueConstraint("visit_id", name="uq_visit_cash_visit"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    visit_id = db.Column(db.Integer, db.ForeignKey("visits.id"), nullable=False)
    system_balance_cents = db.Column(db.BigInteger, nullable=False, default=0)
    actual_balance_cents = db.Column(db.BigInteger, nullable=False, default=0)
    sales_amount_cents = db.Column(db.BigInteger, nullable=False, default=0)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    visit = db.relationship("Visit", back_populates="cash")

    @property
    def discrepancy_cents(self) -> int:
        return (self.actual_balance_cents or 0) - (self.system_balance_cents or 0)

    def to_dict(self) -> dict:
        return {
            "visit_id": self.visit_id,
            "system_balance": cents_to_amount(self.system_balance_cents),
            "actual_balance": cents_to_amount(self.actual_balance_cents),
            "sales_amount": cents_to_amount(self.sales_amount_cents),
            "discrepancy": cents_to_amount(self.discrepancy_cents),
        }


class VisitInventoryItem(db.Model):
    """Counted stock line: system-expected vs. physically counted quantity."""
    __tablename__ = "visit_inventory_items"
    __table_args__ = (
        db.Index("ix_visit_inventory_items_visit_id", "visit_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    visit_id = db.Column(db.Integer, db.ForeignKey("visits.id"), nullable=False)
    item_name = db.Column(db.String(255), nullable=False)
    color = db.Column(db.String(64), nullable=True)
    size = db.Column(db.String(64), nullable=True)
    system_qty = db.Column(db.Integer, nullable=False, default=0)
    actual_qty = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    visit = db.relationship("Visit", back_populates="inventory_items")

    @property
    def discrepancy(self) -> int:
        return (self.actual_qty or 0) - (self.system_qty or 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "visit_id": self.visit_id,
            "item_name": self.item_name,
            "color": self.color,
            "size": self.size,
            "system_qty": self.system_qty,
            "actual_qty": self.actual_qty,
            "discrepancy": self.discrepancy,
        }


class VisitNote(db.Model):
    __tablename__ = "visit_notes"
    __table_args__ = (
        db.Index("ix_visit_notes_visit_id", "visit_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    visit_id = db.Column(db.Integer, db.ForeignKey("visits.id"), nullable=False)
    note_text = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    visit = db.relationship("Visit", back_populates="notes")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "visit_id": self.visit_id,
            "note_text": self.note_text,
            "created_at": to_utc_z(self.created_at),
        }
