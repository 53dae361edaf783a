"""
Reference data: companies, branches and branch recipients.

Plain keyed CRUD. Deletes are idempotent (a missing id reports
deleted=False); rows that other rows still point at are refused with a
ConflictError rather than silently orphaning them.
"""
from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Branch, Company, Recipient, Visit
from ..validation import coerce_bool, coerce_int, coerce_text, is_valid_email
from .transactions import atomic


# =============================================================================
# Companies
# =============================================================================

def list_companies(*, newest_first: bool = False) -> list[Company]:
    query = db.session.query(Company)
    if newest_first:
        return query.order_by(Company.id.desc()).all()
    return query.order_by(Company.name.asc()).all()


def get_company(company_id: int) -> Company:
    company = db.session.query(Company).filter_by(id=company_id).first()
    if not company:
        raise NotFoundError(f"Company {company_id} not found")
    return company


def create_company(data: dict) -> Company:
    name = coerce_text(data.get("name"), "name", required=True, max_length=255)
    with atomic("create company"):
        company = Company(name=name)
        db.session.add(company)
    return company


def update_company(company_id: int, data: dict) -> Company:
    company = get_company(company_id)
    with atomic("update company"):
        if "name" in data:
            company.name = coerce_text(data.get("name"), "name", required=True, max_length=255)
    return company


def delete_company(company_id: int) -> bool:
    company = db.session.query(Company).filter_by(id=company_id).first()
    if not company:
        return False
    if db.session.query(Branch.id).filter_by(company_id=company_id).first():
        raise ConflictError(f"Company {company_id} still has branches")
    with atomic("delete company"):
        db.session.delete(company)
    return True


# =============================================================================
# Branches
# =============================================================================

def list_branches(company_id: int | None = None, *, newest_first: bool = False) -> list[Branch]:
    query = db.session.query(Branch)
    if company_id is not None:
        query = query.filter(Branch.company_id == company_id)
    if newest_first:
        return query.order_by(Branch.id.desc()).all()
    return query.order_by(Branch.name.asc()).all()


def get_branch(branch_id: int) -> Branch:
    branch = db.session.query(Branch).filter_by(id=branch_id).first()
    if not branch:
        raise NotFoundError(f"Branch {branch_id} not found")
    return branch


def _require_company_ref(value) -> int:
    company_id = coerce_int(value, "company_id", required=True)
    if not db.session.query(Company.id).filter_by(id=company_id).first():
        raise ValidationError(f"Company {company_id} does not exist")
    return company_id


def create_branch(data: dict) -> Branch:
    company_id = _require_company_ref(data.get("company_id"))
    name = coerce_text(data.get("name"), "name", required=True, max_length=255)
    location = coerce_text(data.get("location"), "location", max_length=255)
    with atomic("create branch"):
        branch = Branch(company_id=company_id, name=name, location=location)
        db.session.add(branch)
    return branch


def update_branch(branch_id: int, data: dict) -> Branch:
    branch = get_branch(branch_id)
    with atomic("update branch"):
        if "name" in data:
            branch.name = coerce_text(data.get("name"), "name", required=True, max_length=255)
        if "location" in data:
            branch.location = coerce_text(data.get("location"), "location", max_length=255)
        if "company_id" in data:
            branch.company_id = _require_company_ref(data.get("company_id"))
    return branch


def delete_branch(branch_id: int) -> bool:
    """Deletes the branch and its recipients; refused while visits reference it."""
    branch = db.session.query(Branch).filter_by(id=branch_id).first()
    if not branch:
        return False
    if db.session.query(Visit.id).filter_by(branch_id=branch_id).first():
        raise ConflictError(f"Branch {branch_id} still has visits")
    with atomic("delete branch"):
        db.session.delete(branch)
    return True


# =============================================================================
# Recipients
# =============================================================================

def list_recipients(branch_id: int | None = None) -> list[Recipient]:
    query = db.session.query(Recipient)
    if branch_id is not None:
        query = query.filter(Recipient.branch_id == branch_id)
    return query.order_by(Recipient.id.desc()).all()


def _clean_recipient_email(value) -> str:
    email = coerce_text(value, "email", required=True, max_length=255)
    if not is_valid_email(email):
        raise ValidationError("email is not a valid address")
    return email


def create_recipient(data: dict) -> Recipient:
    branch_id = coerce_int(data.get("branch_id"), "branch_id", required=True)
    if not db.session.query(Branch.id).filter_by(id=branch_id).first():
        raise ValidationError(f"Branch {branch_id} does not exist")

    recipient = Recipient(
        branch_id=branch_id,
        name=coerce_text(data.get("name"), "name", max_length=255),
        email=_clean_recipient_email(data.get("email")),
        notify_email=coerce_bool(data.get("notify_email"), default=True),
    )
    with atomic("create recipient"):
        db.session.add(recipient)
    return recipient


def update_recipient(recipient_id: int, data: dict) -> Recipient:
    recipient = db.session.query(Recipient).filter_by(id=recipient_id).first()
    if not recipient:
        raise NotFoundError(f"Recipient {recipient_id} not found")
    with atomic("update recipient"):
        if "name" in data:
            recipient.name = coerce_text(data.get("name"), "name", max_length=255)
        if "email" in data:
            recipient.email = _clean_recipient_email(data.get("email"))
        if "notify_email" in data:
            recipient.notify_email = coerce_bool(data.get("notify_email"), default=True)
    return recipient


def delete_recipient(recipient_id: int) -> bool:
    recipient = db.session.query(Recipient).filter_by(id=recipient_id).first()
    if not recipient:
        return False
    with atomic("delete recipient"):
        db.session.delete(recipient)
    return True
