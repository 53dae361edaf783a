# Overview: Service-layer operations for staff accounts managed from the admin area.

from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import User, Visit
from ..roles import Role
from ..validation import coerce_bool, coerce_text, is_valid_email
from . import auth_service
from .transactions import atomic


def _clean_email(value, *, exclude_user_id: int | None = None) -> str:
    email = coerce_text(value, "email", required=True, max_length=255)
    if not is_valid_email(email):
        raise ValidationError("email is not a valid address")
    email = email.lower()

    query = db.session.query(User.id).filter(db.func.lower(User.email) == email)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first():
        raise ConflictError("Email already in use")
    return email


def _clean_role(value) -> str:
    role = Role.parse(value)
    if role is None:
        allowed = ", ".join(r.value for r in Role)
        raise ValidationError(f"role must be one of: {allowed}")
    return role.value


def list_users(*, include_inactive: bool = True, role: str | None = None) -> list[User]:
    query = db.session.query(User)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    if role:
        query = query.filter(User.role == _clean_role(role))
    return query.order_by(User.id.desc()).all()


def get_user(user_id: int) -> User:
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    return user


def create_user(data: dict, *, bcrypt_rounds: int = auth_service.BCRYPT_ROUNDS) -> User:
    """
    Create a staff account.

    Password is required and must meet strength requirements; there is no
    default password.
    """
    full_name = coerce_text(data.get("full_name"), "full_name", required=True, max_length=255)
    email = _clean_email(data.get("email"))
    role = _clean_role(data.get("role") or Role.EMPLOYEE.value)
    password_hash = auth_service.hash_password(data.get("password"), rounds=bcrypt_rounds)

    user = User(
        full_name=full_name,
        email=email,
        phone=coerce_text(data.get("phone"), "phone", max_length=32),
        password_hash=password_hash,
        role=role,
        is_active=coerce_bool(data.get("is_active"), default=True),
    )
    with atomic("create user"):
        db.session.add(user)
    return user


def update_user(user_id: int, data: dict) -> User:
    user = get_user(user_id)

    changes = {}
    if "full_name" in data:
        changes["full_name"] = coerce_text(data.get("full_name"), "full_name", required=True, max_length=255)
    if "email" in data:
        changes["email"] = _clean_email(data.get("email"), exclude_user_id=user_id)
    if "phone" in data:
        changes["phone"] = coerce_text(data.get("phone"), "phone", max_length=32)
    if "role" in data:
        changes["role"] = _clean_role(data.get("role"))
    if "is_active" in data:
        changes["is_active"] = coerce_bool(data.get("is_active"), default=user.is_active)

    with atomic("update user"):
        for key, value in changes.items():
            setattr(user, key, value)
    return user


def set_password(user_id: int, password: str | None) -> User:
    user = get_user(user_id)
    password_hash = auth_service.hash_password(password)
    with atomic("change password"):
        user.password_hash = password_hash
    return user


def delete_user(user_id: int) -> dict:
    """
    Delete a user.

    Users who own or approved visits are deactivated instead, so visit
    history keeps its attribution.
    """
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user:
        return {"deleted": False, "deactivated": False}

    referenced = db.session.query(Visit.id).filter(
        db.or_(Visit.employee_id == user_id, Visit.approved_by_user_id == user_id)
    ).first()

    with atomic("delete user"):
        if referenced:
            user.is_active = False
        else:
            db.session.delete(user)

    if referenced:
        return {"deleted": False, "deactivated": True}
    return {"deleted": True, "deactivated": False}
