# Overview: Domain error taxonomy and the JSON error body shared by all routes.

from __future__ import annotations

from flask import jsonify


class ApiError(Exception):
    """Base for errors that map onto a fixed HTTP status and machine code."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str | None = None, *, detail: str | None = None):
        super().__init__(message or self.code)
        self.detail = detail

    def to_dict(self) -> dict:
        body = {"error": self.code, "message": str(self)}
        if self.detail:
            body["detail"] = self.detail
        return body


class ValidationError(ApiError, ValueError):
    """400-level input problem."""

    status_code = 400
    code = "validation_error"


class InvalidCredentials(ApiError):
    """
    Login failed.

    SECURITY: Unknown email, inactive account and wrong password all raise
    this same error so responses never reveal which accounts exist.
    """

    status_code = 401
    code = "invalid_credentials"

    def __init__(self, message: str | None = None):
        super().__init__(message or "Invalid credentials")


class NotFoundError(ApiError):
    status_code = 404
    code = "not_found"


class ConflictError(ApiError, ValueError):
    """409-level business rule conflict (e.g., duplicate email, rows still referenced)."""

    status_code = 409
    code = "conflict"


class LifecycleError(ConflictError):
    """Raised when a visit transition or write is not allowed from its current status."""

    code = "invalid_transition"


class StorageError(ApiError):
    """
    Underlying persistence fault, including a rolled-back transaction.

    `detail` carries the driver message and is diagnostic only.
    """

    status_code = 500
    code = "storage_error"


class DeliveryError(ApiError):
    """The outbound mail transport refused or failed the message."""

    status_code = 502
    code = "delivery_failed"


def error_response(exc: ApiError):
    return jsonify(exc.to_dict()), exc.status_code


def unauthenticated(message: str = "Authentication required"):
    return jsonify({"error": "unauthenticated", "message": message}), 401


def forbidden(allowed_roles) -> tuple:
    return jsonify({
        "error": "forbidden",
        "message": "Role not permitted for this operation",
        "allowed_roles": sorted(role.value for role in allowed_roles),
    }), 403
