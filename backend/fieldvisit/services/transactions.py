# Overview: Transaction boundary helpers shared by the service layer.

from __future__ import annotations

from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageError
from ..extensions import db


@contextmanager
def atomic(description: str):
    """
    Run a unit of work as one transaction on the request's session.

    Commits when the block completes. Any exception rolls the session back
    before it propagates. Database faults surface as
    StorageError carrying the driver message as diagnostic detail; domain
    errors raised inside the block propagate unchanged.
    """
    try:
        yield db.session
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning("Rolled back %s: %s", description, exc.__class__.__name__)
        raise StorageError(f"Failed to {description}", detail=str(getattr(exc, "orig", exc))) from exc
    except Exception:
        db.session.rollback()
        raise
