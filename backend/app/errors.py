"""
API error types.

Route handlers raise these; the exception handlers registered in
app.main render them into the standard response envelope:
    {"success": false, "message": "..."}
"""

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.logging_config import get_logger, log_with_context

db_logger = get_logger("db")


class ApiError(HTTPException):
    """An error with a user-facing message and an HTTP status code."""

    def __init__(self, status_code: int, message: str):
        super().__init__(status_code=status_code, detail=message)
        self.message = message


class NotFoundError(ApiError):
    """Requested resource (or a referenced one) does not exist."""

    def __init__(self, message: str):
        super().__init__(404, message)


class ConflictError(ApiError):
    """Uniqueness violation, or a delete blocked by existing references."""

    def __init__(self, message: str):
        super().__init__(400, message)


def error_envelope(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


def commit_or_conflict(db: Session, message: str, context: dict = None):
    """
    Commit the session, translating a unique-index violation into a
    ConflictError carrying `message`.

    Pre-check queries catch the common case; this covers two requests
    racing for the same uniqueness key.
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        log_with_context(db_logger, "WARNING", "Integrity error on commit: {}".format(message),
                         context=context, extra_data={"error": str(e.orig)})
        raise ConflictError(message)
